from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, Any

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leaderboard_node.config.runtime import RuntimeSettings
from leaderboard_node.entities import ContestSettings, ContestWindow
from leaderboard_node.feeds.affiliate import AffiliateClient
from leaderboard_node.middleware.auth import configure_auth
from leaderboard_node.publishers import (
    ANNOUNCEMENT_UPDATE,
    COUNTDOWN_UPDATE,
    HERO_UPDATE,
    LEADERBOARD_UPDATE,
    PRIZES_UPDATE,
    BroadcastHub,
    LeaderboardPublisher,
    RedisStreamPublisher,
)
from leaderboard_node.schemas import AnnouncementBody, ContestWindowBody, CountdownBody, HeroBody, PrizesBody
from leaderboard_node.services import (
    LiveStateCache,
    RefreshService,
    SettingsStore,
    SnapshotStore,
    WindowedGainCalculator,
)
from leaderboard_node.services.settings_store import normalize_prizes
from leaderboard_node.utils.logging_config import configure_logging
from leaderboard_node.utils.timestamps import parse_timestamp, to_iso

logger = logging.getLogger(__name__)


@dataclass
class LeaderboardServices:
    """Everything the HTTP handlers and the scheduler share, owned explicitly."""

    settings: RuntimeSettings
    client: AffiliateClient
    live_state: LiveStateCache
    snapshot_store: SnapshotStore
    settings_store: SettingsStore
    calculator: WindowedGainCalculator
    hub: BroadcastHub
    refresh: RefreshService

    def publish(self, event: str, payload: Any) -> None:
        self.refresh.publish(event, payload)

    async def save_settings(self) -> None:
        await asyncio.to_thread(self.settings_store.save)


def build_services(settings: RuntimeSettings, client: AffiliateClient | None = None) -> LeaderboardServices:
    settings.data_dir.mkdir(parents=True, exist_ok=True)

    live_state = LiveStateCache(settings.cache_path)
    live_state.load()

    settings_store = SettingsStore(
        settings.settings_path,
        defaults=ContestSettings(
            countdown_end=settings.countdown_end,
            announcement=settings.announcement,
            hero=settings.hero,
        ),
    )
    settings_store.load()

    snapshot_store = SnapshotStore(settings.history_path)
    hub = BroadcastHub()
    publishers: list[LeaderboardPublisher] = [hub]
    if settings.redis_url:
        publishers.append(RedisStreamPublisher(url=settings.redis_url))

    client = client or AffiliateClient(settings=settings.affiliate)
    refresh = RefreshService(
        client=client,
        live_state=live_state,
        snapshot_store=snapshot_store,
        settings_store=settings_store,
        publishers=publishers,
        interval_seconds=settings.refresh_interval_seconds,
        warmup_seconds=settings.refresh_warmup_seconds,
    )

    return LeaderboardServices(
        settings=settings,
        client=client,
        live_state=live_state,
        snapshot_store=snapshot_store,
        settings_store=settings_store,
        calculator=WindowedGainCalculator(snapshot_store, live_state),
        hub=hub,
        refresh=refresh,
    )


def get_services(request: Request) -> LeaderboardServices:
    return request.app.state.services


Services = Annotated[LeaderboardServices, Depends(get_services)]

router = APIRouter()


@router.get("/healthz")
def healthcheck(services: Services) -> dict[str, Any]:
    board = services.live_state.get()
    refresh = services.refresh
    return {
        "ok": True,
        "updatedAt": board.updated_at,
        "count": board.count,
        "refreshState": str(refresh.state),
        "lastOutcome": str(refresh.last_outcome) if refresh.last_outcome else None,
    }


@router.get("/api/leaderboard")
def get_leaderboard(services: Services) -> list[dict[str, Any]]:
    """Window gains while a contest window is set, otherwise full-history totals."""
    window = services.settings_store.get().contest
    if window.is_active:
        return [record.to_dict() for record in services.calculator.compute(window.start, window.end)]
    return services.live_state.get().to_list()


@router.get("/api/leaderboard/meta")
def get_leaderboard_meta(services: Services) -> dict[str, Any]:
    board = services.live_state.get()
    return {"updatedAt": board.updated_at, "count": board.count}


@router.get("/api/leaderboard/range", response_model=None)
def get_leaderboard_range(
    services: Services,
    start: Annotated[str | None, Query()] = None,
    end: Annotated[str | None, Query()] = None,
) -> list[dict[str, Any]] | JSONResponse:
    start_ms = parse_timestamp(start)
    end_ms = parse_timestamp(end)
    if start_ms is None or end_ms is None or end_ms < start_ms:
        return JSONResponse(status_code=400, content={"error": "invalid range"})
    return [record.to_dict() for record in services.calculator.compute(start_ms, end_ms)]


@router.get("/api/contest")
def get_contest(services: Services) -> dict[str, str | None]:
    return _contest_to_dict(services.settings_store.get().contest)


@router.post("/api/contest", response_model=None)
def set_contest(services: Services, body: ContestWindowBody | None = None) -> dict[str, str | None] | JSONResponse:
    body = body or ContestWindowBody()
    start_ms = parse_timestamp(body.start)
    end_ms = parse_timestamp(body.end)
    if (_is_given(body.start) and start_ms is None) or (_is_given(body.end) and end_ms is None):
        return JSONResponse(status_code=400, content={"error": "invalid contest window"})

    settings = services.settings_store.update(contest=ContestWindow(start=start_ms, end=end_ms))
    return _contest_to_dict(settings.contest)


@router.get("/api/countdown")
def get_countdown(services: Services) -> dict[str, str | None]:
    return {"end": to_iso(services.settings_store.get().countdown_end)}


@router.post("/api/countdown", response_model=None)
async def set_countdown(services: Services, body: CountdownBody | None = None) -> dict[str, str | None] | JSONResponse:
    end_ms = parse_timestamp(body.end if body else None)
    if end_ms is None:
        return JSONResponse(status_code=400, content={"error": "invalid end"})

    settings = services.settings_store.apply(countdown_end=end_ms)
    await services.save_settings()
    payload = {"end": to_iso(settings.countdown_end)}
    services.publish(COUNTDOWN_UPDATE, payload)
    return payload


@router.get("/api/announcement")
def get_announcement(services: Services) -> dict[str, str]:
    return {"announcement": services.settings_store.get().announcement}


@router.post("/api/announcement")
async def set_announcement(services: Services, body: AnnouncementBody | None = None) -> dict[str, str]:
    announcement = (body.announcement if body else None) or ""
    services.settings_store.apply(announcement=announcement)
    await services.save_settings()
    payload = {"announcement": announcement}
    services.publish(ANNOUNCEMENT_UPDATE, payload)
    return payload


@router.get("/api/prizes")
def get_prizes(services: Services) -> dict[str, list[int]]:
    return {"prizes": list(services.settings_store.get().prizes)}


@router.post("/api/prizes", response_model=None)
async def set_prizes(services: Services, body: PrizesBody | None = None) -> dict[str, list[int]] | JSONResponse:
    prizes = normalize_prizes(body.prizes if body else None)
    if prizes is None:
        return JSONResponse(
            status_code=400,
            content={"error": "prizes must be an array of 10 numbers"},
        )

    services.settings_store.apply(prizes=prizes)
    await services.save_settings()
    services.publish(PRIZES_UPDATE, list(prizes))
    return {"prizes": list(prizes)}


@router.get("/api/hero")
def get_hero(services: Services) -> dict[str, Any]:
    return services.settings_store.get().hero.to_dict()


@router.post("/api/hero")
async def set_hero(services: Services, body: HeroBody | None = None) -> dict[str, Any]:
    changes = body.model_dump(by_alias=True, exclude_none=True) if body else {}
    settings = services.settings_store.apply(hero=services.settings_store.get().hero.merged(changes))
    await services.save_settings()
    payload = settings.hero.to_dict()
    services.publish(HERO_UPDATE, payload)
    return payload


@router.get("/api/admin/ping")
def admin_ping() -> dict[str, bool]:
    return {"ok": True}


@router.post("/api/admin/refresh")
async def admin_refresh(services: Services) -> dict[str, Any]:
    outcome = await services.refresh.refresh()
    board = services.live_state.get()
    return {"ok": True, "outcome": str(outcome), "count": board.count, "updatedAt": board.updated_at}


@router.websocket("/ws")
async def leaderboard_socket(websocket: WebSocket) -> None:
    services: LeaderboardServices = websocket.app.state.services
    await websocket.accept()
    queue = services.hub.subscribe()

    async def forward() -> None:
        while True:
            await websocket.send_json(await queue.get())

    sender: asyncio.Task[None] | None = None
    try:
        await websocket.send_json(
            {"event": LEADERBOARD_UPDATE, "data": services.live_state.get().to_list()}
        )
        sender = asyncio.create_task(forward())
        while True:
            # Inbound frames are ignored; this only watches for the disconnect.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        services.hub.unsubscribe(queue)
        if sender is not None:
            await stop_sender(sender)


async def stop_sender(sender: asyncio.Task[None]) -> None:
    """Cancel the forwarding task and collect whatever it ended with."""
    sender.cancel()
    (result,) = await asyncio.gather(sender, return_exceptions=True)
    if isinstance(result, Exception):
        logger.debug("websocket sender stopped: %s", result)


@asynccontextmanager
async def lifespan(app: FastAPI):
    services: LeaderboardServices = app.state.services
    task: asyncio.Task[None] | None = None
    if app.state.start_scheduler:
        task = asyncio.create_task(services.refresh.run())
    try:
        yield
    finally:
        await services.refresh.shutdown()
        if task is not None:
            try:
                await asyncio.wait_for(task, timeout=5)
            except asyncio.TimeoutError:
                logger.warning("refresh loop did not stop in time; cancelling")
                task.cancel()


def create_app(
    settings: RuntimeSettings | None = None,
    services: LeaderboardServices | None = None,
    start_scheduler: bool = True,
) -> FastAPI:
    if services is None:
        services = build_services(settings or RuntimeSettings.from_env())
    settings = services.settings

    app = FastAPI(title="Leaderboard Node", lifespan=lifespan)
    app.state.services = services
    app.state.start_scheduler = start_scheduler

    configure_auth(app, admin_token=settings.admin_token)
    origin = settings.frontend_origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if origin == "*" else [origin],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


def _contest_to_dict(window: ContestWindow) -> dict[str, str | None]:
    return {"start": to_iso(window.start), "end": to_iso(window.end)}


def _is_given(value: Any) -> bool:
    return value is not None and value != ""


def main() -> None:
    configure_logging()
    settings = RuntimeSettings.from_env()
    logger.info("leaderboard worker bootstrap (data_dir=%s)", settings.data_dir)
    app = create_app(settings=settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
