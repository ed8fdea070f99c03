"""Refresh orchestrator: fetch → rank → commit → snapshot → broadcast."""
from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import Any, Callable, Sequence

from leaderboard_node.entities import LiveLeaderboard
from leaderboard_node.feeds.affiliate import AffiliateClient
from leaderboard_node.publishers.base import LEADERBOARD_UPDATE, LeaderboardPublisher
from leaderboard_node.services.live_state import LiveStateCache, is_sane, sort_players
from leaderboard_node.services.settings_store import SettingsStore
from leaderboard_node.services.snapshot_store import SnapshotStore
from leaderboard_node.utils.timestamps import now_ms, to_iso


class RefreshState(StrEnum):
    IDLE = "IDLE"
    REFRESHING = "REFRESHING"


class RefreshOutcome(StrEnum):
    UPDATED = "UPDATED"
    REJECTED = "REJECTED"
    FROZEN = "FROZEN"
    FAILED = "FAILED"


class RefreshService:
    def __init__(
        self,
        client: AffiliateClient,
        live_state: LiveStateCache,
        snapshot_store: SnapshotStore,
        settings_store: SettingsStore,
        publishers: Sequence[LeaderboardPublisher] = (),
        interval_seconds: float = 1800.0,
        warmup_seconds: float = 1.5,
        clock: Callable[[], int] = now_ms,
    ):
        self.client = client
        self.live_state = live_state
        self.snapshot_store = snapshot_store
        self.settings_store = settings_store
        self.publishers = list(publishers)
        self.interval_seconds = interval_seconds
        self.warmup_seconds = warmup_seconds
        self.clock = clock

        self.state = RefreshState.IDLE
        self.last_outcome: RefreshOutcome | None = None
        self.logger = logging.getLogger(__name__)
        self.stop_event = asyncio.Event()
        self._lock = asyncio.Lock()

    async def run(self) -> None:
        self.logger.info(
            "refresh service started (interval=%ss, warmup=%ss)",
            self.interval_seconds, self.warmup_seconds,
        )
        if await self._sleep_or_stop(self.warmup_seconds):
            return
        while not self.stop_event.is_set():
            await self.refresh()
            if await self._sleep_or_stop(self.interval_seconds):
                return

    async def shutdown(self) -> None:
        self.stop_event.set()

    async def refresh(self) -> RefreshOutcome:
        """Run one cycle. Scheduled ticks and forced refreshes never overlap."""
        async with self._lock:
            self.state = RefreshState.REFRESHING
            try:
                outcome = await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self.logger.exception("[refresh] failed: %s", exc)
                outcome = RefreshOutcome.FAILED
            finally:
                self.state = RefreshState.IDLE
            self.last_outcome = outcome
            return outcome

    async def run_once(self) -> RefreshOutcome:
        if self.settings_store.get().is_frozen(self.clock()):
            self.logger.info("countdown ended; leaderboard frozen, skipping refresh")
            return RefreshOutcome.FROZEN

        players = await asyncio.to_thread(self.client.fetch_ranked)
        if not is_sane(players):
            self.logger.warning("[refresh] empty/invalid list; keeping last good cache")
            return RefreshOutcome.REJECTED

        committed_at = self.clock()
        board = self.live_state.replace(sort_players(players), updated_at=to_iso(committed_at))
        self._persist(board, committed_at)
        self.publish(LEADERBOARD_UPDATE, board.to_list())
        self.logger.info("[refresh] ok: %d players at %s", board.count, board.updated_at)
        return RefreshOutcome.UPDATED

    def publish(self, event: str, payload: Any) -> None:
        for publisher in self.publishers:
            try:
                publisher.publish(event, payload)
            except Exception as exc:
                self.logger.warning("publisher %s failed for %s: %s", type(publisher).__name__, event, exc)

    def _persist(self, board: LiveLeaderboard, committed_at: int) -> None:
        # A snapshot row is only written for a state that reached the cache file.
        try:
            self.live_state.persist()
        except OSError as exc:
            self.logger.warning("[cache] save failed, snapshot skipped: %s", exc)
            return
        try:
            self.snapshot_store.append_players(board.entries, timestamp=committed_at)
        except OSError as exc:
            self.logger.warning("[history] append failed: %s", exc)

    async def _sleep_or_stop(self, timeout: float) -> bool:
        try:
            await asyncio.wait_for(self.stop_event.wait(), timeout=max(0.0, timeout))
        except asyncio.TimeoutError:
            return False
        return True
