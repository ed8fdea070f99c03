from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import requests

from leaderboard_node.config.runtime import AffiliateSettings
from leaderboard_node.entities import PlayerRecord
from leaderboard_node.feeds.contracts import FetchErrorKind, FetchResult, OutputShape
from leaderboard_node.feeds.ttl_cache import CoalescingTTLCache
from leaderboard_node.utils.timestamps import now_ms

logger = logging.getLogger(__name__)

# Query parameters that change on every call and are left out of cache keys.
_VOLATILE_PARAMS = ("lt",)


@dataclass(frozen=True)
class _Attempt:
    payload: list[Any] | None = None
    error: FetchErrorKind | None = None
    status_code: int | None = None
    retry_after_seconds: float | None = None


@dataclass
class AffiliateClient:
    """Client for the affiliate ranking endpoint.

    `fetch_raw` retries rate limits and 5xx responses with exponential backoff;
    `fetch_ranked` fails fast. Both degrade to an empty list on any failure.
    """

    settings: AffiliateSettings = field(default_factory=AffiliateSettings)
    session: requests.Session | None = None
    cache: CoalescingTTLCache | None = None
    clock: Callable[[], int] = now_ms
    sleep: Callable[[float], None] = time.sleep
    rng: Callable[[], float] = random.random

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
        if self.cache is None:
            self.cache = CoalescingTTLCache(ttl_ms=self.settings.cache_ttl_ms, clock=self.clock)

    def fetch_raw(self) -> list[Any]:
        return list(self.fetch_raw_result().records)

    def fetch_ranked(self) -> list[PlayerRecord]:
        return list(self.fetch_ranked_result().records)

    def fetch_raw_result(self) -> FetchResult:
        return self._fetch("raw", max_attempts=self.settings.max_attempts, transform=list)

    def fetch_ranked_result(self) -> FetchResult:
        return self._fetch("players", max_attempts=1, transform=to_players)

    def build_params(self) -> dict[str, str]:
        return {
            "code": self.settings.code,
            "gt": self.settings.gt,
            "lt": str(self.clock()),
            "by": self.settings.by,
            "sort": self.settings.sort,
            "take": self.settings.take,
            "skip": self.settings.skip,
        }

    def resolve_url(self, params: dict[str, str]) -> str:
        prepared = requests.Request("GET", self.settings.base_url, params=params).prepare()
        return str(prepared.url)

    def cache_key(self, params: dict[str, str], shape: OutputShape) -> str:
        stable = {k: v for k, v in params.items() if k not in _VOLATILE_PARAMS}
        return f"{self.resolve_url(stable)}:{shape}"

    def backoff_ms(self, attempt: int, retry_after_seconds: float | None = None) -> int:
        if retry_after_seconds is not None:
            base = int(retry_after_seconds * 1000)
        else:
            base = min(self.settings.backoff_cap_ms, self.settings.backoff_base_ms * (2 ** attempt))
        return base + int(self.rng() * self.settings.jitter_ms)

    def _fetch(
        self,
        shape: OutputShape,
        max_attempts: int,
        transform: Callable[[list[Any]], Sequence[Any]],
    ) -> FetchResult:
        if not self.settings.has_credentials:
            logger.debug("affiliate credentials missing; skipping %s fetch", shape)
            return FetchResult.failure(FetchErrorKind.MISSING_CREDENTIALS)

        params = self.build_params()
        url = self.resolve_url(params)
        return self.cache.get_or_load(
            self.cache_key(params, shape),
            lambda: self._fetch_with_retry(url, shape, max_attempts, transform),
            should_cache=lambda result: result.ok,
        )

    def _fetch_with_retry(
        self,
        url: str,
        shape: OutputShape,
        max_attempts: int,
        transform: Callable[[list[Any]], Sequence[Any]],
    ) -> FetchResult:
        attempts = max(1, max_attempts)
        for attempt in range(attempts):
            outcome = self._request_once(url)
            if outcome.error is None:
                return FetchResult(
                    records=tuple(transform(outcome.payload or [])),
                    status_code=outcome.status_code,
                    attempts=attempt + 1,
                )

            if not outcome.error.retryable or attempt == attempts - 1:
                logger.warning(
                    "affiliate %s fetch failed kind=%s status=%s attempts=%d",
                    shape, outcome.error, outcome.status_code, attempt + 1,
                )
                return FetchResult.failure(outcome.error, outcome.status_code, attempt + 1)

            delay_ms = self.backoff_ms(attempt, outcome.retry_after_seconds)
            logger.warning(
                "affiliate %s fetch attempt %d/%d got %s (status=%s); retrying in %dms",
                shape, attempt + 1, attempts, outcome.error, outcome.status_code, delay_ms,
            )
            self.sleep(delay_ms / 1000)

        return FetchResult.failure(FetchErrorKind.NETWORK, attempts=attempts)

    def _request_once(self, url: str) -> _Attempt:
        try:
            response = self.session.get(
                url,
                headers={"x-apikey": self.settings.api_key, "accept": "application/json"},
                timeout=self.settings.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.debug("affiliate request error: %s", exc)
            return _Attempt(error=FetchErrorKind.NETWORK)

        status = response.status_code
        if status == 429 or 500 <= status < 600:
            kind = FetchErrorKind.RATE_LIMITED if status == 429 else FetchErrorKind.SERVER_ERROR
            return _Attempt(
                error=kind,
                status_code=status,
                retry_after_seconds=_parse_retry_after(response.headers.get("retry-after")),
            )
        if status >= 400:
            return _Attempt(error=FetchErrorKind.CLIENT_ERROR, status_code=status)

        try:
            body = response.json()
        except ValueError:
            return _Attempt(error=FetchErrorKind.MALFORMED_PAYLOAD, status_code=status)

        payload = extract_records(body)
        if payload is None:
            return _Attempt(error=FetchErrorKind.MALFORMED_PAYLOAD, status_code=status)
        return _Attempt(payload=payload, status_code=status)


def extract_records(body: Any) -> list[Any] | None:
    """Accept either a bare list or an object wrapping the list under `data`."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return None


def to_players(raw: Sequence[Any]) -> list[PlayerRecord]:
    players: list[PlayerRecord] = []
    for index, row in enumerate(raw):
        record = row if isinstance(row, dict) else {}
        avatar = record.get("steam_avatar")
        players.append(
            PlayerRecord(
                id=str(record.get("uuid") or record.get("id") or index),
                name=str(record.get("name") or record.get("username") or f"Player {index + 1}"),
                avatar=str(avatar) if avatar else None,
                points=_coerce_points(_first_present(record, "wagered", "wager", "points")),
            )
        )
    return players


def _first_present(record: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _coerce_points(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        points = float(value)
    except (TypeError, ValueError):
        return 0.0
    if points != points or points in (float("inf"), float("-inf")):
        return 0.0
    return points


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None
