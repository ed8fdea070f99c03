"""Admin-controlled contest settings with best-effort JSON persistence."""
from __future__ import annotations

import json
import logging
import math
import threading
from pathlib import Path
from typing import Any

from leaderboard_node.entities import ContestSettings, ContestWindow, DEFAULT_PRIZES
from leaderboard_node.utils.files import atomic_write_json
from leaderboard_node.utils.timestamps import parse_timestamp, to_iso

logger = logging.getLogger(__name__)


class SettingsStore:
    def __init__(self, path: str | Path, defaults: ContestSettings | None = None):
        self.path = Path(path)
        self._settings = defaults or ContestSettings()
        self._save_lock = threading.Lock()

    def get(self) -> ContestSettings:
        return self._settings

    def replace(self, settings: ContestSettings) -> ContestSettings:
        self._settings = settings
        self.save()
        return settings

    def update(self, **changes: Any) -> ContestSettings:
        return self.replace(self._settings.with_changes(**changes))

    def apply(self, **changes: Any) -> ContestSettings:
        """Swap in the changed settings without writing them; call `save` afterwards."""
        self._settings = self._settings.with_changes(**changes)
        return self._settings

    def save(self) -> bool:
        try:
            with self._save_lock:
                atomic_write_json(self.path, settings_to_dict(self._settings))
        except OSError as exc:
            logger.warning("[settings] save failed: %s", exc)
            return False
        return True

    def load(self) -> bool:
        """Merge persisted values over the current defaults."""
        if not self.path.exists():
            return False
        try:
            parsed = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            logger.warning("[settings] load failed: %s", exc)
            return False
        if not isinstance(parsed, dict):
            return False

        self._settings = merge_settings(self._settings, parsed)
        logger.info("[settings] loaded from disk")
        return True


def settings_to_dict(settings: ContestSettings) -> dict[str, Any]:
    return {
        "countdownEnd": to_iso(settings.countdown_end),
        "contest": {
            "start": to_iso(settings.contest.start),
            "end": to_iso(settings.contest.end),
        },
        "announcement": settings.announcement,
        "prizes": list(settings.prizes),
        "hero": settings.hero.to_dict(),
    }


def merge_settings(current: ContestSettings, payload: dict[str, Any]) -> ContestSettings:
    changes: dict[str, Any] = {}

    countdown_end = parse_timestamp(payload.get("countdownEnd"))
    if countdown_end is not None:
        changes["countdown_end"] = countdown_end

    contest = payload.get("contest")
    if isinstance(contest, dict):
        changes["contest"] = ContestWindow(
            start=parse_timestamp(contest.get("start")),
            end=parse_timestamp(contest.get("end")),
        )

    announcement = payload.get("announcement")
    if isinstance(announcement, str):
        changes["announcement"] = announcement

    prizes = normalize_prizes(payload.get("prizes"))
    if prizes is not None:
        changes["prizes"] = prizes

    hero = payload.get("hero")
    if isinstance(hero, dict):
        changes["hero"] = current.hero.merged(hero)

    return current.with_changes(**changes)


def normalize_prizes(value: Any) -> tuple[int, ...] | None:
    """Return ten floored prize amounts, or None when `value` is not valid."""
    if not isinstance(value, (list, tuple)) or len(value) != len(DEFAULT_PRIZES):
        return None
    prizes: list[int] = []
    for item in value:
        if isinstance(item, bool):
            return None
        try:
            amount = float(item)
        except (TypeError, ValueError):
            return None
        if amount != amount or amount in (float("inf"), float("-inf")):
            return None
        prizes.append(math.floor(amount))
    return tuple(prizes)
