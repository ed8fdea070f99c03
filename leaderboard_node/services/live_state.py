"""In-memory holder of the current full-history leaderboard."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from leaderboard_node.entities import LiveLeaderboard, PlayerRecord
from leaderboard_node.utils.files import atomic_write_json
from leaderboard_node.utils.timestamps import now_ms, to_iso

logger = logging.getLogger(__name__)


def sort_players(players: Iterable[PlayerRecord]) -> list[PlayerRecord]:
    return sorted(players, key=lambda player: player.points, reverse=True)


def is_sane(players: object) -> bool:
    if not isinstance(players, list) or not players:
        return False
    return all(isinstance(player, PlayerRecord) for player in players)


class LiveStateCache:
    """Owns the LiveLeaderboard. Writes replace the whole reference, never mutate it."""

    def __init__(self, cache_path: str | Path):
        self.cache_path = Path(cache_path)
        self._board = LiveLeaderboard()

    def get(self) -> LiveLeaderboard:
        return self._board

    def replace(self, entries: Iterable[PlayerRecord], updated_at: str | None = None) -> LiveLeaderboard:
        board = LiveLeaderboard(
            updated_at=updated_at or to_iso(now_ms()),
            entries=tuple(entries),
        )
        self._board = board
        return board

    def persist(self) -> None:
        """Raises OSError when the cache file cannot be written."""
        board = self._board
        atomic_write_json(
            self.cache_path,
            {"updatedAt": board.updated_at, "data": board.to_list()},
        )

    def load(self) -> bool:
        if not self.cache_path.exists():
            return False
        try:
            parsed = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("[cache] load failed: %s", exc)
            return False

        data = parsed.get("data") if isinstance(parsed, dict) else None
        if not isinstance(data, list):
            logger.warning("[cache] ignoring %s: no data list", self.cache_path)
            return False

        entries = [PlayerRecord.from_dict(row) for row in data if isinstance(row, dict)]
        self.replace(entries, updated_at=parsed.get("updatedAt") or None)
        logger.info("[cache] loaded %d records from disk", len(entries))
        return True
