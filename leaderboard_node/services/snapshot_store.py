"""Append-only NDJSON log of point-in-time leaderboard totals."""
from __future__ import annotations

import json
import logging
import math
import os
import threading
from pathlib import Path
from typing import Any, Iterable

from leaderboard_node.entities import PlayerRecord, Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """One JSON object per line: `{"ts": <epoch-ms>, "p": {<id>: <points>}}`.

    Reads are a full linear scan; lines that fail to parse are skipped.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._write_lock = threading.Lock()

    def append(self, snapshot: Snapshot) -> None:
        """Write one snapshot as a single line. Raises OSError on failure."""
        line = json.dumps(snapshot.to_row(), separators=(",", ":")) + "\n"
        with self._write_lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line)
                handle.flush()
                os.fsync(handle.fileno())

    def append_players(self, players: Iterable[PlayerRecord], timestamp: int) -> Snapshot:
        snapshot = Snapshot(
            timestamp=timestamp,
            totals={str(player.id): float(player.points or 0) for player in players},
        )
        self.append(snapshot)
        return snapshot

    def read_all(self) -> list[Snapshot]:
        if not self.path.exists():
            return []

        snapshots: list[Snapshot] = []
        skipped = 0
        try:
            with self.path.open("r", encoding="utf-8", errors="replace") as handle:
                for line_no, line in enumerate(handle, start=1):
                    if not line.strip():
                        continue
                    snapshot = parse_row(line)
                    if snapshot is None:
                        skipped += 1
                        logger.debug("skipping malformed snapshot line %d in %s", line_no, self.path)
                        continue
                    snapshots.append(snapshot)
        except OSError as exc:
            logger.warning("[history] read of %s failed: %s", self.path, exc)
            return []

        if skipped:
            logger.info("skipped %d malformed snapshot line(s) in %s", skipped, self.path)

        snapshots.sort(key=lambda snap: snap.timestamp)
        return snapshots


def parse_row(line: str) -> Snapshot | None:
    try:
        row = json.loads(line)
    except ValueError:
        return None
    if not isinstance(row, dict):
        return None

    ts = row.get("ts")
    if isinstance(ts, bool) or not isinstance(ts, (int, float)) or not math.isfinite(ts):
        return None
    totals = row.get("p")
    if totals is None:
        totals = {}
    if not isinstance(totals, dict):
        return None

    return Snapshot(timestamp=int(ts), totals=_clean_totals(totals))


def _clean_totals(totals: dict[str, Any]) -> dict[str, float]:
    cleaned: dict[str, float] = {}
    for player_id, points in totals.items():
        if isinstance(points, bool) or not isinstance(points, (int, float)) or not math.isfinite(points):
            continue
        cleaned[str(player_id)] = float(points)
    return cleaned
