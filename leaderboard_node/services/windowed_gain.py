"""Reconstruct per-window point gains from cumulative snapshots.

For every player seen inside `[start, end]`:

    baseline = last total before `start`, else first total inside the window
    gain     = max(0, peak total inside the window - baseline)

Players with no in-window snapshot, or with zero gain, are left out.
"""
from __future__ import annotations

from typing import Iterable

from leaderboard_node.entities import LiveLeaderboard, PlayerRecord, Snapshot
from leaderboard_node.services.live_state import LiveStateCache
from leaderboard_node.services.snapshot_store import SnapshotStore

PLACEHOLDER_NAME = "Player"


def compute_windowed(
    snapshots: Iterable[Snapshot],
    start_ms: int,
    end_ms: int,
    live: LiveLeaderboard | None = None,
) -> list[PlayerRecord]:
    if end_ms < start_ms:
        raise ValueError(f"window end {end_ms} precedes start {start_ms}")

    before: dict[str, float] = {}
    first_in: dict[str, float] = {}
    peak_in: dict[str, float] = {}

    for snapshot in sorted(snapshots, key=lambda snap: snap.timestamp):
        if snapshot.timestamp < start_ms:
            before.update(snapshot.totals)
        elif snapshot.timestamp <= end_ms:
            for player_id, points in snapshot.totals.items():
                first_in.setdefault(player_id, points)
                peak = peak_in.get(player_id)
                if peak is None or points > peak:
                    peak_in[player_id] = points

    by_id = {entry.id: entry for entry in live.entries} if live is not None else {}

    results: list[PlayerRecord] = []
    for player_id, peak in peak_in.items():
        baseline = before.get(player_id, first_in[player_id])
        gain = max(0.0, peak - baseline)
        if gain <= 0:
            continue
        current = by_id.get(player_id)
        results.append(
            PlayerRecord(
                id=player_id,
                name=current.name if current is not None else PLACEHOLDER_NAME,
                avatar=current.avatar if current is not None else None,
                points=gain,
            )
        )

    results.sort(key=lambda record: record.points, reverse=True)
    return results


class WindowedGainCalculator:
    def __init__(self, snapshot_store: SnapshotStore, live_state: LiveStateCache):
        self.snapshot_store = snapshot_store
        self.live_state = live_state

    def compute(self, start_ms: int, end_ms: int) -> list[PlayerRecord]:
        if end_ms < start_ms:
            raise ValueError(f"window end {end_ms} precedes start {start_ms}")
        snapshots = self.snapshot_store.read_all()
        if not snapshots:
            return []
        return compute_windowed(snapshots, start_ms, end_ms, self.live_state.get())
