"""Tests for the append-only NDJSON snapshot log."""
from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from leaderboard_node.entities import PlayerRecord, Snapshot
from leaderboard_node.services.snapshot_store import SnapshotStore, parse_row


class TestSnapshotStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp.name)
        self.path = self.tmp_dir / "history.ndjson"
        self.store = SnapshotStore(self.path)

    def tearDown(self):
        self._tmp.cleanup()

    def test_read_missing_file_is_empty(self):
        self.assertEqual(self.store.read_all(), [])

    def test_append_writes_one_line_per_snapshot(self):
        self.store.append(Snapshot(timestamp=1000, totals={"a": 10.0}))
        self.store.append(Snapshot(timestamp=2000, totals={"a": 12.0, "b": 1.0}))

        lines = self.path.read_text().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertEqual(json.loads(lines[1]), {"ts": 2000, "p": {"a": 12.0, "b": 1.0}})

    def test_n_appends_read_back_sorted(self):
        for ts in (3000, 1000, 2000, 5000, 4000):
            self.store.append(Snapshot(timestamp=ts, totals={"a": float(ts)}))

        snapshots = self.store.read_all()

        self.assertEqual([s.timestamp for s in snapshots], [1000, 2000, 3000, 4000, 5000])
        self.assertEqual(snapshots[0].totals, {"a": 1000.0})

    def test_corrupted_trailing_line_is_skipped(self):
        self.store.append(Snapshot(timestamp=1000, totals={"a": 1.0}))
        self.store.append(Snapshot(timestamp=2000, totals={"a": 2.0}))
        with self.path.open("a") as handle:
            handle.write('{"ts": 3000, "p": {"a"')

        snapshots = self.store.read_all()

        self.assertEqual([s.timestamp for s in snapshots], [1000, 2000])

    def test_malformed_rows_in_the_middle_are_skipped(self):
        self.path.write_text(
            "\n".join([
                '{"ts": 1, "p": {"a": 1}}',
                "not json",
                '{"p": {"a": 2}}',
                '{"ts": "3", "p": {"a": 3}}',
                '{"ts": 4, "p": [1, 2]}',
                "[1, 2, 3]",
                "",
                '{"ts": 5, "p": {"a": 5, "b": "x"}}',
            ])
            + "\n"
        )

        snapshots = self.store.read_all()

        self.assertEqual([s.timestamp for s in snapshots], [1, 5])
        self.assertEqual(snapshots[1].totals, {"a": 5.0})

    def test_non_finite_timestamps_are_skipped(self):
        self.store.append(Snapshot(timestamp=1, totals={"a": 1.0}))
        with self.path.open("a") as handle:
            handle.write('{"ts": NaN, "p": {"a": 5}}\n')
            handle.write('{"ts": Infinity, "p": {"a": 6}}\n')
            handle.write('{"ts": -Infinity, "p": {"a": 7}}\n')
        self.store.append(Snapshot(timestamp=2, totals={"a": 2.0}))

        self.assertEqual([s.timestamp for s in self.store.read_all()], [1, 2])

    def test_non_finite_totals_are_dropped(self):
        self.path.write_text('{"ts": 1, "p": {"a": NaN, "b": 3}}\n')
        self.assertEqual(self.store.read_all()[0].totals, {"b": 3.0})

    def test_unreadable_log_reads_as_empty(self):
        unreadable = SnapshotStore(self.tmp_dir)  # a directory exists but cannot be read as a file

        with self.assertLogs("leaderboard_node.services.snapshot_store", level="WARNING"):
            self.assertEqual(unreadable.read_all(), [])

    def test_append_players_uses_ids_and_points(self):
        players = [PlayerRecord(id="a", name="A", points=10), PlayerRecord(id="b", name="B", points=2.5)]

        snapshot = self.store.append_players(players, timestamp=42)

        self.assertEqual(snapshot, Snapshot(timestamp=42, totals={"a": 10.0, "b": 2.5}))
        self.assertEqual(self.store.read_all(), [snapshot])

    def test_append_failure_raises_os_error(self):
        store = SnapshotStore(self.tmp_dir)  # a directory cannot be opened for append
        with self.assertRaises(OSError):
            store.append(Snapshot(timestamp=1, totals={}))


class TestParseRow(unittest.TestCase):
    def test_missing_totals_is_an_empty_snapshot(self):
        self.assertEqual(parse_row('{"ts": 7}'), Snapshot(timestamp=7, totals={}))

    def test_boolean_timestamp_is_rejected(self):
        self.assertIsNone(parse_row('{"ts": true, "p": {}}'))


if __name__ == "__main__":
    unittest.main()
