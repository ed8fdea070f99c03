from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from leaderboard_node.entities import PlayerRecord
from leaderboard_node.services.live_state import LiveStateCache, is_sane, sort_players


class TestLiveStateCache(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp.name)
        self.cache = LiveStateCache(self.tmp_dir / "leaderboard.json")

    def tearDown(self):
        self._tmp.cleanup()

    def test_starts_empty(self):
        board = self.cache.get()
        self.assertIsNone(board.updated_at)
        self.assertEqual(board.count, 0)

    def test_replace_swaps_the_whole_board(self):
        before = self.cache.get()
        after = self.cache.replace([PlayerRecord(id="a", name="A", points=1.0)], updated_at="2026-01-01T00:00:00.000Z")

        self.assertIsNot(before, after)
        self.assertIs(self.cache.get(), after)
        self.assertEqual(before.count, 0)
        self.assertEqual(after.entries[0].name, "A")

    def test_replace_stamps_current_time_by_default(self):
        board = self.cache.replace([])
        self.assertTrue(board.updated_at.endswith("Z"))

    def test_persist_then_load(self):
        self.cache.replace(
            [PlayerRecord(id="a", name="Alice", points=12.5, avatar="a.png"), PlayerRecord(id="b", name="Bob")],
            updated_at="2026-01-01T00:00:00.000Z",
        )
        self.cache.persist()

        on_disk = json.loads(self.cache.cache_path.read_text())
        self.assertEqual(on_disk["updatedAt"], "2026-01-01T00:00:00.000Z")
        self.assertEqual(on_disk["data"][0], {"id": "a", "name": "Alice", "avatar": "a.png", "points": 12.5})
        self.assertFalse(self.cache.cache_path.with_name("leaderboard.json.tmp").exists())

        restored = LiveStateCache(self.cache.cache_path)
        self.assertTrue(restored.load())
        self.assertEqual(restored.get(), self.cache.get())

    def test_load_missing_file(self):
        self.assertFalse(self.cache.load())
        self.assertEqual(self.cache.get().count, 0)

    def test_load_corrupt_file_keeps_empty_state(self):
        self.cache.cache_path.write_text("{not json")
        self.assertFalse(self.cache.load())
        self.assertEqual(self.cache.get().count, 0)

    def test_load_without_data_list(self):
        self.cache.cache_path.write_text(json.dumps({"updatedAt": "x", "data": {"a": 1}}))
        self.assertFalse(self.cache.load())

    def test_persist_failure_raises(self):
        blocker = self.tmp_dir / "blocker"
        blocker.write_text("")
        cache = LiveStateCache(blocker / "leaderboard.json")
        cache.replace([PlayerRecord(id="a", name="A")])

        with self.assertRaises(OSError):
            cache.persist()


class TestHelpers(unittest.TestCase):
    def test_is_sane(self):
        self.assertTrue(is_sane([PlayerRecord(id="a", name="A")]))
        self.assertFalse(is_sane([]))
        self.assertFalse(is_sane(None))
        self.assertFalse(is_sane({"data": []}))
        self.assertFalse(is_sane([PlayerRecord(id="a", name="A"), {"id": "b"}]))

    def test_sort_players_descending_by_points(self):
        players = [
            PlayerRecord(id="a", name="A", points=1.0),
            PlayerRecord(id="b", name="B", points=30.0),
            PlayerRecord(id="c", name="C", points=7.5),
        ]
        self.assertEqual([p.id for p in sort_players(players)], ["b", "c", "a"])


if __name__ == "__main__":
    unittest.main()
