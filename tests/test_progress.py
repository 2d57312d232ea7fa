import json
import tempfile
import unittest
from pathlib import Path

from bookchat.history.store import StoreFormatError
from bookchat.progress.persist import load_progress, save_progress, update_progress


class ProgressTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "data" / "progress.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_first_load_creates_empty_file(self) -> None:
        self.assertEqual(load_progress(self.path), {})
        self.assertEqual(json.loads(self.path.read_text(encoding="utf-8")), {})

    def test_update_merges_top_level_keys(self) -> None:
        save_progress(self.path, {"p1": {"correct": 1}, "p2": {"correct": 0}})
        merged = update_progress(self.path, {"p2": {"correct": 2}, "p3": {"correct": 1}})
        self.assertEqual(merged, {"p1": {"correct": 1}, "p2": {"correct": 2}, "p3": {"correct": 1}})
        self.assertEqual(load_progress(self.path), merged)

    def test_invalid_file_loads_empty(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{broken", encoding="utf-8")
        self.assertEqual(load_progress(self.path), {})
        self.path.write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(load_progress(self.path), {})

    def test_update_refuses_to_overwrite_corrupt_file(self) -> None:
        self.path.parent.mkdir(parents=True)
        broken = '{"p1": {"correct": 5}, "p2": '
        self.path.write_text(broken, encoding="utf-8")
        with self.assertRaises(StoreFormatError):
            update_progress(self.path, {"p3": {"correct": 1}})
        self.assertEqual(self.path.read_text(encoding="utf-8"), broken)

        self.path.write_text("[1, 2]", encoding="utf-8")
        with self.assertRaises(StoreFormatError):
            update_progress(self.path, {"p3": {"correct": 1}})
        self.assertEqual(self.path.read_text(encoding="utf-8"), "[1, 2]")

    def test_patch_must_be_a_dict(self) -> None:
        with self.assertRaises(TypeError):
            update_progress(self.path, ["not", "a", "dict"])


if __name__ == "__main__":
    unittest.main()
