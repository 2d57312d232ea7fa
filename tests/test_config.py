import tempfile
import unittest
from pathlib import Path

from bookchat.config.config import DEFAULT_INTERVAL_MS, MIN_INTERVAL_MS, load_config, validate_config


class ConfigTests(unittest.TestCase):
    def test_package_defaults(self) -> None:
        cfg = validate_config(load_config(), env={})
        self.assertEqual(cfg["poller"]["interval_ms"], DEFAULT_INTERVAL_MS)
        self.assertTrue(cfg["repair"]["backup"])
        paths = cfg["data"]["paths"]
        self.assertEqual(paths["chat_history_file"].name, "chat_history.json")
        self.assertEqual(paths["answer_data_file"].name, "answer_data.json")
        self.assertEqual(paths["chat_history_file"].parent.name, "data")
        self.assertTrue(paths["progress_file"].is_absolute())

    def test_empty_config_gets_defaults(self) -> None:
        cfg = validate_config({}, env={})
        self.assertEqual(cfg["data"]["dir"], "./data")
        self.assertEqual(cfg["poller"]["interval_ms"], DEFAULT_INTERVAL_MS)

    def test_environment_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            other = Path(tmp) / "elsewhere" / "answers.json"
            cfg = validate_config({}, env={"DATA_DIR": tmp, "ANSWER_DATA_FILE": str(other)})
            paths = cfg["data"]["paths"]
            self.assertEqual(paths["chat_history_file"], (Path(tmp) / "chat_history.json").resolve())
            self.assertEqual(paths["answer_data_file"], other.resolve())

    def test_invalid_interval_falls_back(self) -> None:
        cfg = validate_config({"poller": {"interval_ms": "soon"}}, env={})
        self.assertEqual(cfg["poller"]["interval_ms"], DEFAULT_INTERVAL_MS)
        cfg = validate_config({"poller": {"interval_ms": 1}}, env={})
        self.assertEqual(cfg["poller"]["interval_ms"], MIN_INTERVAL_MS)

    def test_user_config_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            p = Path(tmp) / "cfg.yml"
            p.write_text("data:\n  dir: %s\npoller:\n  interval_ms: 500\n" % tmp, encoding="utf-8")
            cfg = validate_config(load_config(str(p)), env={})
            self.assertEqual(cfg["poller"]["interval_ms"], 500)
            self.assertEqual(cfg["data"]["paths"]["chat_history_file"].parent, Path(tmp).resolve())

    def test_missing_config_file_exits(self) -> None:
        with self.assertRaises(SystemExit):
            load_config("/nonexistent/bookchat.yml")


if __name__ == "__main__":
    unittest.main()
