import json
import tempfile
import threading
import time
import unittest
from pathlib import Path
from unittest import mock

from bookchat.history import poller as poller_module
from bookchat.history.poller import AnswerPoller, start_polling, stop_polling


def _wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


class AnswerPollerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.chat = self.dir / "chat_history.json"
        self.answers = self.dir / "answer_data.json"
        self.chat.write_text(
            json.dumps([{"id": "q1", "status": "pending"}, {"id": "q2", "status": "pending"}]),
            encoding="utf-8",
        )
        self.answers.write_text(json.dumps({"answers": [{"id": "q1", "answer": "A1"}]}), encoding="utf-8")
        self.handles = []

    def tearDown(self) -> None:
        for h in self.handles:
            stop_polling(h)
            h.wait_idle(timeout=5)
        self._tmp.cleanup()

    def _status(self, entry_id: str):
        try:
            entries = json.loads(self.chat.read_text(encoding="utf-8"))
        except ValueError:
            # caught the poller mid-write
            return None
        for e in entries:
            if e["id"] == entry_id:
                return e["status"]
        raise KeyError(entry_id)

    def test_start_runs_one_cycle_immediately(self) -> None:
        handle = start_polling(self.chat, self.answers, interval_ms=60000)
        self.handles.append(handle)
        self.assertTrue(handle.is_running())
        self.assertEqual(handle.cycles, 1)
        self.assertEqual(self._status("q1"), "answered")
        self.assertEqual(self._status("q2"), "pending")

    def test_later_answers_are_picked_up(self) -> None:
        handle = start_polling(self.chat, self.answers, interval_ms=50)
        self.handles.append(handle)
        self.answers.write_text(
            json.dumps({"answers": [{"id": "q1", "answer": "A1"}, {"id": "q2", "answer": "A2"}]}),
            encoding="utf-8",
        )
        self.assertTrue(_wait_for(lambda: self._status("q2") == "answered"))

    def test_stop_cancels_timer(self) -> None:
        handle = start_polling(self.chat, self.answers, interval_ms=50)
        self.assertTrue(_wait_for(lambda: handle.cycles >= 2))
        self.assertTrue(stop_polling(handle))
        self.assertTrue(handle.wait_idle(timeout=5))
        cycles = handle.cycles
        time.sleep(0.3)
        self.assertEqual(handle.cycles, cycles)
        self.assertFalse(handle.is_running())
        self.assertFalse(stop_polling(handle))

    def test_stop_lets_in_flight_cycle_finish(self) -> None:
        entered = threading.Event()
        release = threading.Event()
        real_cycle = poller_module.update_chat_history
        calls = []

        def gated_cycle(chat, answers):
            calls.append(chat)
            if len(calls) > 1:
                entered.set()
                release.wait(5)
            return real_cycle(chat, answers)

        with mock.patch.object(poller_module, "update_chat_history", side_effect=gated_cycle):
            handle = start_polling(self.chat, self.answers, interval_ms=50)
            self.handles.append(handle)
            self.assertTrue(entered.wait(5))
            self.answers.write_text(
                json.dumps({"answers": [{"id": "q1", "answer": "A1"}, {"id": "q2", "answer": "A2"}]}),
                encoding="utf-8",
            )
            self.assertTrue(stop_polling(handle))
            self.assertEqual(handle.cycles, 1)
            release.set()
            self.assertTrue(handle.wait_idle(timeout=5))

        self.assertEqual(handle.cycles, 2)
        self.assertEqual(self._status("q2"), "answered")

    def test_stop_polling_without_handle(self) -> None:
        self.assertFalse(stop_polling(None))

    def test_tick_is_skipped_while_cycle_in_flight(self) -> None:
        poller = AnswerPoller(self.chat, self.answers, interval_ms=60000)
        poller._cycle_lock.acquire()
        try:
            self.assertIsNone(poller.run_cycle())
        finally:
            poller._cycle_lock.release()
        self.assertEqual(poller.skipped_ticks, 1)
        self.assertEqual(poller.cycles, 0)
        self.assertIsNotNone(poller.run_cycle())

    def test_handles_are_independent(self) -> None:
        other_chat = self.dir / "other_chat.json"
        other_answers = self.dir / "other_answers.json"
        a = start_polling(self.chat, self.answers, interval_ms=50)
        b = start_polling(other_chat, other_answers, interval_ms=50)
        self.handles.extend([a, b])
        stop_polling(a)
        self.assertFalse(a.is_running())
        self.assertTrue(b.is_running())
        cycles = b.cycles
        self.assertTrue(_wait_for(lambda: b.cycles > cycles))

    def test_on_cycle_callback(self) -> None:
        seen = []
        handle = start_polling(self.chat, self.answers, interval_ms=60000, on_cycle=seen.append)
        self.handles.append(handle)
        self.assertEqual(len(seen), 1)
        self.assertEqual(seen[0].updated_count, 1)

    def test_invalid_interval(self) -> None:
        with self.assertRaises(ValueError):
            AnswerPoller(self.chat, self.answers, interval_ms=0)


if __name__ == "__main__":
    unittest.main()
