from __future__ import annotations

"""AnswerPoller: periodically reconcile the answer data file into the chat history."""

import sys
import threading
from pathlib import Path
from typing import Callable, Optional

from .reconcile import ReconcileResult, update_chat_history
from .schema import EMPTY_ANSWER_DATA, EMPTY_CHAT_HISTORY
from .store import PathLike, ensure_file_exists

DEFAULT_INTERVAL_MS = 2000


class AnswerPoller:
    """Handle for one polling loop over a (chat history, answer data) file pair.

    One cycle runs immediately on ``start()``, then one per interval on a
    daemon ``threading.Timer``. Cycles never overlap: a tick that finds the
    previous cycle still running is skipped. ``stop()`` cancels the pending
    timer but lets an in-flight cycle finish and persist.
    """

    def __init__(
        self,
        chat_history_file: PathLike,
        answer_data_file: PathLike,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        on_cycle: Optional[Callable[[ReconcileResult], None]] = None,
    ) -> None:
        if int(interval_ms) <= 0:
            raise ValueError("interval_ms must be positive")
        self.chat_history_file = Path(chat_history_file)
        self.answer_data_file = Path(answer_data_file)
        self.interval_ms = int(interval_ms)
        self.on_cycle = on_cycle
        self.cycles = 0
        self.skipped_ticks = 0
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._running = False

    def run_cycle(self) -> Optional[ReconcileResult]:
        """Run one reconcile cycle; returns None if another cycle is in flight."""
        if not self._cycle_lock.acquire(blocking=False):
            self.skipped_ticks += 1
            return None
        return self._run_locked()

    def _run_locked(self) -> ReconcileResult:
        # caller holds _cycle_lock
        try:
            result = update_chat_history(self.chat_history_file, self.answer_data_file)
            self.cycles += 1
        finally:
            self._cycle_lock.release()
        if self.on_cycle:
            self.on_cycle(result)
        return result

    def _arm_timer(self) -> None:
        if self._timer:
            self._timer.cancel()
        self._timer = threading.Timer(self.interval_ms / 1000.0, self._on_tick)
        self._timer.daemon = True
        self._timer.start()

    def _on_tick(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._arm_timer()
            if not self._cycle_lock.acquire(blocking=False):
                self.skipped_ticks += 1
                return
        try:
            self._run_locked()
        except Exception as e:
            # next tick retries
            print(f"ERROR: polling cycle failed: {e}", file=sys.stderr)

    def start(self) -> "AnswerPoller":
        with self._lock:
            if self._running:
                return self
        ensure_file_exists(self.chat_history_file, EMPTY_CHAT_HISTORY)
        ensure_file_exists(self.answer_data_file, EMPTY_ANSWER_DATA)
        print(f"Polling {self.answer_data_file} every {self.interval_ms}ms -> {self.chat_history_file}")
        self.run_cycle()
        with self._lock:
            self._running = True
            self._arm_timer()
        return self

    def stop(self) -> bool:
        with self._lock:
            if not self._running:
                return False
            self._running = False
            if self._timer:
                self._timer.cancel()
                self._timer = None
        print("Polling stopped")
        return True

    def is_running(self) -> bool:
        return self._running

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no cycle is in flight."""
        acquired = self._cycle_lock.acquire(timeout=-1 if timeout is None else timeout)
        if acquired:
            self._cycle_lock.release()
        return acquired


def start_polling(
    chat_history_file: PathLike,
    answer_data_file: PathLike,
    interval_ms: int = DEFAULT_INTERVAL_MS,
    on_cycle: Optional[Callable[[ReconcileResult], None]] = None,
) -> AnswerPoller:
    """Start polling and return the handle to pass to ``stop_polling``."""
    return AnswerPoller(chat_history_file, answer_data_file, interval_ms, on_cycle).start()


def stop_polling(handle: Optional[AnswerPoller]) -> bool:
    if handle is None:
        return False
    return handle.stop()
