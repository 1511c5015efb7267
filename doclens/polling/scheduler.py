"""Cancellable repeating task on a daemon thread.

Replaces recursive timeouts: the thread handle and its stop event live on the
task object, so ``stop()`` guarantees no further callback fires.
"""
from __future__ import annotations
import threading
from typing import Callable, Optional

from doclens.utils.logger import get_logger

logger = get_logger(__name__)


class RepeatingTask:
    def __init__(
        self,
        name: str,
        callback: Callable[[], Optional[bool]],
        interval: float,
        initial_delay: float = 0.0,
        max_runs: Optional[int] = None,
    ):
        """``callback`` returning True ends the task early."""
        self.name = name
        self.callback = callback
        self.interval = interval
        self.initial_delay = initial_delay
        self.max_runs = max_runs
        self.runs = 0
        self.errors = 0
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "RepeatingTask":
        with self._lock:
            if self.running:
                return self
            self._stop.clear()
            self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
            self._thread.start()
        return self

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _loop(self) -> None:
        if self._stop.wait(self.initial_delay):
            return
        while not self._stop.is_set():
            self.runs += 1
            try:
                done = self.callback()
            except Exception:
                self.errors += 1
                logger.exception("%s: run %d failed", self.name, self.runs)
                done = False
            if done:
                logger.debug("%s finished after %d run(s)", self.name, self.runs)
                return
            if self.max_runs is not None and self.runs >= self.max_runs:
                logger.info("%s gave up after %d run(s)", self.name, self.runs)
                return
            if self._stop.wait(self.interval):
                return
