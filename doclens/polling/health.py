"""Backend health monitoring.

``/health`` and ``/rag_health`` are queried together every ``interval`` seconds
and folded into one ``HealthSnapshot`` on the session store. A failed health
call marks the whole backend offline; a failed RAG call only turns off Q&A.
"""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from doclens.api.client import DocumentAPI
from doclens.api.transformers import health_snapshot
from doclens.polling.scheduler import RepeatingTask
from doclens.state.store import SessionStore, SetBackendHealth
from doclens.utils.logger import get_logger
from doclens.utils.types import HealthSnapshot

logger = get_logger(__name__)


def run_health_check(client: DocumentAPI) -> HealthSnapshot:
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="health") as pool:
        health_future = pool.submit(client.health_check)
        rag_future = pool.submit(client.check_rag_health)
        health = health_future.result()
        rag = rag_future.result()
    if not health.ok:
        logger.warning("Backend health check failed: %s", health.error)
        return HealthSnapshot()
    if not rag.ok:
        logger.info("RAG health unavailable: %s", rag.error)
    return health_snapshot(health.data, rag.data if rag.ok else None)


class HealthMonitor:
    def __init__(self, client: DocumentAPI, store: SessionStore, interval: float = 30.0):
        self.client = client
        self.store = store
        self.interval = interval
        self._task: Optional[RepeatingTask] = None
        self._generation = store.state.generation

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.running

    def check_once(self) -> HealthSnapshot:
        snapshot = run_health_check(self.client)
        self.store.dispatch_if_current(self._generation, SetBackendHealth(snapshot))
        return snapshot

    def _tick(self) -> bool:
        self.check_once()
        # Session was reset underneath us; stop dispatching into it
        return self.store.state.generation != self._generation

    def start(self, check_now: bool = True) -> "HealthMonitor":
        """Bind to the current session generation and begin polling.

        With ``check_now`` the first check runs synchronously so the caller
        renders with a real snapshot.
        """
        if self.running:
            return self
        self._generation = self.store.state.generation
        if check_now:
            self.check_once()
        self._task = RepeatingTask(
            "health-monitor", self._tick, interval=self.interval,
            initial_delay=self.interval if check_now else 0.0,
        ).start()
        return self

    def stop(self) -> None:
        if self._task is not None:
            self._task.stop()
            self._task = None
