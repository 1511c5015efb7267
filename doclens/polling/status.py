from __future__ import annotations
from typing import Optional

from doclens.api.client import DocumentAPI
from doclens.polling.scheduler import RepeatingTask
from doclens.state.store import SessionStore, SetProcessingStatus
from doclens.utils.logger import get_logger
from doclens.utils.types import ProcessingStatus

logger = get_logger(__name__)


class ProcessingStatusPoller:
    """Polls background (vector / Q&A) readiness after the main analysis returns.

    Q&A is additive, so every failure mode ends quietly: the backend has no
    status endpoint, the attempt budget runs out, or the user moved on to a
    different document.
    """

    def __init__(
        self,
        client: DocumentAPI,
        store: SessionStore,
        document_id: str,
        initial_delay: float = 3.0,
        interval: float = 10.0,
        max_attempts: int = 30,
    ):
        self.client = client
        self.store = store
        self.document_id = document_id
        self.initial_delay = initial_delay
        self.interval = interval
        self.max_attempts = max_attempts
        self.last_status: Optional[ProcessingStatus] = None
        self.unavailable = False
        self._generation = store.state.generation
        self._task: Optional[RepeatingTask] = None

    @property
    def running(self) -> bool:
        return self._task is not None and self._task.running

    @property
    def attempts(self) -> int:
        return self._task.runs if self._task else 0

    def poll_once(self) -> bool:
        """One status request; True when polling should stop."""
        doc = self.store.state.current_document
        if doc is None or doc.id != self.document_id:
            logger.debug("Document %s no longer active; status polling stopped", self.document_id)
            return True
        result = self.client.check_processing_status(self.document_id)
        if not result.ok:
            if result.unavailable:
                logger.info("Processing status not available on this backend")
                self.unavailable = True
                return True
            logger.debug("Status poll for %s failed: %s", self.document_id, result.error)
            return False
        self.last_status = result.data
        if not self.store.dispatch_if_current(self._generation, SetProcessingStatus(result.data)):
            return True
        if result.data.ready:
            logger.info("Q&A ready for %s", self.document_id)
            return True
        return False

    def start(self) -> "ProcessingStatusPoller":
        if self.running:
            return self
        self._generation = self.store.state.generation
        self._task = RepeatingTask(
            f"status-{self.document_id}",
            self.poll_once,
            interval=self.interval,
            initial_delay=self.initial_delay,
            max_runs=self.max_attempts,
        ).start()
        return self

    def stop(self) -> None:
        if self._task is not None:
            self._task.stop()
