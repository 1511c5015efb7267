"""Session state: one immutable ``Session`` record, named actions, a pure reducer.

``SessionStore`` wraps the reducer with a lock so the UI thread and the
background pollers serialize every transition through ``dispatch``.
"""
from __future__ import annotations
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Union

from doclens.utils.logger import get_logger
from doclens.utils.types import AnalysisResult, HealthSnapshot, ProcessingStatus, UploadFile

logger = get_logger(__name__)


class View(str, Enum):
    DASHBOARD = "dashboard"
    ANALYZING = "analyzing"
    DOCUMENT = "document"


@dataclass(frozen=True)
class Document:
    id: str
    filename: str
    analysis: Optional[AnalysisResult] = None

    @property
    def hydrating(self) -> bool:
        return self.analysis is None


@dataclass(frozen=True)
class Session:
    active_view: View = View.DASHBOARD
    current_document: Optional[Document] = None
    uploaded_file: Optional[UploadFile] = None
    is_processing: bool = False
    last_error: Optional[str] = None
    backend_health: HealthSnapshot = field(default_factory=HealthSnapshot)
    processing_status: Optional[ProcessingStatus] = None
    # Bumped on reset so pollers can detect a torn-down session
    generation: int = field(default=0, compare=False)


# ---- Actions ---------------------------------------------------------------

@dataclass(frozen=True)
class SetView:
    view: View


@dataclass(frozen=True)
class SetDocument:
    id: str
    filename: str
    analysis: Optional[AnalysisResult] = None


@dataclass(frozen=True)
class ClearDocument:
    pass


@dataclass(frozen=True)
class SetUploadedFile:
    file: Optional[UploadFile]


@dataclass(frozen=True)
class SetProcessing:
    processing: bool


@dataclass(frozen=True)
class SetError:
    message: Optional[str]


@dataclass(frozen=True)
class SetAnalysisData:
    result: AnalysisResult


@dataclass(frozen=True)
class SetBackendHealth:
    snapshot: HealthSnapshot


@dataclass(frozen=True)
class SetProcessingStatus:
    status: Optional[ProcessingStatus]


@dataclass(frozen=True)
class ResetState:
    pass


Action = Union[
    SetView, SetDocument, ClearDocument, SetUploadedFile, SetProcessing, SetError,
    SetAnalysisData, SetBackendHealth, SetProcessingStatus, ResetState,
]


def reduce(state: Session, action: Action) -> Session:
    if isinstance(action, SetView):
        if action.view == View.DOCUMENT and state.current_document is None:
            logger.debug("Ignoring document view without a current document")
            return state
        return replace(state, active_view=View(action.view))

    if isinstance(action, SetDocument):
        # Omitted analysis always means hydrating, even for the same id
        return replace(state, current_document=Document(action.id, action.filename, action.analysis))

    if isinstance(action, ClearDocument):
        view = View.DASHBOARD if state.active_view == View.DOCUMENT else state.active_view
        return replace(state, current_document=None, processing_status=None, active_view=view)

    if isinstance(action, SetUploadedFile):
        return replace(state, uploaded_file=action.file)

    if isinstance(action, SetProcessing):
        return replace(state, is_processing=bool(action.processing))

    if isinstance(action, SetError):
        if action.message is None:
            return replace(state, last_error=None)
        return replace(state, last_error=action.message, active_view=View.DASHBOARD, is_processing=False)

    if isinstance(action, SetAnalysisData):
        if state.current_document is None:
            logger.warning("Analysis data received with no current document; dropped")
            return state
        return replace(state, current_document=replace(state.current_document, analysis=action.result))

    if isinstance(action, SetBackendHealth):
        return replace(state, backend_health=action.snapshot)

    if isinstance(action, SetProcessingStatus):
        return replace(state, processing_status=action.status)

    if isinstance(action, ResetState):
        return Session(generation=state.generation + 1)

    raise TypeError(f"Unknown action: {action!r}")


Listener = Callable[[Session], None]


class SessionStore:
    """Thread-safe container for one session's state."""

    def __init__(self, initial: Optional[Session] = None):
        self._state = initial or Session()
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> Session:
        return self._state

    def dispatch(self, action: Action) -> Session:
        return self._apply(action)

    def dispatch_if_current(self, generation: int, action: Action) -> bool:
        """Dispatch only if the session has not been reset since ``generation`` was read."""
        return self._apply(action, generation) is not None

    def _apply(self, action: Action, generation: Optional[int] = None) -> Optional[Session]:
        # Reduce under the lock; listeners run after it is released
        with self._lock:
            if generation is not None and self._state.generation != generation:
                logger.debug("Dropping stale %s (generation %d)", type(action).__name__, generation)
                return None
            self._state = reduce(self._state, action)
            state = self._state
            listeners = list(self._listeners)
        logger.debug("dispatch %s -> view=%s", type(action).__name__, state.active_view.value)
        for listener in listeners:
            listener(state)
        return state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # Action shortcuts
    def set_view(self, view: View) -> Session:
        return self.dispatch(SetView(view))

    def set_document(self, doc_id: str, filename: str, analysis: Optional[AnalysisResult] = None) -> Session:
        return self.dispatch(SetDocument(doc_id, filename, analysis))

    def clear_document(self) -> Session:
        return self.dispatch(ClearDocument())

    def set_uploaded_file(self, file: Optional[UploadFile]) -> Session:
        return self.dispatch(SetUploadedFile(file))

    def set_processing(self, processing: bool) -> Session:
        return self.dispatch(SetProcessing(processing))

    def set_error(self, message: Optional[str]) -> Session:
        return self.dispatch(SetError(message))

    def set_analysis_data(self, result: AnalysisResult) -> Session:
        return self.dispatch(SetAnalysisData(result))

    def set_backend_health(self, snapshot: HealthSnapshot) -> Session:
        return self.dispatch(SetBackendHealth(snapshot))

    def set_processing_status(self, status: Optional[ProcessingStatus]) -> Session:
        return self.dispatch(SetProcessingStatus(status))

    def reset_state(self) -> Session:
        return self.dispatch(ResetState())
