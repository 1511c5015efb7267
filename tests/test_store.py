import threading

import pytest

from doclens.api.transformers import transform_analysis
from doclens.state.store import (
    ClearDocument, ResetState, Session, SessionStore, SetAnalysisData, SetDocument,
    SetError, SetProcessing, SetView, View, reduce,
)
from doclens.utils.types import HealthSnapshot, ServiceFlags, UploadFile


def analysis(doc_id=None):
    return transform_analysis({"document_id": doc_id, "components": {"summary": {"overview": "A lease."}}})


def test_initial_state():
    s = Session()
    assert s.active_view == View.DASHBOARD
    assert s.current_document is None
    assert s.uploaded_file is None
    assert not s.is_processing
    assert s.last_error is None
    assert s.backend_health == HealthSnapshot()


def test_document_view_requires_document():
    s = reduce(Session(), SetView(View.DOCUMENT))
    assert s.active_view == View.DASHBOARD
    s = reduce(s, SetDocument("d1", "a.pdf"))
    s = reduce(s, SetView(View.DOCUMENT))
    assert s.active_view == View.DOCUMENT
    assert s.current_document.hydrating


def test_error_returns_to_dashboard_and_stops_processing():
    s = reduce(Session(), SetProcessing(True))
    s = reduce(s, SetView(View.ANALYZING))
    s = reduce(s, SetError("Backend down"))
    assert s.active_view == View.DASHBOARD
    assert not s.is_processing
    assert s.last_error == "Backend down"
    cleared = reduce(s, SetError(None))
    assert cleared.last_error is None
    assert cleared.active_view == View.DASHBOARD


def test_analysis_without_document_is_dropped():
    s = Session()
    assert reduce(s, SetAnalysisData(analysis())) is s


def test_set_analysis_attaches_to_current_document():
    s = reduce(Session(), SetDocument("d1", "a.pdf"))
    s = reduce(s, SetAnalysisData(analysis("d1")))
    assert not s.current_document.hydrating
    assert s.current_document.analysis.summary.overview == "A lease."
    # Setting a document without analysis leaves it hydrating, same id or not
    s = reduce(s, SetDocument("d1", "a.pdf"))
    assert s.current_document.hydrating
    s = reduce(s, SetDocument("d2", "b.pdf"))
    assert s.current_document.analysis is None


def test_clear_document_leaves_document_view():
    s = reduce(Session(), SetDocument("d1", "a.pdf"))
    s = reduce(s, SetView(View.DOCUMENT))
    s = reduce(s, ClearDocument())
    assert s.current_document is None
    assert s.active_view == View.DASHBOARD


def test_reset_equals_initial():
    s = reduce(Session(), SetDocument("d1", "a.pdf"))
    s = reduce(s, SetError("x"))
    s = reduce(s, ResetState())
    assert s == Session()
    assert s.generation == 1


def test_unknown_action_raises():
    with pytest.raises(TypeError):
        reduce(Session(), object())


def test_store_upload_flow_and_listeners():
    store = SessionStore()
    seen = []
    unsubscribe = store.subscribe(lambda st: seen.append(st.active_view))
    store.set_uploaded_file(UploadFile("a.pdf", b"%PDF-1.4"))
    store.set_processing(True)
    store.set_view(View.ANALYZING)
    store.set_document("d1", "a.pdf", analysis("d1"))
    store.set_view(View.DOCUMENT)
    store.set_processing(False)
    assert store.state.active_view == View.DOCUMENT
    assert store.state.current_document.filename == "a.pdf"
    assert seen[-1] == View.DOCUMENT
    unsubscribe()
    store.set_backend_health(HealthSnapshot(online=True, services=ServiceFlags(rag_qa=True)))
    assert len(seen) == 6
    assert store.state.backend_health.services.rag_qa


def test_dispatch_if_current_drops_stale_generation():
    store = SessionStore()
    gen = store.state.generation
    store.reset_state()
    assert not store.dispatch_if_current(gen, SetError("late"))
    assert store.state.last_error is None
    assert store.dispatch_if_current(store.state.generation, SetError("now"))
    assert store.state.last_error == "now"


def test_listeners_run_outside_the_lock():
    store = SessionStore()
    finished = []

    def listener(state):
        if state.last_error != "from poller" or state.is_processing:
            return
        # Another thread dispatching while we are notified must not block
        worker = threading.Thread(target=lambda: finished.append(store.set_processing(True)))
        worker.start()
        worker.join(2)

    store.subscribe(listener)
    assert store.dispatch_if_current(store.state.generation, SetError("from poller"))
    assert len(finished) == 1
    assert store.state.is_processing
