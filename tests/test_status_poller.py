from doclens.api.client import APIResult
from doclens.api.transformers import transform_processing_status
from doclens.polling.status import ProcessingStatusPoller
from doclens.state.store import SessionStore


class StubClient:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def check_processing_status(self, document_id):
        self.calls.append(document_id)
        return self.results.pop(0)


def store_with_doc(doc_id="d1"):
    store = SessionStore()
    store.set_document(doc_id, "a.pdf")
    return store


def status(**kw):
    return APIResult.success(transform_processing_status(kw))


def test_poll_until_ready():
    store = store_with_doc()
    client = StubClient(status(fast_track_completed=True), status(vector_storage_ready=True, qa_system_ready=True))
    poller = ProcessingStatusPoller(client, store, "d1")
    assert poller.poll_once() is False
    assert store.state.processing_status.fast_track_completed
    assert poller.poll_once() is True
    assert store.state.processing_status.qa_system_ready


def test_missing_endpoint_stops_quietly():
    store = store_with_doc()
    poller = ProcessingStatusPoller(StubClient(APIResult.failure("Not Found", 404)), store, "d1")
    assert poller.poll_once() is True
    assert poller.unavailable
    assert store.state.last_error is None


def test_transient_failure_keeps_polling():
    store = store_with_doc()
    poller = ProcessingStatusPoller(StubClient(APIResult.failure("HTTP 502: Bad Gateway", 502)), store, "d1")
    assert poller.poll_once() is False
    assert store.state.processing_status is None


def test_document_change_stops_without_request():
    store = store_with_doc("d2")
    client = StubClient()
    poller = ProcessingStatusPoller(client, store, "d1")
    assert poller.poll_once() is True
    assert client.calls == []


def test_reset_session_drops_status():
    store = store_with_doc()
    poller = ProcessingStatusPoller(StubClient(status(fast_track_completed=True)), store, "d1")
    store.reset_state()
    store.set_document("d1", "a.pdf")
    assert poller.poll_once() is True
    assert store.state.processing_status is None
