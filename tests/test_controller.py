import io

from pypdf import PdfWriter

from doclens.api.client import APIResult, DocumentAPI
from doclens.api.transformers import transform_analysis
from doclens.controller import AppController
from doclens.state.store import SessionStore, View
from doclens.utils.config import AppConfig
from doclens.utils.types import UploadFile


def pdf_file(name="lease.pdf"):
    writer = PdfWriter()
    writer.add_blank_page(width=595, height=842)
    buf = io.BytesIO()
    writer.write(buf)
    return UploadFile(name, buf.getvalue())


class StubClient:
    def __init__(self, process_result):
        self.process_result = process_result
        self.processed = []

    def process_document(self, file):
        self.processed.append(file.name)
        return self.process_result

    def check_processing_status(self, document_id):
        return APIResult.failure("Not Found", 404)

    def health_check(self):
        return APIResult.failure("offline")

    def check_rag_health(self):
        return APIResult.failure("offline")


def make(tmp_path, result):
    config = AppConfig(history_dir=str(tmp_path), status_initial_delay=60)
    store = SessionStore()
    return AppController(store, StubClient(result), config), store


def test_upload_success_opens_document(tmp_path):
    result = APIResult.success(transform_analysis({"components": {"summary": {"overview": "Lease"}}}))
    controller, store = make(tmp_path, result)
    assert controller.submit_upload(pdf_file())
    assert store.state.active_view == View.ANALYZING
    assert store.state.is_processing
    assert controller.run_analysis()
    state = store.state
    assert state.active_view == View.DOCUMENT
    assert not state.is_processing
    assert state.current_document.filename == "lease.pdf"
    assert state.current_document.id.startswith("upload-")
    assert state.current_document.analysis.summary.overview == "Lease"
    assert controller.status_poller is None
    assert len(controller.recent_documents()) == 1


def test_upload_failure_returns_to_dashboard(tmp_path):
    controller, store = make(tmp_path, APIResult.failure("Unable to connect to the analysis service"))
    controller.submit_upload(pdf_file())
    assert not controller.run_analysis()
    state = store.state
    assert state.active_view == View.DASHBOARD
    assert not state.is_processing
    assert "Unable to connect" in state.last_error
    assert state.current_document is None


def test_second_upload_rejected_while_processing(tmp_path):
    controller, store = make(tmp_path, APIResult.success(transform_analysis({})))
    assert controller.submit_upload(pdf_file("a.pdf"))
    assert not controller.submit_upload(pdf_file("b.pdf"))
    assert store.state.uploaded_file.name == "a.pdf"


def test_invalid_upload_sets_error(tmp_path):
    controller, store = make(tmp_path, APIResult.success(transform_analysis({})))
    assert not controller.submit_upload(UploadFile("notes.txt", b"plain text"))
    assert store.state.active_view == View.DASHBOARD
    assert store.state.last_error


def test_back_and_reopen_recent_document(tmp_path):
    analysis = transform_analysis({"document_id": "doc-1"})
    controller, store = make(tmp_path, APIResult.success(analysis))
    controller.submit_upload(pdf_file())
    controller.run_analysis()
    try:
        assert controller.status_poller is not None
        controller.back_to_dashboard()
        assert controller.status_poller is None
        assert store.state.active_view == View.DASHBOARD
        assert store.state.current_document is None
        assert controller.select_document("doc-1")
        assert store.state.active_view == View.DOCUMENT
        assert store.state.current_document.analysis is analysis
        assert not controller.select_document("missing")
    finally:
        controller.shutdown()


def test_exports_and_reset(tmp_path):
    controller, store = make(tmp_path, APIResult.success(transform_analysis({})))
    assert controller.export_report() is None
    controller.submit_upload(pdf_file())
    controller.run_analysis()
    assert controller.export_report().content.startswith(b"%PDF")
    assert '"filename": "lease.pdf"' in controller.export_json()
    assert controller.qa_session() is controller.qa_session()
    controller.reset()
    assert store.state.current_document is None
    assert store.state.generation == 1


class ListResponse:
    status_code = 200
    reason = "OK"
    ok = True

    def json(self):
        return ["unexpected"]


class ListSession:
    def request(self, method, url, timeout=None, **kwargs):
        return ListResponse()


def test_unexpected_backend_shape_returns_to_dashboard(tmp_path):
    config = AppConfig(history_dir=str(tmp_path))
    store = SessionStore()
    controller = AppController(store, DocumentAPI(config, ListSession()), config)
    assert controller.submit_upload(pdf_file())
    assert not controller.run_analysis()
    state = store.state
    assert state.active_view == View.DASHBOARD
    assert not state.is_processing
    assert state.last_error == "Unexpected response format from backend"


class ExplodingClient(StubClient):
    def process_document(self, file):
        raise RuntimeError("client bug")


def test_client_exception_still_sets_error(tmp_path):
    config = AppConfig(history_dir=str(tmp_path))
    store = SessionStore()
    controller = AppController(store, ExplodingClient(None), config)
    controller.submit_upload(pdf_file())
    assert not controller.run_analysis()
    assert store.state.active_view == View.DASHBOARD
    assert store.state.last_error == "Failed to process document"
