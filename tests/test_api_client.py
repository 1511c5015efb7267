import requests

from doclens.api.client import DocumentAPI
from doclens.utils.config import AppConfig
from doclens.utils.types import UploadFile


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._body = body

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    """Records calls; replies with a fixed response or raises."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, timeout, kwargs))
        if self.error:
            raise self.error
        return self.response


def api(session):
    return DocumentAPI(AppConfig(api_url="http://backend:8000/", request_timeout=5, process_timeout=60), session)


def test_process_document_success():
    session = FakeSession(FakeResponse(body={"document_id": "d1", "components": {}}))
    result = api(session).process_document(UploadFile("lease.pdf", b"%PDF-1.4 data"))
    assert result.ok
    assert result.data.document_id == "d1"
    method, url, timeout, kwargs = session.calls[0]
    assert (method, url, timeout) == ("POST", "http://backend:8000/process_direct", 60)
    assert kwargs["files"]["file"][0] == "lease.pdf"


def test_error_detail_preferred():
    session = FakeSession(FakeResponse(400, {"detail": "Only PDF files are supported"}, "Bad Request"))
    result = api(session).process_document(UploadFile("a.txt", b"hello"))
    assert not result.ok
    assert result.error == "Only PDF files are supported"
    assert result.http_status == 400
    assert not result.unavailable


def test_error_without_detail_uses_status_line():
    session = FakeSession(FakeResponse(500, ValueError("no json"), "Internal Server Error"))
    result = api(session).health_check()
    assert result.error == "HTTP 500: Internal Server Error"


def test_connection_error_is_wrapped():
    session = FakeSession(error=requests.ConnectionError("refused"))
    result = api(session).health_check()
    assert not result.ok
    assert result.http_status is None
    assert "Unable to connect" in result.error


def test_timeout_is_wrapped():
    session = FakeSession(error=requests.Timeout())
    result = api(session).check_rag_health()
    assert result.error == "Request timed out after 5 seconds"


def test_invalid_json_on_success():
    session = FakeSession(FakeResponse(200, ValueError("bad json")))
    result = api(session).health_check()
    assert not result.ok
    assert result.error == "Invalid JSON response from backend"


def test_missing_status_endpoint_is_unavailable():
    session = FakeSession(FakeResponse(404, {"detail": "Not Found"}, "Not Found"))
    result = api(session).check_processing_status("d1")
    assert result.unavailable
    assert session.calls[0][1] == "http://backend:8000/processing_status/d1"


def test_ask_question_params():
    session = FakeSession(FakeResponse(body={"answer": "30 days", "confidence_score": 91}))
    result = api(session).ask_question("Notice period?", "d1", "user: hi")
    assert result.data.answer == "30 days"
    params = session.calls[0][3]["params"]
    assert params == {"query": "Notice period?", "document_id": "d1", "conversation_context": "user: hi"}


def test_suggested_questions_list():
    session = FakeSession(FakeResponse(body={"suggested_questions": ["Q1", "", "Q2"]}))
    result = api(session).get_suggested_questions("d1")
    assert result.data == ["Q1", "Q2"]


def test_list_body_from_process_document_is_an_error():
    session = FakeSession(FakeResponse(body=["unexpected"]))
    result = api(session).process_document(UploadFile("lease.pdf", b"%PDF-1.4 data"))
    assert not result.ok
    assert result.error == "Unexpected response format from backend"
    assert result.http_status == 200


def test_suggested_questions_odd_shapes():
    assert api(FakeSession(FakeResponse(body=["Q1"]))).get_suggested_questions().data == ["Q1"]
    result = api(FakeSession(FakeResponse(body={"suggested_questions": "Q1"}))).get_suggested_questions()
    assert not result.ok
    assert result.error == "Unexpected response format from backend"


def test_plain_text_summary_is_tolerated():
    session = FakeSession(FakeResponse(body={"components": {"summary": "plain text summary", "risk_assessment": []}}))
    result = api(session).process_document(UploadFile("lease.pdf", b"%PDF-1.4 data"))
    assert result.ok
    assert result.data.summary.overview == "plain text summary"
    assert result.data.risk_assessment.risk_score == 5
