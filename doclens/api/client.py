from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests

from doclens.api.transformers import (
    transform_analysis, transform_processing_status, transform_qa_answer,
)
from doclens.utils.config import AppConfig
from doclens.utils.logger import get_logger
from doclens.utils.types import AnalysisResult, UploadFile

logger = get_logger(__name__)

# Status codes meaning "this backend has no such endpoint"
_UNAVAILABLE_CODES = {404, 405, 501}


@dataclass
class APIResult:
    status: str  # "success" | "error"
    data: Any = None
    error: Optional[str] = None
    http_status: Optional[int] = None
    unavailable: bool = False

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, data: Any, http_status: Optional[int] = None) -> "APIResult":
        return cls(status="success", data=data, http_status=http_status)

    @classmethod
    def failure(cls, error: str, http_status: Optional[int] = None) -> "APIResult":
        return cls(
            status="error",
            error=error,
            http_status=http_status,
            unavailable=http_status in _UNAVAILABLE_CODES,
        )


def _error_message(response: requests.Response, body: Any) -> str:
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str) and detail.strip():
        return detail
    if detail:  # FastAPI validation errors arrive as a list
        return str(detail)
    return f"HTTP {response.status_code}: {response.reason or 'Error'}"


def _analysis(body: Any) -> AnalysisResult:
    if not isinstance(body, dict):
        raise TypeError(f"expected an analysis object, got {type(body).__name__}")
    return transform_analysis(body)


class DocumentAPI:
    """Result-wrapped access to the analysis backend.

    No method raises for network, HTTP or JSON problems; callers branch on
    ``APIResult.ok``. A ``requests.Session`` (or any object with a compatible
    ``request`` method) can be injected for tests.
    """

    def __init__(self, config: AppConfig, session: Optional[requests.Session] = None):
        self.base_url = config.api_url.rstrip("/")
        self.timeout = config.request_timeout
        self.process_timeout = config.process_timeout
        self.session = session or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        *,
        transform: Optional[Callable[[Any], Any]] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> APIResult:
        url = f"{self.base_url}{path}"
        timeout = timeout or self.timeout
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=timeout, **kwargs)
        except requests.Timeout:
            logger.warning("%s %s timed out after %ss", method, path, timeout)
            return APIResult.failure(f"Request timed out after {timeout:g} seconds")
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            return APIResult.failure(f"Unable to connect to the analysis service at {self.base_url}: {e}")
        try:
            body = response.json()
        except ValueError:
            body = None
        if not response.ok:
            message = _error_message(response, body)
            logger.warning("%s %s -> %s: %s", method, path, response.status_code, message)
            return APIResult.failure(message, http_status=response.status_code)
        if body is None:
            return APIResult.failure("Invalid JSON response from backend", http_status=response.status_code)
        try:
            data = transform(body) if transform else body
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("%s %s returned an unexpected shape: %s", method, path, e)
            return APIResult.failure("Unexpected response format from backend", http_status=response.status_code)
        return APIResult.success(data, http_status=response.status_code)

    def process_document(self, file: UploadFile) -> APIResult:
        """POST /process_direct. Long running; the caller owns the processing flag."""
        files = {"file": (file.name, file.content, file.content_type)}
        logger.info("Submitting %s (%d bytes) for analysis", file.name, file.size)
        return self._request(
            "POST", "/process_direct", files=files, transform=_analysis, timeout=self.process_timeout
        )

    def ask_question(
        self,
        query: str,
        document_id: Optional[str] = None,
        conversation_context: Optional[str] = None,
    ) -> APIResult:
        params: Dict[str, str] = {"query": query}
        if document_id:
            params["document_id"] = document_id
        if conversation_context:
            params["conversation_context"] = conversation_context
        return self._request("POST", "/ask_question", params=params, transform=transform_qa_answer)

    def get_suggested_questions(self, document_id: Optional[str] = None) -> APIResult:
        params = {"document_id": document_id} if document_id else {}

        def _questions(body: Any) -> List[str]:
            questions = (body.get("suggested_questions") or []) if isinstance(body, dict) else body
            if not isinstance(questions, list):
                raise TypeError(f"expected a list of questions, got {type(questions).__name__}")
            return [str(q) for q in questions if q]

        return self._request("GET", "/suggested_questions", params=params, transform=_questions)

    def check_rag_health(self) -> APIResult:
        return self._request("GET", "/rag_health")

    def health_check(self) -> APIResult:
        return self._request("GET", "/health")

    def check_processing_status(self, document_id: str) -> APIResult:
        """Background enrichment progress. ``result.unavailable`` means the backend has no such endpoint."""
        return self._request(
            "GET", f"/processing_status/{document_id}", transform=transform_processing_status
        )
