from __future__ import annotations
import uuid
from datetime import datetime
from typing import List, Optional

from doclens.api.client import DocumentAPI
from doclens.qa.history import ConversationHistory
from doclens.utils import constants as C
from doclens.utils.logger import get_logger
from doclens.utils.types import ChatMessage

logger = get_logger(__name__)


def _now() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _message(role: str, content: str, **extra) -> ChatMessage:
    return ChatMessage(id=uuid.uuid4().hex, role=role, content=content, timestamp=_now(), **extra)


class QASession:
    """Chat-style Q&A over one document.

    Messages are append-only except for the trailing loading placeholder,
    which is replaced by the answer (or an apology) once the backend replies.
    """

    def __init__(self, client: DocumentAPI, document_id: Optional[str], history: Optional[ConversationHistory] = None):
        self.client = client
        self.document_id = document_id
        self.history = history
        self.messages: List[ChatMessage] = history.load() if history else []
        self.suggestions: List[str] = []
        self.is_asking = False

    def conversation_context(self) -> str:
        recent = [m for m in self.messages if not m.is_loading][-C.CONTEXT_MESSAGES:]
        return "\n".join(f"{m.role}: {m.content}" for m in recent)

    def ask(self, query: str) -> Optional[ChatMessage]:
        query = (query or "").strip()
        if not query or self.is_asking:
            return None
        context = self.conversation_context()
        self.messages.append(_message("user", query))
        self.messages.append(_message("assistant", C.LOADING_ANSWER, is_loading=True))
        self.is_asking = True
        try:
            result = self.client.ask_question(query, self.document_id, context or None)
            if result.ok:
                qa = result.data
                reply = _message(
                    "assistant",
                    qa.answer,
                    confidence=qa.confidence_score,
                    citations=qa.citations,
                    related_topics=qa.related_topics,
                    follow_up_questions=qa.follow_up_questions,
                    processing_time_seconds=qa.processing_time,
                )
            else:
                logger.warning("Question failed: %s", result.error)
                text = C.ANSWER_ERROR if result.http_status else C.ANSWER_CONNECTION_ERROR
                reply = _message("assistant", text, confidence=0)
            self.messages[-1] = reply
        finally:
            self.is_asking = False
            if self.messages and self.messages[-1].is_loading:
                self.messages.pop()
        self._persist()
        return reply

    def load_suggestions(self) -> List[str]:
        """Backend suggestions, or the fixed fallback list. Never reports an error."""
        result = self.client.get_suggested_questions(self.document_id)
        if result.ok and result.data:
            self.suggestions = list(result.data)
        else:
            if not result.ok:
                logger.info("Suggested questions unavailable: %s", result.error)
            self.suggestions = list(C.FALLBACK_QUESTIONS)
        return self.suggestions

    def clear(self) -> None:
        self.messages = []
        if self.history:
            self.history.clear()

    def _persist(self) -> None:
        if self.history:
            self.history.save(self.messages)
