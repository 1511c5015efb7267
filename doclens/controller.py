"""Orchestration between the views, the session store and the backend.

Views call these methods and then re-render from ``store.state``; nothing else
mutates session state.
"""
from __future__ import annotations
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from doclens.api.client import DocumentAPI
from doclens.ingest.upload import inspect_upload
from doclens.polling.health import HealthMonitor
from doclens.polling.status import ProcessingStatusPoller
from doclens.qa.chat import QASession
from doclens.qa.history import ConversationHistory
from doclens.report.json_export import build_analysis_json
from doclens.report.pdf import ReportFile, export_report_pdf
from doclens.report.sections import build_report_html
from doclens.state.store import SessionStore, View
from doclens.utils.config import AppConfig
from doclens.utils.logger import get_logger
from doclens.utils.types import AnalysisResult, UploadFile

logger = get_logger(__name__)

MAX_RECENT = 10


@dataclass
class RecentDocument:
    id: str
    filename: str
    analysis: AnalysisResult
    analyzed_at: datetime
    pages: Optional[int] = None


class AppController:
    def __init__(self, store: SessionStore, client: DocumentAPI, config: AppConfig):
        self.store = store
        self.client = client
        self.config = config
        self.health_monitor = HealthMonitor(client, store, interval=config.health_interval)
        self.status_poller: Optional[ProcessingStatusPoller] = None
        self.recent: "OrderedDict[str, RecentDocument]" = OrderedDict()
        self._qa_sessions: Dict[str, QASession] = {}
        self._pending_pages: Optional[int] = None

    # ---- Upload / analysis ---------------------------------------------------
    def submit_upload(self, file: UploadFile) -> bool:
        """Dashboard -> Analyzing. Rejected while another analysis is in flight."""
        state = self.store.state
        if state.is_processing:
            logger.info("Upload of %s ignored: analysis already in progress", file.name)
            return False
        check = inspect_upload(file)
        if not check.ok:
            self.store.set_error(check.error)
            return False
        self._pending_pages = check.pages
        self.store.set_error(None)
        self.store.set_uploaded_file(file)
        self.store.set_processing(True)
        self.store.set_view(View.ANALYZING)
        return True

    def run_analysis(self) -> bool:
        """Send the pending upload to the backend and settle the session on the outcome."""
        state = self.store.state
        file = state.uploaded_file
        if file is None or state.active_view != View.ANALYZING:
            return False
        try:
            result = self.client.process_document(file)
        except Exception:
            logger.exception("Analysis of %s failed unexpectedly", file.name)
            self.store.set_error("Failed to process document")
            return False
        if not result.ok:
            self.store.set_error(result.error or "Failed to process document")
            return False
        analysis: AnalysisResult = result.data
        doc_id = analysis.document_id or f"upload-{uuid.uuid4().hex[:12]}"
        self.store.set_document(doc_id, file.name, analysis)
        self.store.set_view(View.DOCUMENT)
        self.store.set_processing(False)
        self._remember(doc_id, file.name, analysis)
        if analysis.document_id:
            self._start_status_polling(doc_id)
        return True

    def _remember(self, doc_id: str, filename: str, analysis: AnalysisResult) -> None:
        self.recent[doc_id] = RecentDocument(
            doc_id, filename, analysis, datetime.now(), pages=self._pending_pages or analysis.metadata.estimated_pages
        )
        self.recent.move_to_end(doc_id, last=False)
        while len(self.recent) > MAX_RECENT:
            self.recent.popitem(last=True)

    def recent_documents(self) -> List[RecentDocument]:
        return list(self.recent.values())

    def _start_status_polling(self, doc_id: str) -> None:
        self._stop_status_polling()
        self.status_poller = ProcessingStatusPoller(
            self.client,
            self.store,
            doc_id,
            initial_delay=self.config.status_initial_delay,
            interval=self.config.status_interval,
            max_attempts=self.config.status_max_attempts,
        ).start()

    def _stop_status_polling(self) -> None:
        if self.status_poller is not None:
            self.status_poller.stop()
            self.status_poller = None

    # ---- Navigation ------------------------------------------------------------
    def select_document(self, doc_id: str) -> bool:
        """Dashboard -> Document for a previously analyzed document."""
        if self.store.state.is_processing:
            return False
        entry = self.recent.get(doc_id)
        if entry is None:
            return False
        self.store.set_document(entry.id, entry.filename)
        self.store.set_view(View.DOCUMENT)
        self.store.set_analysis_data(entry.analysis)
        return True

    def back_to_dashboard(self) -> None:
        self._stop_status_polling()
        self.store.clear_document()
        self.store.set_uploaded_file(None)
        self.store.set_error(None)
        self.store.set_view(View.DASHBOARD)

    def dismiss_error(self) -> None:
        self.store.set_error(None)

    # ---- Health --------------------------------------------------------------
    def start_health_monitor(self) -> None:
        if not self.health_monitor.running:
            self.health_monitor.start()

    # ---- Q&A / export ----------------------------------------------------------
    def qa_session(self) -> Optional[QASession]:
        doc = self.store.state.current_document
        if doc is None:
            return None
        if doc.id not in self._qa_sessions:
            history = ConversationHistory.for_document(
                self.config.history_dir, doc.id,
                keep=self.config.history_keep, load_limit=self.config.history_load_limit,
            )
            self._qa_sessions[doc.id] = QASession(self.client, doc.id, history)
        return self._qa_sessions[doc.id]

    def export_report(self) -> Optional[ReportFile]:
        doc = self.store.state.current_document
        if doc is None or doc.analysis is None:
            return None
        return export_report_pdf(doc.analysis, doc.filename)

    def export_html(self) -> Optional[str]:
        doc = self.store.state.current_document
        if doc is None or doc.analysis is None:
            return None
        return build_report_html(doc.analysis, doc.filename)

    def export_json(self) -> Optional[str]:
        doc = self.store.state.current_document
        if doc is None or doc.analysis is None:
            return None
        qa = self._qa_sessions.get(doc.id)
        meta = {"app": "doclens", "api_url": self.config.api_url, "exported_at": datetime.now().isoformat()}
        return build_analysis_json(doc.analysis, doc.filename, qa.messages if qa else None, meta)

    # ---- Lifecycle -------------------------------------------------------------
    def reset(self) -> None:
        self._stop_status_polling()
        self.health_monitor.stop()
        self._qa_sessions.clear()
        self.store.reset_state()

    def shutdown(self) -> None:
        self._stop_status_polling()
        self.health_monitor.stop()
