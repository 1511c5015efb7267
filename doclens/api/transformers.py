"""Normalize raw backend JSON into the dataclasses the views render.

Views never branch on "is this field present": every list defaults to empty,
every scalar to a documented fallback (see ``doclens.utils.constants``).
"""
from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from doclens.utils import constants as C
from doclens.utils.types import (
    AnalysisResult, AutoRenewal, ConfidenceMetrics, Deadline, DocumentMetadata,
    FinancialObligation, HealthSnapshot, KeyHighlights, Performance, ProcessingStatus,
    QAAnswer, RiskAssessment, RiskItem, ServiceFlags, Summary, SummaryMetrics,
)

Number = Union[int, float]


def _num(value: Any, default: Optional[Number]) -> Optional[Number]:
    """Null-coalescing numeric read: a present 0 stays 0."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return value
    try:
        text = str(value).strip().rstrip("%")
        return float(text) if "." in text else int(text)
    except (TypeError, ValueError):
        return default


def _text(value: Any, placeholder: str = "") -> str:
    if value is None:
        return placeholder
    text = str(value).strip()
    return text or placeholder


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [v for v in value if v is not None]
    return [value]


def _strings(value: Any) -> List[str]:
    out = []
    for item in _list(value):
        if isinstance(item, dict):
            item = item.get("title") or item.get("description") or item.get("text") or ""
        item = str(item).strip()
        if item:
            out.append(item)
    return out


_LEVEL_KEYWORDS = (
    (("HIGH", "CRITICAL"), C.RISK_HIGH),
    (("MEDIUM", "MODERATE"), C.RISK_MEDIUM),
    (("LOW",), C.RISK_LOW),
)


def _bucket(label: Any) -> Optional[str]:
    if not label:
        return None
    up = str(label).upper()
    for keywords, bucket in _LEVEL_KEYWORDS:
        if any(k in up for k in keywords):
            return bucket
    return None


def classify_risk_level(level: Optional[str] = None, score: Optional[Number] = None) -> str:
    """Three-way risk bucket from an explicit level or, failing that, the 0-10 score."""
    bucket = _bucket(level)
    if bucket:
        return bucket
    value = _num(score, C.DEFAULT_RISK_SCORE)
    if value >= C.HIGH_RISK_MIN_SCORE:
        return C.RISK_HIGH
    if value <= C.LOW_RISK_MAX_SCORE:
        return C.RISK_LOW
    return C.RISK_MEDIUM


def normalize_severity(severity: Any, default: str = C.RISK_MEDIUM) -> str:
    """'HIGH SEVERITY', 'critical', 'Moderate' ... -> HIGH / MEDIUM / LOW."""
    return _bucket(severity) or default


def confidence_band(confidence: Optional[Number]) -> str:
    if confidence is None:
        return "unknown"
    if confidence >= 80:
        return "high"
    if confidence >= 60:
        return "medium"
    return "low"


def days_until(due_date: str, today: Optional[date] = None) -> Optional[int]:
    if not due_date:
        return None
    today = today or date.today()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y", "%B %d, %Y", "%b %d, %Y"):
        try:
            parsed = datetime.strptime(due_date.strip(), fmt).date()
        except ValueError:
            continue
        return (parsed - today).days
    return None


def is_urgent(deadline: Deadline, today: Optional[date] = None) -> bool:
    days = days_until(deadline.due_date, today)
    return days is not None and 0 <= days <= C.URGENT_DEADLINE_DAYS


def _risk_item(raw: Any, default_severity: str) -> RiskItem:
    if not isinstance(raw, dict):
        return RiskItem(title=_text(raw), severity=default_severity)
    return RiskItem(
        title=_text(raw.get("title") or raw.get("risk") or raw.get("description"), "Untitled risk"),
        severity=normalize_severity(raw.get("severity"), default_severity),
        type=_text(raw.get("type")),
        section=_text(raw.get("section")),
        description=_text(raw.get("description")),
        impact=_text(raw.get("impact")),
        recommendation=_text(raw.get("recommendation")),
        confidence=_num(raw.get("confidence"), None),
    )


def _deadline(raw: Any, cls=Deadline):
    if not isinstance(raw, dict):
        return cls(title=_text(raw))
    kwargs = dict(
        title=_text(raw.get("title") or raw.get("description"), "Untitled"),
        description=_text(raw.get("description")),
        due_date=_text(raw.get("dueDate") or raw.get("due_date")),
        party=_text(raw.get("party")),
        priority=_text(raw.get("priority")).upper(),
        category=_text(raw.get("category")),
    )
    if cls is FinancialObligation:
        kwargs["amount"] = _text(raw.get("amount"))
    return cls(**kwargs)


def transform_summary(raw: Optional[Dict[str, Any]]) -> Summary:
    if isinstance(raw, str):  # some backends send the summary as bare text
        raw = {"overview": raw}
    raw = _dict(raw)
    metrics = _dict(raw.get("metrics"))
    overview = (
        _text(raw.get("overview"))
        or _text(raw.get("analysis"))
        or _text(raw.get("executive_summary"))
        or C.NO_SUMMARY
    )
    return Summary(
        overview=overview,
        document_type=_text(raw.get("document_type"), C.DEFAULT_DOCUMENT_TYPE),
        metrics=SummaryMetrics(
            ai_confidence=_num(metrics.get("ai_confidence"), C.DEFAULT_AI_CONFIDENCE),
            risk_score=_num(metrics.get("risk_score"), C.DEFAULT_RISK_SCORE),
            compliance_score=_num(metrics.get("compliance_score"), C.DEFAULT_COMPLIANCE_SCORE),
            critical_issues=_num(metrics.get("critical_issues"), C.DEFAULT_CRITICAL_ISSUES),
            total_obligations=_num(metrics.get("total_obligations"), C.DEFAULT_TOTAL_OBLIGATIONS),
            document_pages=_num(metrics.get("document_pages"), None),
            complexity_score=_num(metrics.get("complexity_score"), None),
        ),
        main_parties=_strings(raw.get("main_parties")),
        key_obligations=_strings(raw.get("key_obligations")),
        important_dates=_strings(raw.get("important_dates")),
        termination_conditions=_strings(raw.get("termination_conditions")),
        positive_aspects=_strings(raw.get("positive_aspects")),
        areas_of_concern=_strings(raw.get("areas_of_concern")),
    )


def transform_risk_assessment(raw: Optional[Dict[str, Any]], fallback_score: Optional[Number] = None) -> RiskAssessment:
    raw = _dict(raw)
    score = _num(raw.get("risk_score"), None)
    if score is None:
        score = _num(fallback_score, C.DEFAULT_RISK_SCORE)
    return RiskAssessment(
        overall_risk_level=classify_risk_level(raw.get("overall_risk_level"), score),
        risk_score=score,
        analysis=_text(raw.get("analysis"), C.NO_RISK_ANALYSIS),
        critical_risks=[_risk_item(r, C.RISK_HIGH) for r in _list(raw.get("critical_risks"))],
        moderate_risks=[_risk_item(r, C.RISK_MEDIUM) for r in _list(raw.get("moderate_risks"))],
        red_flags=_strings(raw.get("red_flags")),
        financial_penalties=_strings(raw.get("financial_penalties")),
        liability_concerns=_strings(raw.get("liability_concerns")),
    )


def transform_key_highlights(raw: Optional[Dict[str, Any]]) -> KeyHighlights:
    raw = _dict(raw)
    renewal = raw.get("auto_renewal_clause") or {}
    if not isinstance(renewal, dict):
        renewal = {"exists": bool(renewal)}
    return KeyHighlights(
        analysis=_text(raw.get("analysis"), C.NO_HIGHLIGHTS_ANALYSIS),
        critical_deadlines=[_deadline(d) for d in _list(raw.get("critical_deadlines"))],
        financial_obligations=[_deadline(f, FinancialObligation) for f in _list(raw.get("financial_obligations"))],
        auto_renewal_clause=AutoRenewal(
            exists=bool(renewal.get("exists", False)),
            renewal_period=_text(renewal.get("renewal_period")),
            notice_required=_text(renewal.get("notice_required")),
            automatic=bool(renewal.get("automatic", False)),
        ),
        termination_procedures=_strings(raw.get("termination_procedures")),
        key_restrictions=_strings(raw.get("key_restrictions")),
        action_items=_strings(raw.get("action_items")),
    )


def transform_confidence_metrics(raw: Optional[Dict[str, Any]]) -> ConfidenceMetrics:
    raw = _dict(raw)
    return ConfidenceMetrics(
        overall_confidence=_num(raw.get("overall_confidence"), 0),
        clarity_score=_num(raw.get("clarity_score"), 0),
        completeness=_num(raw.get("completeness"), 0),
        legal_complexity=_text(raw.get("legal_complexity"), "unknown"),
        analysis=_text(raw.get("analysis"), C.NO_CONFIDENCE_ANALYSIS),
        recommendations=_strings(raw.get("recommendations")),
        legal_consultation_recommended=bool(raw.get("legal_consultation_recommended", False)),
        consultation_urgency=_text(raw.get("consultation_urgency")),
    )


def transform_analysis(payload: Optional[Dict[str, Any]]) -> AnalysisResult:
    """Full ``/process_direct`` response -> AnalysisResult."""
    payload = _dict(payload)
    components = _dict(payload.get("components"))
    perf = _dict(payload.get("performance"))
    meta = _dict(payload.get("metadata"))
    doc_meta = _dict(meta.get("document_metadata"))
    summary = transform_summary(components.get("summary"))
    return AnalysisResult(
        summary=summary,
        risk_assessment=transform_risk_assessment(
            components.get("risk_assessment"), fallback_score=summary.metrics.risk_score
        ),
        key_highlights=transform_key_highlights(components.get("key_highlights")),
        confidence_metrics=transform_confidence_metrics(components.get("confidence_metrics")),
        performance=Performance(
            total_time=_num(perf.get("total_time"), None),
            target_achieved=bool(perf.get("target_achieved", False)),
            parallel_execution_time=_num(perf.get("parallel_execution_time"), None),
            agents_completed=_num(perf.get("agents_completed"), None),
            architecture=_text(perf.get("architecture")),
        ),
        metadata=DocumentMetadata(
            filename=_text(meta.get("filename") or doc_meta.get("filename")),
            document_length=_num(meta.get("document_length"), None),
            estimated_pages=_num(meta.get("estimated_pages"), None),
            processing_mode=_text(meta.get("processing_mode")),
            file_size=_num(doc_meta.get("file_size"), None),
            estimated_reading_time=_num(doc_meta.get("estimated_reading_time"), None),
            processing_errors=_strings(meta.get("processing_errors")),
        ),
        analysis_text=_text(payload.get("analysis")),
        document_id=_text(payload.get("document_id") or meta.get("document_id")) or None,
        raw=payload,
    )


def transform_qa_answer(payload: Optional[Dict[str, Any]]) -> QAAnswer:
    payload = _dict(payload)
    return QAAnswer(
        answer=_text(payload.get("answer"), "No answer returned."),
        confidence_score=_num(payload.get("confidence_score"), None),
        citations=_list(payload.get("citations")),
        related_topics=_strings(payload.get("related_topics")),
        follow_up_questions=_strings(payload.get("follow_up_questions")),
        processing_time=_num(payload.get("processing_time"), None),
    )


def transform_processing_status(payload: Optional[Dict[str, Any]]) -> ProcessingStatus:
    payload = _dict(payload)
    times = _dict(payload.get("processing_times"))
    return ProcessingStatus(
        fast_track_completed=bool(payload.get("fast_track_completed", False)),
        background_completed=bool(payload.get("background_completed", False)),
        vector_storage_ready=bool(payload.get("vector_storage_ready", False)),
        qa_system_ready=bool(payload.get("qa_system_ready", False)),
        processing_times={k: v for k, v in times.items() if _num(v, None) is not None},
    )


def _service_healthy(services: Dict[str, Any], name: str) -> bool:
    entry = services.get(name)
    if isinstance(entry, dict):
        return entry.get("status") == "healthy"
    return entry == "healthy"


def health_snapshot(health: Optional[Dict[str, Any]], rag: Optional[Dict[str, Any]] = None) -> HealthSnapshot:
    """``/health`` (+ optional ``/rag_health``) payloads -> HealthSnapshot.

    A missing or unhealthy health payload means offline with every service
    flag off. A missing RAG payload only degrades the Q&A flag.
    """
    health = _dict(health)
    if health.get("status") not in ("healthy", "partial"):
        return HealthSnapshot()
    services = _dict(health.get("services"))
    rag_ok = _service_healthy(services, "rag_qa")
    capabilities: Dict[str, bool] = {}
    if rag is None:
        rag_ok = False
    else:
        capabilities = {k: bool(v) for k, v in _dict(_dict(rag).get("capabilities")).items()}
    return HealthSnapshot(
        online=True,
        services=ServiceFlags(
            direct_processing=_service_healthy(services, "direct_processing"),
            vector_processing=_service_healthy(services, "vector_processing"),
            rag_qa=rag_ok,
        ),
        rag_capabilities=capabilities,
    )
