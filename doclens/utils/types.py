from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any, Optional


@dataclass(frozen=True)
class UploadFile:
    name: str
    content: bytes
    content_type: str = "application/pdf"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class SummaryMetrics:
    ai_confidence: float
    risk_score: float
    compliance_score: float
    critical_issues: int
    total_obligations: int
    document_pages: Optional[int] = None
    complexity_score: Optional[float] = None


@dataclass
class Summary:
    overview: str
    document_type: str
    metrics: SummaryMetrics
    main_parties: List[str] = field(default_factory=list)
    key_obligations: List[str] = field(default_factory=list)
    important_dates: List[str] = field(default_factory=list)
    termination_conditions: List[str] = field(default_factory=list)
    positive_aspects: List[str] = field(default_factory=list)
    areas_of_concern: List[str] = field(default_factory=list)


@dataclass
class RiskItem:
    title: str
    severity: str
    type: str = ""
    section: str = ""
    description: str = ""
    impact: str = ""
    recommendation: str = ""
    confidence: Optional[float] = None


@dataclass
class RiskAssessment:
    overall_risk_level: str  # HIGH | MEDIUM | LOW
    risk_score: float
    analysis: str
    critical_risks: List[RiskItem] = field(default_factory=list)
    moderate_risks: List[RiskItem] = field(default_factory=list)
    red_flags: List[str] = field(default_factory=list)
    financial_penalties: List[str] = field(default_factory=list)
    liability_concerns: List[str] = field(default_factory=list)


@dataclass
class Deadline:
    title: str
    description: str = ""
    due_date: str = ""
    party: str = ""
    priority: str = ""
    category: str = ""


@dataclass
class FinancialObligation(Deadline):
    amount: str = ""


@dataclass
class AutoRenewal:
    exists: bool = False
    renewal_period: str = ""
    notice_required: str = ""
    automatic: bool = False


@dataclass
class KeyHighlights:
    analysis: str
    critical_deadlines: List[Deadline] = field(default_factory=list)
    financial_obligations: List[FinancialObligation] = field(default_factory=list)
    auto_renewal_clause: AutoRenewal = field(default_factory=AutoRenewal)
    termination_procedures: List[str] = field(default_factory=list)
    key_restrictions: List[str] = field(default_factory=list)
    action_items: List[str] = field(default_factory=list)


@dataclass
class ConfidenceMetrics:
    overall_confidence: float
    clarity_score: float
    completeness: float
    legal_complexity: str
    analysis: str
    recommendations: List[str] = field(default_factory=list)
    legal_consultation_recommended: bool = False
    consultation_urgency: str = ""


@dataclass
class Performance:
    total_time: Optional[float] = None
    target_achieved: bool = False
    parallel_execution_time: Optional[float] = None
    agents_completed: Optional[int] = None
    architecture: str = ""


@dataclass
class DocumentMetadata:
    filename: str = ""
    document_length: Optional[int] = None
    estimated_pages: Optional[int] = None
    processing_mode: str = ""
    file_size: Optional[int] = None
    estimated_reading_time: Optional[float] = None
    processing_errors: List[str] = field(default_factory=list)


@dataclass
class AnalysisResult:
    summary: Summary
    risk_assessment: RiskAssessment
    key_highlights: KeyHighlights
    confidence_metrics: ConfidenceMetrics
    performance: Performance = field(default_factory=Performance)
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    analysis_text: str = ""
    document_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ServiceFlags:
    direct_processing: bool = False
    vector_processing: bool = False
    rag_qa: bool = False


@dataclass(frozen=True)
class HealthSnapshot:
    online: bool = False
    services: ServiceFlags = field(default_factory=ServiceFlags)
    rag_capabilities: Dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class ProcessingStatus:
    fast_track_completed: bool = False
    background_completed: bool = False
    vector_storage_ready: bool = False
    qa_system_ready: bool = False
    processing_times: Dict[str, float] = field(default_factory=dict)

    @property
    def ready(self) -> bool:
        return self.qa_system_ready or self.background_completed


@dataclass
class QAAnswer:
    answer: str
    confidence_score: Optional[float] = None
    citations: List[Any] = field(default_factory=list)
    related_topics: List[str] = field(default_factory=list)
    follow_up_questions: List[str] = field(default_factory=list)
    processing_time: Optional[float] = None


@dataclass
class ChatMessage:
    id: str
    role: str  # "user" | "assistant"
    content: str
    timestamp: str
    confidence: Optional[float] = None
    citations: Optional[List[Any]] = None
    related_topics: Optional[List[str]] = None
    follow_up_questions: Optional[List[str]] = None
    processing_time_seconds: Optional[float] = None
    is_loading: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)
