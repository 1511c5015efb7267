from __future__ import annotations
import json
from dataclasses import asdict
from typing import Any, Dict, List, Optional
from doclens.utils.types import AnalysisResult, ChatMessage


def build_analysis_json(
    analysis: AnalysisResult,
    filename: str,
    qa_history: Optional[List[ChatMessage]] = None,
    meta: Optional[Dict[str, Any]] = None,
) -> str:
    """Return a structured JSON snapshot of the current analysis.

    The normalized view (defaults applied) is exported alongside the raw backend
    payload so the two can be compared downstream.
    """
    normalized = asdict(analysis)
    raw = normalized.pop("raw", {})
    payload = {
        "meta": meta or {},
        "document": {
            "filename": filename,
            "document_id": analysis.document_id,
            "risk_level": analysis.risk_assessment.overall_risk_level,
        },
        "analysis": normalized,
        "qa_history": [
            {
                "role": m.role,
                "content": m.content,
                "timestamp": m.timestamp,
                "confidence": m.confidence,
            } for m in (qa_history or []) if not m.is_loading
        ],
        "raw_response": raw,
    }
    return json.dumps(payload, ensure_ascii=False, indent=2, default=str)
