import json

from doclens.api.transformers import transform_analysis
from doclens.report.json_export import build_analysis_json
from doclens.utils.types import ChatMessage


def test_json_export_structure():
    analysis = transform_analysis({"document_id": "d1", "components": {"summary": {"overview": "Lease"}}})
    history = [
        ChatMessage("1", "user", "Rent?", "10:00:00"),
        ChatMessage("2", "assistant", "Analyzing your question...", "10:00:01", is_loading=True),
    ]
    blob = build_analysis_json(analysis, "lease.pdf", history, meta={"app": "test"})
    assert '"app": "test"' in blob
    data = json.loads(blob)
    assert data["document"] == {"filename": "lease.pdf", "document_id": "d1", "risk_level": "MEDIUM"}
    assert data["analysis"]["summary"]["overview"] == "Lease"
    assert "raw" not in data["analysis"]
    assert data["raw_response"]["document_id"] == "d1"
    assert [m["content"] for m in data["qa_history"]] == ["Rent?"]
