"""Report content model shared by the HTML and PDF renderers."""
from __future__ import annotations
import html
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from doclens.utils.types import AnalysisResult

_HEADING = re.compile(r"^\s{0,3}#{1,6}\s*", re.M)
_BOLD_ITALIC = re.compile(r"(\*{1,3}|_{2,3})(\S(?:.*?\S)?)\1")
_INLINE_CODE = re.compile(r"`{1,3}([^`]*)`{1,3}")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_BULLET = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+", re.M)
_TABLE_RULE = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?\s*$", re.M)
_BLOCKQUOTE = re.compile(r"^\s*>\s?", re.M)
_HR = re.compile(r"^\s*([-*_])\1{2,}\s*$", re.M)
_BLANKS = re.compile(r"\n{3,}")


def clean_markdown(text: Optional[str]) -> str:
    """Strip markdown artifacts the backend leaves in free-text fields."""
    if not text:
        return ""
    out = text.replace("\r\n", "\n")
    out = _TABLE_RULE.sub("", out)
    out = _HR.sub("", out)
    out = _HEADING.sub("", out)
    out = _BLOCKQUOTE.sub("", out)
    out = _LINK.sub(r"\1", out)
    out = _INLINE_CODE.sub(r"\1", out)
    out = _BOLD_ITALIC.sub(r"\2", out)
    out = _BULLET.sub("", out)
    out = "\n".join(line.strip(" |").replace(" | ", " - ") for line in out.split("\n"))
    out = _BLANKS.sub("\n\n", out)
    return out.strip()


@dataclass
class ReportSection:
    title: str
    paragraphs: List[str] = field(default_factory=list)
    bullets: List[str] = field(default_factory=list)
    facts: List[Tuple[str, str]] = field(default_factory=list)  # label/value grid


def _pct(value) -> str:
    return f"{value:g}%" if isinstance(value, (int, float)) else str(value)


def build_report_sections(analysis: AnalysisResult, filename: str, generated: Optional[datetime] = None) -> List[ReportSection]:
    generated = generated or datetime.now()
    summary = analysis.summary
    risk = analysis.risk_assessment
    highlights = analysis.key_highlights
    confidence = analysis.confidence_metrics
    m = summary.metrics

    facts = [
        ("Document", filename or analysis.metadata.filename or "Untitled"),
        ("Type", summary.document_type),
        ("Generated", generated.strftime("%Y-%m-%d %H:%M")),
        ("Risk Level", risk.overall_risk_level),
        ("Risk Score", f"{risk.risk_score:g}/10"),
        ("AI Confidence", _pct(m.ai_confidence)),
        ("Compliance", _pct(m.compliance_score)),
        ("Critical Issues", str(m.critical_issues)),
        ("Obligations", str(m.total_obligations)),
    ]
    if analysis.metadata.estimated_pages:
        facts.append(("Pages", str(analysis.metadata.estimated_pages)))
    if summary.main_parties:
        facts.append(("Parties", ", ".join(summary.main_parties)))

    sections = [
        ReportSection("Document Details", facts=facts),
        ReportSection("Executive Summary", paragraphs=_paragraphs(summary.overview)),
        ReportSection(
            f"Risk Assessment ({risk.overall_risk_level})",
            paragraphs=_paragraphs(risk.analysis),
            bullets=[f"Red flag: {f}" for f in risk.red_flags]
            + [f"Penalty: {p}" for p in risk.financial_penalties]
            + [f"Liability: {l}" for l in risk.liability_concerns],
        ),
    ]
    issues = [
        f"[{r.severity}] {r.title}" + (f" - {clean_markdown(r.description)}" if r.description else "")
        for r in risk.critical_risks + risk.moderate_risks
    ]
    sections.append(ReportSection("Key Issues", bullets=issues or ["No specific issues were identified."]))

    obligations = [
        f"{d.title}" + (f" (due {d.due_date})" if d.due_date else "") for d in highlights.critical_deadlines
    ] + [
        f"{f.title}" + (f": {f.amount}" if f.amount else "") for f in highlights.financial_obligations
    ]
    if highlights.auto_renewal_clause.exists:
        renewal = highlights.auto_renewal_clause
        obligations.append(
            "Auto-renewal" + (f" every {renewal.renewal_period}" if renewal.renewal_period else "")
            + (f", notice {renewal.notice_required}" if renewal.notice_required else "")
        )
    obligations += [f"Action: {a}" for a in highlights.action_items]
    if obligations:
        sections.append(ReportSection("Obligations & Deadlines", bullets=obligations))

    if confidence.recommendations:
        sections.append(ReportSection("Recommendations", bullets=confidence.recommendations))
    return sections


def _paragraphs(text: str) -> List[str]:
    return [p.replace("\n", " ") for p in clean_markdown(text).split("\n\n") if p.strip()]


_CSS = """
body{font-family:Helvetica,Arial,sans-serif;color:#1c2330;margin:32px;}
h1{font-size:22px;margin:0 0 4px 0;} h2{font-size:16px;border-bottom:2px solid #6a5acd;padding-bottom:4px;margin-top:24px;}
.grid{display:grid;grid-template-columns:repeat(3,1fr);gap:8px;}
.fact{border:1px solid #dbe2ec;border-radius:6px;padding:6px 8px;} .fact b{display:block;font-size:10px;text-transform:uppercase;color:#5a6675;}
.footer{margin-top:32px;font-size:10px;color:#5a6675;}
"""


def build_report_html(analysis: AnalysisResult, filename: str, generated: Optional[datetime] = None) -> str:
    esc = html.escape
    parts = [
        "<!DOCTYPE html><html><head><meta charset='utf-8'>",
        f"<title>{esc(filename)} - Analysis Report</title><style>{_CSS}</style></head><body>",
        "<h1>Legal Document Analysis Report</h1>",
        f"<p>{esc(filename)}</p>",
    ]
    for section in build_report_sections(analysis, filename, generated):
        parts.append(f"<h2>{esc(section.title)}</h2>")
        if section.facts:
            parts.append("<div class='grid'>")
            parts.extend(f"<div class='fact'><b>{esc(k)}</b>{esc(v)}</div>" for k, v in section.facts)
            parts.append("</div>")
        parts.extend(f"<p>{esc(p)}</p>" for p in section.paragraphs)
        if section.bullets:
            parts.append("<ul>" + "".join(f"<li>{esc(b)}</li>" for b in section.bullets) + "</ul>")
    parts.append("<p class='footer'>Not legal advice. For informational purposes only.</p></body></html>")
    return "\n".join(parts)
