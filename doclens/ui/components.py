from __future__ import annotations
import base64
import html
from typing import List

import pandas as pd
import streamlit as st

from doclens.api.transformers import confidence_band, days_until, is_urgent
from doclens.controller import AppController
from doclens.ingest.upload import from_uploaded
from doclens.state.store import Session
from doclens.utils import constants as C
from doclens.utils.config import AppConfig, ViewOptions
from doclens.utils.types import AnalysisResult, ChatMessage, RiskItem

PRIMARY_COLOR = "#6A5ACD"  # slate purple
ACCENT_COLOR = "#FFB347"
RISK_COLORS = {C.RISK_HIGH: "#FF4B4B", C.RISK_MEDIUM: "#FFB347", C.RISK_LOW: "#4CAF50"}
BAND_COLORS = {"high": "#4CAF50", "medium": "#FFB347", "low": "#FF4B4B", "unknown": "#8892a0"}

_CSS_TEMPLATE = r"""
<style>
html, body, [class*="css"]  { font-family: 'Inter', 'Segoe UI', sans-serif; }
section.main > div { padding-top: 1rem; }
.status-grid {display:grid;grid-template-columns:repeat(2,minmax(0,1fr));gap:6px;margin-top:.25rem;}
.status-pill {background:#1c232e;border:1px solid #2d3441;padding:6px 8px;border-radius:10px;font-size:.55rem;text-transform:uppercase;display:flex;flex-direction:column;gap:2px;}
.status-pill span.value {font-size:.74rem;font-weight:600;color:#e2e6ee;}
.metric { background:#1f2430; border:1px solid #2d3441; border-radius:10px; padding:0.75rem 0.9rem; }
.metric h4 { font-size:0.70rem; letter-spacing:1px; text-transform:uppercase; color:#8892a0; margin:0 0 4px 0; }
.metric p { font-weight:600; font-size:1.05rem; margin:0; color:#e2e6ee; }
.risk-chip { padding:2px 10px; border-radius:12px; font-size:0.7rem; font-weight:700; color:#111; }
.chat-q { background:#252d3a; padding:10px 14px; border-radius:12px; margin-bottom:4px; font-weight:600; }
.chat-a { background:#1d2330; padding:10px 14px; border-left:3px solid __PRIMARY__; border-radius:0 12px 12px 12px; margin-bottom:6px; }
.citation { font-size:0.65rem; opacity:.75; }
h2.section-title { position:relative; padding-left:12px; font-size:1.15rem; margin-top:1rem; }
h2.section-title:before { content:""; position:absolute; left:0; top:4px; width:5px; height:70%; background:linear-gradient(180deg,__PRIMARY__,#8f7bff); border-radius:4px; }
.rf-card { border:1px solid #3a2a2a; background:#271d1d; border-radius:12px; padding:.7rem .85rem; margin-bottom:.6rem; }
.rf-head { font-weight:600; color:#ffbfbf; }
button[data-baseweb="tab"]:hover { color:__ACCENT__; }
</style>
"""

GLOBAL_CSS = _CSS_TEMPLATE.replace("__ACCENT__", ACCENT_COLOR).replace("__PRIMARY__", PRIMARY_COLOR)


def _esc(text) -> str:
    return html.escape(str(text))


def risk_chip(level: str) -> str:
    color = RISK_COLORS.get(level, "#8892a0")
    return f"<span class='risk-chip' style='background:{color};'>{_esc(level)} RISK</span>"


def _metric(label: str, value) -> str:
    return f"<div class='metric'><h4>{_esc(label)}</h4><p>{_esc(value)}</p></div>"


def section_title(text: str) -> None:
    st.markdown(f"<h2 class='section-title'>{_esc(text)}</h2>", unsafe_allow_html=True)


# ---- Sidebar ------------------------------------------------------------------

def sidebar(state: Session, config: AppConfig):
    st.markdown(GLOBAL_CSS, unsafe_allow_html=True)
    health = state.backend_health
    st.sidebar.markdown("### ⚖️ Legal Doc Analysis")
    yes_no = lambda ok, on, off: on if ok else off  # noqa: E731
    st.sidebar.markdown(
        "<div class='status-grid'>"
        f"<div class='status-pill'><span>Backend</span><span class='value'>{yes_no(health.online, 'Online', 'Offline')}</span></div>"
        f"<div class='status-pill'><span>Analysis</span><span class='value'>{yes_no(health.services.direct_processing, 'Ready', 'Unavailable')}</span></div>"
        f"<div class='status-pill'><span>Vectors</span><span class='value'>{yes_no(health.services.vector_processing, 'Ready', 'Unavailable')}</span></div>"
        f"<div class='status-pill'><span>Q&A</span><span class='value'>{yes_no(health.services.rag_qa, 'Active', 'Inactive')}</span></div>"
        "</div>",
        unsafe_allow_html=True,
    )
    st.sidebar.caption(f"API: {config.api_url}")
    st.sidebar.markdown(
        "<div style='color:#7d8896;font-size:.6rem;margin-top:8px;'>Not legal advice • For informational purposes only</div>",
        unsafe_allow_html=True,
    )


# ---- Dashboard ----------------------------------------------------------------

def dashboard(controller: AppController):
    state = controller.store.state
    if state.last_error:
        st.error(state.last_error)
        retry_col, dismiss_col = st.columns(2)
        with retry_col:
            if state.uploaded_file is not None and st.button("🔁 Retry analysis", use_container_width=True):
                file = state.uploaded_file
                controller.dismiss_error()
                if controller.submit_upload(file):
                    st.rerun()
        with dismiss_col:
            if st.button("Dismiss", use_container_width=True):
                controller.dismiss_error()
                st.rerun()

    health = state.backend_health
    cols = st.columns(4)
    stats = [
        ("Backend Status", "Online" if health.online else "Offline"),
        ("Direct Processing", "Ready" if health.services.direct_processing else "Unavailable"),
        ("Q&A Service", "Active" if health.services.rag_qa else "Inactive"),
        ("Documents", len(controller.recent)),
    ]
    for col, (label, value) in zip(cols, stats):
        with col:
            st.markdown(_metric(label, value), unsafe_allow_html=True)

    section_title("Analyze a document")
    uploaded = st.file_uploader("Upload a legal PDF", type=["pdf"], disabled=state.is_processing)
    disabled = uploaded is None or state.is_processing or not health.online
    if not health.online:
        st.caption("Backend is offline - check the API connection before analyzing.")
    if st.button("🚀 Analyze Document", type="primary", disabled=disabled, use_container_width=True):
        if controller.submit_upload(from_uploaded(uploaded)):
            st.rerun()
        elif controller.store.state.last_error:
            st.rerun()

    section_title("Recent documents")
    recent = controller.recent_documents()
    if not recent:
        st.info("No documents analyzed in this session yet.")
        return
    for entry in recent:
        risk = entry.analysis.risk_assessment
        c1, c2 = st.columns([4, 1])
        with c1:
            pages = f" • {entry.pages} pages" if entry.pages else ""
            st.markdown(
                f"**{_esc(entry.filename)}** {risk_chip(risk.overall_risk_level)}<br>"
                f"<span style='font-size:.7rem;opacity:.7;'>Analyzed {entry.analyzed_at:%Y-%m-%d %H:%M}{pages} • "
                f"Compliance {entry.analysis.summary.metrics.compliance_score}%</span>",
                unsafe_allow_html=True,
            )
        with c2:
            if st.button("👁 Open", key=f"open-{entry.id}", use_container_width=True):
                controller.select_document(entry.id)
                st.rerun()


# ---- Analyzing ----------------------------------------------------------------

ANALYSIS_STEPS = [
    "🚀 Fast AI analysis (direct processing)",
    "📄 Document summary generation",
    "🔍 Risk assessment & key highlights",
    "🧠 Preparing Q&A knowledge base",
]


def analyzing_view(controller: AppController):
    state = controller.store.state
    name = state.uploaded_file.name if state.uploaded_file else "document"
    st.markdown(f"## Analyzing {_esc(name)}")
    st.caption("This can take up to a few minutes for long contracts.")
    with st.status("Running analysis...", expanded=True) as status:
        for step in ANALYSIS_STEPS:
            st.write(step)
        ok = controller.run_analysis()
        status.update(label="Analysis complete" if ok else "Analysis failed", state="complete" if ok else "error")
    st.rerun()


# ---- Document view ------------------------------------------------------------

def document_view(controller: AppController, options: ViewOptions):
    state = controller.store.state
    doc = state.current_document
    top_left, top_right = st.columns([1, 3])
    with top_left:
        if st.button("← Back to Dashboard"):
            controller.back_to_dashboard()
            st.rerun()
    analysis = doc.analysis
    if analysis is None:
        with top_right:
            st.info("Loading analysis...")
        return

    risk = analysis.risk_assessment
    st.markdown(f"## {_esc(doc.filename)} {risk_chip(risk.overall_risk_level)}", unsafe_allow_html=True)
    meta = analysis.metadata
    details = [analysis.summary.document_type]
    if meta.estimated_pages:
        details.append(f"{meta.estimated_pages} pages")
    if meta.estimated_reading_time:
        details.append(f"{meta.estimated_reading_time:g} min read")
    st.caption(" • ".join(details))
    _processing_status_line(state)

    with top_right:
        pdf_col, html_col, json_col = st.columns(3)
        with pdf_col:
            if st.button("📥 Export Report", use_container_width=True):
                with st.spinner("Generating PDF report..."):
                    st.session_state["report_file"] = controller.export_report()
            report = st.session_state.get("report_file")
            if report is not None:
                st.download_button("Download PDF", data=report.content, file_name=report.filename,
                                   mime=report.mime, use_container_width=True)
        with html_col:
            page = controller.export_html()
            if page:
                st.download_button("🌐 HTML Report", data=page, file_name=f"{doc.filename}_report.html",
                                   mime="text/html", use_container_width=True)
        with json_col:
            blob = controller.export_json()
            if blob:
                st.download_button("🗂️ Export JSON", data=blob, file_name="analysis_snapshot.json",
                                   mime="application/json", use_container_width=True)

    overview, risk_tab, obligations, qa = st.tabs(["Overview", "Risk Analysis", "Obligations", "Q&A"])
    with overview:
        overview_tab(analysis, options)
        if options.show_pdf_viewer:
            pdf_viewer(state)
    with risk_tab:
        risk_analysis_tab(analysis, options)
    with obligations:
        obligations_tab(analysis)
    with qa:
        qa_tab(controller, state)


def _processing_status_line(state: Session):
    status = state.processing_status
    if status is None:
        return
    steps = [
        ("Fast track", status.fast_track_completed),
        ("Vector processing", status.vector_storage_ready),
        ("Q&A system", status.qa_system_ready),
    ]
    st.caption("  ".join(f"{'✅' if done else '⏳'} {label}" for label, done in steps))


def pdf_viewer(state: Session):
    file = state.uploaded_file
    if file is None:
        return
    encoded = base64.b64encode(file.content).decode("ascii")
    st.markdown(
        f"<iframe src='data:application/pdf;base64,{encoded}' width='100%' height='640' style='border:none;'></iframe>",
        unsafe_allow_html=True,
    )


def overview_tab(analysis: AnalysisResult, options: ViewOptions):
    summary = analysis.summary
    m = summary.metrics
    cols = st.columns(5)
    values = [
        ("AI Confidence", f"{m.ai_confidence:g}%"),
        ("Risk Score", f"{analysis.risk_assessment.risk_score:g}/10"),
        ("Compliance", f"{m.compliance_score:g}%"),
        ("Critical Issues", m.critical_issues),
        ("Obligations", m.total_obligations),
    ]
    for col, (label, value) in zip(cols, values):
        with col:
            st.markdown(_metric(label, value), unsafe_allow_html=True)
    section_title("Summary")
    st.markdown(summary.overview)
    if summary.main_parties:
        section_title("Parties")
        st.markdown("\n".join(f"- {p}" for p in summary.main_parties))
    for title, items in (("Positive aspects", summary.positive_aspects), ("Areas of concern", summary.areas_of_concern)):
        if items:
            with st.expander(title):
                st.markdown("\n".join(f"- {i}" for i in items))
    if options.show_performance_metrics and analysis.performance.total_time is not None:
        perf = analysis.performance
        target = "✅ target met" if perf.target_achieved else "⚠️ target missed"
        st.caption(f"Processed in {perf.total_time:.1f}s ({target})")


def _risk_card(item: RiskItem):
    color = RISK_COLORS.get(item.severity, "#8892a0")
    extra = ""
    if item.impact:
        extra += f"<div style='font-size:.65rem;margin-top:4px;'><b>Impact:</b> {_esc(item.impact)}</div>"
    if item.recommendation:
        extra += f"<div style='font-size:.65rem;margin-top:4px;'><b>Recommendation:</b> {_esc(item.recommendation)}</div>"
    section = f" <span style='font-size:.6rem;opacity:.6;'>{_esc(item.section)}</span>" if item.section else ""
    st.markdown(
        f"""
        <div class='rf-card' style='border-left:5px solid {color};'>
          <div class='rf-head'>{_esc(item.title)}{section}</div>
          <div style='font-size:.7rem; margin-top:4px;'>{_esc(item.description)}</div>
          {extra}
        </div>
        """,
        unsafe_allow_html=True,
    )


def risk_analysis_tab(analysis: AnalysisResult, options: ViewOptions):
    risk = analysis.risk_assessment
    st.markdown(
        f"{risk_chip(risk.overall_risk_level)} &nbsp; Risk score <b>{risk.risk_score:g}/10</b>",
        unsafe_allow_html=True,
    )
    items = risk.critical_risks + risk.moderate_risks
    if options.enhanced_tabs:
        for item in items:
            _risk_card(item)
    elif items:
        st.dataframe(
            pd.DataFrame([{"Severity": r.severity, "Risk": r.title, "Section": r.section} for r in items]),
            hide_index=True, use_container_width=True,
        )
    if not items:
        st.info("No specific risk items were reported.")
    for title, values in (
        ("Red flags", risk.red_flags),
        ("Financial penalties", risk.financial_penalties),
        ("Liability concerns", risk.liability_concerns),
    ):
        if values:
            section_title(title)
            st.markdown("\n".join(f"- {v}" for v in values))
    with st.expander("Full risk analysis", expanded=not items):
        st.markdown(risk.analysis)


def obligations_tab(analysis: AnalysisResult):
    hl = analysis.key_highlights
    if hl.critical_deadlines:
        section_title("Critical deadlines")
        rows = []
        for d in hl.critical_deadlines:
            days = days_until(d.due_date)
            rows.append({
                "Deadline": d.title,
                "Due": d.due_date,
                "Days left": days,
                "Party": d.party,
                "Priority": d.priority,
                "Urgent": "⚠️" if is_urgent(d) else "",
            })
        st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)
    if hl.financial_obligations:
        section_title("Financial obligations")
        st.dataframe(
            pd.DataFrame([
                {"Obligation": f.title, "Amount": f.amount, "Due": f.due_date, "Party": f.party, "Priority": f.priority}
                for f in hl.financial_obligations
            ]),
            hide_index=True, use_container_width=True,
        )
    renewal = hl.auto_renewal_clause
    if renewal.exists:
        st.warning(
            f"Auto-renewal clause{' (automatic)' if renewal.automatic else ''}: "
            f"{renewal.renewal_period or 'period not stated'}; notice {renewal.notice_required or 'not stated'}."
        )
    for title, values in (
        ("Termination procedures", hl.termination_procedures),
        ("Key restrictions", hl.key_restrictions),
        ("Action items", hl.action_items),
    ):
        if values:
            section_title(title)
            st.markdown("\n".join(f"- {v}" for v in values))
    with st.expander("Highlights analysis"):
        st.markdown(hl.analysis)


def _chat_message(msg: ChatMessage):
    if msg.role == "user":
        st.markdown(f"<div class='chat-q'>Q: {_esc(msg.content)}</div>", unsafe_allow_html=True)
        return
    st.markdown(f"<div class='chat-a'>{_esc(msg.content)}</div>", unsafe_allow_html=True)
    meta: List[str] = []
    if msg.confidence is not None:
        band = confidence_band(msg.confidence)
        meta.append(f"<span style='color:{BAND_COLORS[band]};'>Confidence: {msg.confidence:.0f}%</span>")
    if msg.processing_time_seconds is not None:
        meta.append(f"{msg.processing_time_seconds:.1f}s")
    for c in (msg.citations or [])[:2]:
        label = c.get("section") or c.get("source") or c.get("page") if isinstance(c, dict) else c
        meta.append(f"<span class='citation'>📎 {_esc(label)}</span>")
    if meta:
        st.markdown(" · ".join(meta), unsafe_allow_html=True)
    if msg.related_topics:
        st.caption("Related: " + ", ".join(msg.related_topics[:3]))


def qa_tab(controller: AppController, state: Session):
    session = controller.qa_session()
    if session is None:
        return
    if not state.backend_health.services.rag_qa:
        st.caption("Q&A service is not reporting ready; answers may be limited.")
    if not session.suggestions:
        session.load_suggestions()
    st.write("Ask questions about this document.")
    picked = None
    cols = st.columns(2)
    for idx, question in enumerate(session.suggestions[:6]):
        with cols[idx % 2]:
            if st.button(question, key=f"suggest-{idx}", use_container_width=True):
                picked = question
    topic = st.selectbox("Quick topics", ["-"] + C.QUICK_TOPICS, key="quick-topic")
    if topic != "-" and st.button(f"Ask about {topic}"):
        picked = f"What does this document say about {topic.lower()}?"
    with st.form("qa_form", clear_on_submit=True):
        question = st.text_input("Enter your question", placeholder="e.g., Can I terminate early?")
        ask_col, clear_col = st.columns(2)
        with ask_col:
            submitted = st.form_submit_button("Ask", use_container_width=True, disabled=session.is_asking)
        with clear_col:
            clear_hist = st.form_submit_button("Clear History", use_container_width=True)
    if clear_hist:
        session.clear()
    query = picked or (question if submitted else None)
    if query:
        with st.spinner(C.LOADING_ANSWER):
            session.ask(query)
    for msg in session.messages:
        _chat_message(msg)
    last = session.messages[-1] if session.messages else None
    if last is not None and last.follow_up_questions:
        st.caption("Follow-up ideas: " + " • ".join(last.follow_up_questions[:3]))
