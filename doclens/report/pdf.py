"""PDF export as an ordered chain of strategies.

1. ``LayoutStrategy``  - reportlab platypus flow layout on A4, pages appended
   until the content is consumed.
2. ``CanvasStrategy``  - direct canvas drawing with manual wrapping.
3. ``MinimalStrategy`` - one page saying generation failed.

The first strategy that returns bytes wins; the minimal one draws a single
built-in-font string so every export yields a downloadable file.
"""
from __future__ import annotations
import io
import textwrap
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import ListFlowable, ListItem, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from doclens.report.sections import ReportSection, build_report_sections
from doclens.utils.logger import get_logger
from doclens.utils.types import AnalysisResult

logger = get_logger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 18 * mm
TITLE = "Legal Document Analysis Report"


@dataclass
class ReportFile:
    content: bytes
    filename: str
    strategy: str
    mime: str = "application/pdf"


def report_filename(source_name: str) -> str:
    stem = Path(source_name or "document").stem or "document"
    return f"{stem}_analysis_report.pdf"


class LayoutStrategy:
    name = "layout"

    def render(self, sections: List[ReportSection], source_name: str) -> bytes:
        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf, pagesize=A4, leftMargin=MARGIN, rightMargin=MARGIN, topMargin=MARGIN, bottomMargin=MARGIN,
            title=TITLE, author="doclens",
        )
        styles = getSampleStyleSheet()
        body = ParagraphStyle("body", parent=styles["BodyText"], fontSize=9.5, leading=13)
        heading = ParagraphStyle("h2", parent=styles["Heading2"], textColor=colors.HexColor("#4b3fa8"))
        story = [Paragraph(TITLE, styles["Title"]), Paragraph(escape(source_name), styles["Italic"]), Spacer(1, 6 * mm)]
        for section in sections:
            story.append(Paragraph(escape(section.title), heading))
            if section.facts:
                story.append(self._facts_table(section, body))
            story.extend(Paragraph(escape(p), body) for p in section.paragraphs)
            if section.bullets:
                story.append(ListFlowable(
                    [ListItem(Paragraph(escape(b), body), leftIndent=10) for b in section.bullets],
                    bulletType="bullet", start="•", leftIndent=10,
                ))
            story.append(Spacer(1, 4 * mm))
        doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
        return buf.getvalue()

    @staticmethod
    def _facts_table(section: ReportSection, style: ParagraphStyle) -> Table:
        rows = [[Paragraph(f"<b>{escape(k)}</b>", style), Paragraph(escape(v), style)] for k, v in section.facts]
        table = Table(rows, colWidths=[45 * mm, PAGE_WIDTH - 2 * MARGIN - 45 * mm])
        table.setStyle(TableStyle([
            ("GRID", (0, 0), (-1, -1), 0.4, colors.HexColor("#dbe2ec")),
            ("BACKGROUND", (0, 0), (0, -1), colors.HexColor("#f2f5f9")),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]))
        return table


def _footer(canv: canvas.Canvas, doc) -> None:
    canv.saveState()
    canv.setFont("Helvetica", 7.5)
    canv.setFillColor(colors.grey)
    canv.drawString(MARGIN, MARGIN / 2, "Not legal advice. For informational purposes only.")
    canv.drawRightString(PAGE_WIDTH - MARGIN, MARGIN / 2, f"Page {doc.page}")
    canv.restoreState()


class CanvasStrategy:
    name = "canvas"
    line_height = 12
    wrap_chars = 95

    def render(self, sections: List[ReportSection], source_name: str) -> bytes:
        buf = io.BytesIO()
        c = canvas.Canvas(buf, pagesize=A4)
        c.setTitle(TITLE)
        y = PAGE_HEIGHT - MARGIN

        def line(text: str, font: str = "Helvetica", size: float = 10, indent: float = 0) -> None:
            nonlocal y
            if y < MARGIN + self.line_height:
                c.showPage()
                y = PAGE_HEIGHT - MARGIN
            c.setFont(font, size)
            c.drawString(MARGIN + indent, y, text)
            y -= self.line_height

        line(TITLE, "Helvetica-Bold", 14)
        line(source_name, "Helvetica-Oblique", 10)
        for section in sections:
            y -= self.line_height / 2
            line(section.title, "Helvetica-Bold", 12)
            for k, v in section.facts:
                for chunk in textwrap.wrap(f"{k}: {v}", self.wrap_chars) or [""]:
                    line(chunk)
            for p in section.paragraphs:
                for chunk in textwrap.wrap(p, self.wrap_chars):
                    line(chunk)
            for b in section.bullets:
                for i, chunk in enumerate(textwrap.wrap(b, self.wrap_chars - 4)):
                    line(("- " if i == 0 else "  ") + chunk, indent=8)
        c.save()
        return buf.getvalue()


class MinimalStrategy:
    name = "minimal"

    def render(self, sections: List[ReportSection], source_name: str) -> bytes:
        buf = io.BytesIO()
        c = canvas.Canvas(buf, pagesize=A4)
        c.setFont("Helvetica-Bold", 14)
        c.drawString(MARGIN, PAGE_HEIGHT - MARGIN, "Report generation failed")
        c.setFont("Helvetica", 10)
        c.drawString(MARGIN, PAGE_HEIGHT - MARGIN - 20, f"Document: {source_name[:90]}")
        c.drawString(MARGIN, PAGE_HEIGHT - MARGIN - 34, f"Generated: {datetime.now():%Y-%m-%d %H:%M}")
        c.drawString(MARGIN, PAGE_HEIGHT - MARGIN - 48, "Please view the analysis in the application.")
        c.save()
        return buf.getvalue()


DEFAULT_STRATEGIES = (LayoutStrategy(), CanvasStrategy(), MinimalStrategy())


def export_report_pdf(
    analysis: AnalysisResult,
    source_name: str,
    strategies: Optional[Sequence] = None,
) -> ReportFile:
    strategies = list(strategies or DEFAULT_STRATEGIES)
    filename = report_filename(source_name)
    try:
        sections = build_report_sections(analysis, source_name)
    except Exception:
        logger.exception("Could not assemble report content for %s", source_name)
        sections = []
    last_error: Optional[Exception] = None
    for strategy in strategies:
        if not sections and strategy.name != MinimalStrategy.name:
            continue
        try:
            content = strategy.render(sections, source_name)
        except Exception as e:
            last_error = e
            logger.warning("PDF strategy %s failed: %s", strategy.name, e)
            continue
        if content:
            logger.info("Report for %s rendered with %s strategy", source_name, strategy.name)
            return ReportFile(content=content, filename=filename, strategy=strategy.name)
    # The chain did not end with a working minimal strategy
    content = MinimalStrategy().render([], source_name)
    logger.error("All PDF strategies failed for %s (last error: %s)", source_name, last_error)
    return ReportFile(content=content, filename=filename, strategy=MinimalStrategy.name)
