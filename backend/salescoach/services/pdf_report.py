"""
PDF coaching report for a single assessment.

Built with ReportLab's Platypus layout engine: the report is a list of
flowables (paragraphs, tables, drawings) and ReportLab handles pagination.
The radar chart is a ``reportlab.graphics`` Drawing, which is itself a
flowable and can sit inside a table cell beside the context box.
"""

import logging
import os
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.graphics.shapes import Drawing, Line, Polygon, String
from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from salescoach.utils.spider import TARGET_LEVEL, level_radar_series, radar_points
from salescoach.utils.step_levels import (
    SOURCE_MANUAL,
    checked_behavior_ids,
    get_level_short_code,
    get_level_text,
    get_overall_proficiency,
    get_unified_step_levels,
    manual_step_levels,
)

logger = logging.getLogger(__name__)

REPORTS_DIR = os.getenv("REPORTS_DIR", "./reports")

BRAND_PRIMARY = colors.HexColor("#3b82f6")
BRAND_TEXT = colors.HexColor("#1f2937")
BRAND_MUTED = colors.HexColor("#6b7280")
BORDER_GREY = colors.HexColor("#c8c8c8")
GRID_GREY = colors.HexColor("#e6e6e6")
BENCHMARK_BLUE = colors.HexColor("#7dd3fc")

# Header colors cycle through the steps in order
STEP_COLORS = [
    colors.HexColor("#ec4899"),
    colors.HexColor("#3b82f6"),
    colors.HexColor("#22c55e"),
    colors.HexColor("#fbbf24"),
    colors.HexColor("#ef4444"),
    colors.HexColor("#5b21b6"),
    colors.HexColor("#c4a5ff"),
]

NOTE_SECTIONS = [
    ("Key Observations", "key_observations", colors.HexColor("#f9fafb")),
    ("What Worked Well", "what_worked_well", colors.HexColor("#f0fdf4")),
    ("What Can Be Improved", "what_can_be_improved", colors.HexColor("#fef2f2")),
    ("Next Steps", "next_steps", colors.HexColor("#eff6ff")),
]


def _build_styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("ReportTitle", parent=base["Title"], fontSize=18, textColor=colors.white,
                                alignment=TA_LEFT, spaceAfter=2),
        "header_info": ParagraphStyle("HeaderInfo", parent=base["Normal"], fontSize=9, textColor=colors.white),
        "header_date": ParagraphStyle("HeaderDate", parent=base["Normal"], fontSize=9, textColor=colors.white,
                                      alignment=TA_RIGHT),
        "h3": ParagraphStyle("SectionHeading", parent=base["Heading3"], fontSize=11, textColor=BRAND_TEXT,
                             spaceBefore=8, spaceAfter=4),
        "body": ParagraphStyle("Body", parent=base["Normal"], fontSize=9, textColor=BRAND_TEXT, leading=12),
        "step_title": ParagraphStyle("StepTitle", parent=base["Normal"], fontSize=11, textColor=colors.white,
                                     fontName="Helvetica-Bold"),
        "step_level": ParagraphStyle("StepLevel", parent=base["Normal"], fontSize=9, textColor=colors.white,
                                     alignment=TA_RIGHT),
        "substep": ParagraphStyle("Substep", parent=base["Normal"], fontSize=9, textColor=BRAND_TEXT,
                                  fontName="Helvetica-Bold", spaceBefore=4, spaceAfter=2, leftIndent=4),
        "behavior": ParagraphStyle("Behavior", parent=base["Normal"], fontSize=8, textColor=BRAND_TEXT,
                                   leading=10, leftIndent=14),
        "footer": ParagraphStyle("Footer", parent=base["Normal"], fontSize=8, textColor=BRAND_MUTED),
    }


def _text(value: Optional[str]) -> str:
    """Escape free text for Paragraph markup, keeping line breaks."""
    return escape(value or "").replace("\n", "<br/>")


def build_radar_drawing(steps, unified_levels, size: float = 70 * mm) -> Drawing:
    """Draw unified step levels against the Level 3 benchmark as a heptagon radar."""
    series = level_radar_series(steps, unified_levels)
    drawing = Drawing(size, size)
    if not series:
        return drawing

    cx = cy = size / 2
    radius = size * 0.32
    count = len(series)

    # Concentric grid, one ring per level
    for level in range(1, 5):
        ring = radar_points([level] * count, 4, cx, cy, radius)
        drawing.add(Polygon(points=[coord for point in ring for coord in point], fillColor=None,
                            strokeColor=GRID_GREY, strokeWidth=0.5))

    for x, y in radar_points([4] * count, 4, cx, cy, radius):
        drawing.add(Line(cx, cy, x, y, strokeColor=GRID_GREY, strokeWidth=0.3))

    benchmark = radar_points([TARGET_LEVEL] * count, 4, cx, cy, radius)
    drawing.add(Polygon(points=[coord for point in benchmark for coord in point], fillColor=None,
                        strokeColor=BENCHMARK_BLUE, strokeWidth=1.5, strokeDashArray=[3, 2]))

    actual = radar_points([entry["level"] for entry in series], 4, cx, cy, radius)
    drawing.add(Polygon(points=[coord for point in actual for coord in point],
                        fillColor=colors.Color(0.23, 0.51, 0.96, alpha=0.3),
                        strokeColor=BRAND_PRIMARY, strokeWidth=1.2))

    for entry, (x, y) in zip(series, radar_points([4.6] * count, 4.6, cx, cy, radius * 1.18)):
        drawing.add(String(x, y - 2, entry["step"], fontSize=6, fillColor=BRAND_TEXT, textAnchor="middle"))

    drawing.add(Line(4, 11, 16, 11, strokeColor=BENCHMARK_BLUE, strokeWidth=1.5, strokeDashArray=[3, 2]))
    drawing.add(String(19, 9, f"Benchmark (Level {TARGET_LEVEL})", fontSize=6, fillColor=BRAND_MUTED))
    drawing.add(Line(4, 4, 16, 4, strokeColor=BRAND_PRIMARY, strokeWidth=1.2))
    drawing.add(String(19, 2, "Actual Performance", fontSize=6, fillColor=BRAND_MUTED))
    return drawing


def _header(assessment, coach, overall, styles, width) -> Table:
    created = assessment.created_at or datetime.now()
    info = (f"Coach: {_text(coach.full_name if coach else '')} | "
            f"Coachee: {_text(assessment.assessee_name)} | "
            f"Proficiency Level: {_text(overall.text)}")
    header = Table(
        [
            [Paragraph("SalesCoach Report", styles["title"]), ""],
            [Paragraph(info, styles["header_info"]),
             Paragraph(created.strftime("%d.%m.%Y | %H:%M"), styles["header_date"])],
        ],
        colWidths=[width * 0.75, width * 0.25],
    )
    header.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), BRAND_PRIMARY),
        ("SPAN", (0, 0), (1, 0)),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), 8),
        ("RIGHTPADDING", (0, 0), (-1, -1), 8),
    ]))
    return header


def _context_and_radar(assessment, steps, unified, styles, width) -> Table:
    context = Paragraph(_text(assessment.context) or "&nbsp;", styles["body"])
    radar = build_radar_drawing(steps, unified)
    table = Table(
        [[Paragraph("Context:", styles["h3"]), ""], [context, radar]],
        colWidths=[width * 0.5, width * 0.5],
    )
    table.setStyle(TableStyle([
        ("BOX", (0, 1), (0, 1), 0.5, BORDER_GREY),
        ("VALIGN", (0, 1), (0, 1), "TOP"),
        ("ALIGN", (1, 1), (1, 1), "CENTER"),
    ]))
    return table


def _step_section(index, step, unified_level, checked, styles, width) -> List:
    level_text = get_level_text(unified_level.level) if unified_level else get_level_text(None)
    if unified_level and unified_level.source == SOURCE_MANUAL:
        level_text += " (manual)"
    elif unified_level and unified_level.percentage is not None:
        level_text += f" ({unified_level.percentage}%)"

    header = Table(
        [[Paragraph(f"{index}. {_text(step.title)}", styles["step_title"]),
          Paragraph(level_text, styles["step_level"])]],
        colWidths=[width * 0.65, width * 0.35],
    )
    header.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), STEP_COLORS[(index - 1) % len(STEP_COLORS)]),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))

    flowables = [Spacer(1, 4 * mm), header]
    for substep in step.substeps:
        flowables.append(Paragraph(_text(substep.title), styles["substep"]))
        for behavior in substep.behaviors:
            mark = "[x]" if behavior.id in checked else "[&nbsp;&nbsp;]"
            prefix = get_level_short_code(behavior.proficiency_level)
            flowables.append(Paragraph(f"{mark} <b>{prefix}</b> {_text(behavior.description)}", styles["behavior"]))
    return flowables


def _note_section(title, content, background, styles, width) -> KeepTogether:
    box = Table([[Paragraph(_text(content) or "&nbsp;", styles["body"])]], colWidths=[width],
                rowHeights=[None if content else 18 * mm])
    box.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), background),
        ("BOX", (0, 0), (-1, -1), 0.5, BORDER_GREY),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return KeepTogether([Paragraph(f"{title}:", styles["h3"]), box])


def _signatures(coach, assessment, styles, width) -> KeepTogether:
    line = "_" * 40
    table = Table(
        [[Paragraph(line, styles["body"]), Paragraph(line, styles["body"])],
         [Paragraph(f"Coach: {_text(coach.full_name if coach else '')}", styles["footer"]),
          Paragraph(f"Coachee: {_text(assessment.assessee_name)}", styles["footer"])]],
        colWidths=[width * 0.5, width * 0.5],
    )
    return KeepTogether([Spacer(1, 10 * mm), Paragraph("Electronic Signatures", styles["h3"]),
                         Spacer(1, 8 * mm), table])


def _add_page_number(canvas, doc):
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(BRAND_MUTED)
    canvas.drawRightString(doc.pagesize[0] - 20 * mm, 10 * mm, str(doc.page))
    canvas.restoreState()


def generate_coaching_report(assessment, coach, steps, assessment_scores, step_scores) -> bytes:
    """
    Render the coaching report for an assessment.

    Args:
        assessment: Assessment with context and coaching notes
        coach: User who ran the session
        steps: Ordered rubric steps with substeps and behaviors
        assessment_scores: Behavior checklist rows for the assessment
        step_scores: Manual step level overrides for the assessment

    Returns:
        PDF document bytes
    """
    steps = list(steps)
    checked = checked_behavior_ids(assessment_scores)
    unified = get_unified_step_levels(steps, checked, manual_step_levels(step_scores))
    overall = get_overall_proficiency(unified)
    unified_by_step = {level.step_id: level for level in unified}

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=20 * mm, rightMargin=20 * mm,
                            topMargin=15 * mm, bottomMargin=18 * mm,
                            title=f"SalesCoach Report - {assessment.assessee_name}")
    width = doc.width
    styles = _build_styles()

    story = [
        _header(assessment, coach, overall, styles, width),
        Spacer(1, 6 * mm),
        _context_and_radar(assessment, steps, unified, styles, width),
    ]
    for index, step in enumerate(steps, start=1):
        story.extend(_step_section(index, step, unified_by_step.get(step.id), checked, styles, width))

    story.append(Spacer(1, 6 * mm))
    for title, attribute, background in NOTE_SECTIONS:
        story.append(_note_section(title, getattr(assessment, attribute), background, styles, width))

    story.append(_signatures(coach, assessment, styles, width))

    doc.build(story, onFirstPage=_add_page_number, onLaterPages=_add_page_number)
    pdf_bytes = buffer.getvalue()
    logger.info("Generated coaching report for assessment %s (%d bytes, overall %s)",
                assessment.id, len(pdf_bytes), overall.text)
    return pdf_bytes


def save_report(pdf_bytes: bytes, assessment_id: int, reports_dir: Optional[str] = None) -> str:
    """
    Write a report into the reports directory and return its path.
    Each assessment has a single report file, replaced on every export.
    """
    directory = Path(reports_dir or REPORTS_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"coaching-report-{assessment_id}.pdf"
    path.write_bytes(pdf_bytes)
    return str(path)
