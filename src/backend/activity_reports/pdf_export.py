from __future__ import annotations

from io import BytesIO
from typing import Any, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import LongTable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .models import ActivityReport
from .rows import COL_DATE

PDF_MEDIA_TYPE = "application/pdf"
PDF_FILENAME = "Activity_Report.pdf"
DEFAULT_ROW_LIMIT = 15

MARGIN = 14 * mm
PAGE_WIDTH, PAGE_HEIGHT = A4
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN

TABLE_HEADERS = ["Name", "Date", "Type", "Description", "Duration", "Status"]
TABLE_COL_WIDTHS = [0.16, 0.13, 0.14, 0.33, 0.11, 0.13]

PALETTE = {
    "navy": colors.HexColor("#0F172A"),
    "text": colors.HexColor("#0F172A"),
    "grid": colors.HexColor("#E2E8F0"),
    "stripe_even": colors.HexColor("#F8FAFC"),
    "stripe_odd": colors.HexColor("#F1F5F9"),
    "card_fill": colors.HexColor("#DBEAFE"),
}

_STYLES = getSampleStyleSheet()
TITLE_STYLE = ParagraphStyle(
    "report-title",
    parent=_STYLES["Title"],
    fontName="Helvetica-Bold",
    fontSize=18,
    leading=22,
    alignment=0,
    textColor=PALETTE["navy"],
)
META_STYLE = ParagraphStyle(
    "report-meta",
    parent=_STYLES["BodyText"],
    fontName="Helvetica",
    fontSize=12,
    leading=16,
    textColor=PALETTE["text"],
)
SECTION_HEADING_STYLE = ParagraphStyle(
    "section-heading",
    parent=_STYLES["Heading5"],
    fontName="Helvetica-Bold",
    fontSize=11,
    leading=13,
    textColor=PALETTE["navy"],
    spaceAfter=4,
)
TABLE_HEADER_STYLE = ParagraphStyle(
    "table-header",
    parent=_STYLES["BodyText"],
    fontName="Helvetica-Bold",
    fontSize=9,
    leading=11,
    textColor=colors.white,
)
TABLE_CELL_STYLE = ParagraphStyle(
    "table-cell",
    parent=_STYLES["BodyText"],
    fontName="Helvetica",
    fontSize=9,
    leading=11,
    textColor=PALETTE["text"],
)


def _safe_text(value: Any, *, fallback: str = "-") -> str:
    if value is None:
        return fallback
    text = str(value).strip()
    return text if text else fallback


def _cell(value: Any, style: ParagraphStyle = TABLE_CELL_STYLE) -> Paragraph:
    return Paragraph(escape(_safe_text(value)), style)


def _summary_table(report: ActivityReport) -> Table:
    summary = report.summary
    pairs = [
        ("Total activities", summary.total),
        ("Completed", summary.completed),
        ("Pending", summary.pending),
        ("Blockers", summary.blockers),
        ("Total minutes", summary.total_minutes),
        ("Avg duration", f"{summary.avg_duration_minutes} min"),
        ("Completion rate", f"{summary.completion_rate_pct}%"),
        ("Blocker rate", f"{summary.blocker_rate_pct}%"),
    ]
    # Two label/value pairs per row.
    rows: List[List[Any]] = []
    for index in range(0, len(pairs), 2):
        row: List[Any] = []
        for label, value in pairs[index:index + 2]:
            row.extend([_cell(label), _cell(value)])
        rows.append(row)
    table = Table(rows, colWidths=[CONTENT_WIDTH * 0.3, CONTENT_WIDTH * 0.2] * 2)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), PALETTE["card_fill"]),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.white),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    return table


def _leaderboard_table(report: ActivityReport) -> Table:
    rows: List[List[Any]] = [[_cell("Rank", TABLE_HEADER_STYLE), _cell("Name", TABLE_HEADER_STYLE), _cell("Activities", TABLE_HEADER_STYLE)]]
    for rank, entry in enumerate(report.summary.leaderboard, start=1):
        rows.append([_cell(rank), _cell(entry.name), _cell(entry.count)])
    table = Table(rows, colWidths=[CONTENT_WIDTH * 0.15, CONTENT_WIDTH * 0.55, CONTENT_WIDTH * 0.3])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), PALETTE["navy"]),
                ("GRID", (0, 0), (-1, -1), 0.5, PALETTE["grid"]),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [PALETTE["stripe_even"], PALETTE["stripe_odd"]]),
            ]
        )
    )
    return table


def _activity_table(report: ActivityReport, row_limit: int) -> LongTable:
    rows: List[List[Any]] = [[_cell(header, TABLE_HEADER_STYLE) for header in TABLE_HEADERS]]
    for record in report.records[:row_limit]:
        rows.append(
            [
                _cell(record.member_name),
                _cell(record.cells[COL_DATE] if record.cells else record.date),
                _cell(record.activity_type),
                _cell(record.description),
                _cell(f"{record.duration_minutes} min"),
                _cell(record.status),
            ]
        )
    table = LongTable(rows, colWidths=[CONTENT_WIDTH * share for share in TABLE_COL_WIDTHS], repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), PALETTE["navy"]),
                ("GRID", (0, 0), (-1, -1), 0.5, PALETTE["grid"]),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [PALETTE["stripe_even"], PALETTE["stripe_odd"]]),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    return table


def render_pdf(report: ActivityReport, row_limit: int = DEFAULT_ROW_LIMIT, compress: bool = True) -> bytes:
    """
    Render a one-document PDF report: query header, summary numbers,
    leaderboard, and the first ``row_limit`` activities.
    """

    query = report.query
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title="Activity Report",
        pageCompression=1 if compress else 0,
    )

    story: List[Any] = [
        Paragraph("Activity Report", TITLE_STYLE),
        Paragraph(escape(f"Employee: {query.employee_label}"), META_STYLE),
        Paragraph(escape(f"From: {query.date_from.isoformat()}  To: {query.date_to.isoformat()}"), META_STYLE),
        Paragraph(escape(f"Type: {query.type_filter.value.upper()}"), META_STYLE),
        Spacer(1, 6 * mm),
        Paragraph("Summary", SECTION_HEADING_STYLE),
        _summary_table(report),
    ]
    if report.summary.leaderboard:
        story.extend([Spacer(1, 6 * mm), Paragraph("Leaderboard", SECTION_HEADING_STYLE), _leaderboard_table(report)])
    story.extend([Spacer(1, 6 * mm), Paragraph("Activities", SECTION_HEADING_STYLE), _activity_table(report, row_limit)])

    doc.build(story)
    return buffer.getvalue()
