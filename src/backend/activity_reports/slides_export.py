"""
Slide-deck presenter.

Builds a widescreen deck from an ``ActivityReport``: cover, KPI overview,
status summary, the activity table, leaderboard and key insights. Layout
coordinates are in inches on a 13.33 x 7.5 slide.
"""

from __future__ import annotations

from io import BytesIO
from typing import List, Optional, Sequence

from pptx import Presentation
from pptx.chart.data import CategoryChartData
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE, XL_LEGEND_POSITION
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import PP_ALIGN
from pptx.util import Inches, Pt

from .models import STATUS_COMPLETED, ActivityRecord, ActivityReport
from .rows import COL_DATE
from .service import most_active

PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
PPTX_FILENAME = "Activity_Report.pptx"

SLIDE_W = 13.33
SLIDE_H = 7.5
TABLE_ROWS_PER_SLIDE = 12
FONT_FACE = "Calibri"

NAVY = "0F172A"
NAVY_800 = "1E293B"
BLUE_600 = "2563EB"
BLUE_500 = "3B82F6"
BLUE_100 = "DBEAFE"
SLATE_50 = "F8FAFC"
SLATE_700 = "334155"
WHITE = "FFFFFF"
GREEN = "10B981"
AMBER = "F59E0B"
RED = "EF4444"
CYAN = "06B6D4"
CYAN_DARK = "0891B2"
INDIGO = "6366F1"
GRAY_300 = "CBD5E1"

TABLE_HEADERS = ["Name", "Date", "Type", "Description", "Duration", "Status", "Blocker"]
TABLE_COL_WIDTHS = [1.8, 1.3, 1.6, 4.0, 1.1, 1.3, 1.0]


def _rgb(hex_color: str) -> RGBColor:
    return RGBColor.from_string(hex_color)


def _add_shape(slide, shape_type, x: float, y: float, w: float, h: float, color: str):
    shape = slide.shapes.add_shape(shape_type, Inches(x), Inches(y), Inches(w), Inches(h))
    shape.fill.solid()
    shape.fill.fore_color.rgb = _rgb(color)
    shape.line.fill.background()
    return shape


def _add_text(
    slide,
    text: str,
    x: float,
    y: float,
    w: float,
    h: float,
    size: int = 14,
    color: str = SLATE_700,
    bold: bool = False,
    italic: bool = False,
    align: PP_ALIGN = PP_ALIGN.LEFT,
):
    box = slide.shapes.add_textbox(Inches(x), Inches(y), Inches(w), Inches(h))
    frame = box.text_frame
    frame.word_wrap = True
    paragraph = frame.paragraphs[0]
    paragraph.alignment = align
    run = paragraph.add_run()
    run.text = text
    run.font.name = FONT_FACE
    run.font.size = Pt(size)
    run.font.bold = bold
    run.font.italic = italic
    run.font.color.rgb = _rgb(color)
    return box


def _set_background(slide, color: str) -> None:
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = _rgb(color)


def _blank_slide(prs, background: str = WHITE):
    slide = prs.slides.add_slide(prs.slide_layouts[6])
    _set_background(slide, background)
    return slide


def _apply_header(slide, heading: str, slide_number: int) -> None:
    _add_shape(slide, MSO_SHAPE.RECTANGLE, 0, 0, SLIDE_W, 1.15, NAVY)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, 0, 1.15, SLIDE_W, 0.08, BLUE_500)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, 0, 1.23, SLIDE_W, 0.04, CYAN)
    _add_text(slide, heading, 0.8, 0.25, 8, 0.7, size=26, color=WHITE, bold=True)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, 0, SLIDE_H - 0.4, SLIDE_W, 0.4, NAVY)
    _add_text(slide, f"{slide_number:02d}", SLIDE_W - 1.2, SLIDE_H - 0.38, 0.8, 0.35, size=11, color=WHITE, bold=True, align=PP_ALIGN.RIGHT)
    _add_text(slide, "CONFIDENTIAL", 0.8, SLIDE_H - 0.38, 3, 0.35, size=9, color=GRAY_300)


def _section_divider(prs, title: str, subtitle: str) -> None:
    slide = _blank_slide(prs, NAVY)
    _add_shape(slide, MSO_SHAPE.OVAL, SLIDE_W - 4, -1.5, 5, 5, NAVY_800)
    _add_text(slide, title, 1.0, 2.6, SLIDE_W - 2, 1.2, size=40, color=WHITE, bold=True)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, 1.0, 3.85, 2.0, 0.06, CYAN)
    _add_text(slide, subtitle, 1.0, 4.1, SLIDE_W - 2, 0.8, size=18, color=GRAY_300)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, 0, SLIDE_H - 0.25, SLIDE_W, 0.25, BLUE_600)


def _stat_card(slide, x: float, y: float, w: float, h: float, label: str, value: str, accent: str) -> None:
    _add_shape(slide, MSO_SHAPE.ROUNDED_RECTANGLE, x, y, w, h, WHITE)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, x, y, w, 0.12, accent)
    _add_text(slide, value, x, y + 0.35, w, 0.8, size=32, color=accent, bold=True, align=PP_ALIGN.CENTER)
    _add_text(slide, label.upper(), x, y + 1.2, w, 0.4, size=11, color=SLATE_700, align=PP_ALIGN.CENTER)


def _cover_slide(prs, report: ActivityReport) -> None:
    query = report.query
    slide = _blank_slide(prs)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, 0, 0, SLIDE_W * 0.58, SLIDE_H, NAVY)
    _add_shape(slide, MSO_SHAPE.OVAL, SLIDE_W - 2.5, -0.8, 3, 3, BLUE_100)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, 0, SLIDE_H - 0.25, SLIDE_W, 0.25, BLUE_600)
    _add_text(slide, "Activity Report", 0.8, 2.2, 6.5, 1.2, size=44, color=WHITE, bold=True)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, 0.8, 3.45, 2.0, 0.06, CYAN)
    _add_text(slide, "Team activity performance overview", 0.8, 3.7, 6.5, 0.6, size=18, color=GRAY_300, italic=True)

    card_x = SLIDE_W * 0.62
    _add_shape(slide, MSO_SHAPE.ROUNDED_RECTANGLE, card_x, 2.0, 4.4, 3.2, SLATE_50)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, card_x, 2.0, 0.1, 3.2, BLUE_600)
    details = [
        ("Employee", query.employee_label),
        ("Period", f"{query.date_from.isoformat()} to {query.date_to.isoformat()}"),
        ("Report Type", query.type_filter.value.upper()),
        ("Activities", str(report.summary.total)),
    ]
    for index, (label, value) in enumerate(details):
        y = 2.2 + index * 0.72
        _add_text(slide, label.upper(), card_x + 0.4, y, 3.8, 0.3, size=10, color=BLUE_600, bold=True)
        _add_text(slide, value, card_x + 0.4, y + 0.28, 3.8, 0.4, size=15, color=NAVY, bold=True)


def _overview_slide(prs, report: ActivityReport, slide_number: int) -> None:
    summary = report.summary
    slide = _blank_slide(prs, SLATE_50)
    _apply_header(slide, "Dashboard Overview", slide_number)

    cards = [
        ("Total Activities", str(summary.total), BLUE_600),
        ("Completed", str(summary.completed), GREEN),
        ("Pending", str(summary.pending), AMBER),
        ("Blockers", str(summary.blockers), RED),
    ]
    card_w, gap = 2.8, 0.3
    start_x = (SLIDE_W - (len(cards) * card_w + (len(cards) - 1) * gap)) / 2
    for index, (label, value, accent) in enumerate(cards):
        _stat_card(slide, start_x + index * (card_w + gap), 1.6, card_w, 1.7, label, value, accent)

    if summary.leaderboard:
        chart_data = CategoryChartData()
        chart_data.categories = [entry.name or "(unnamed)" for entry in summary.leaderboard]
        chart_data.add_series("Activities", [entry.count for entry in summary.leaderboard])
        graphic = slide.shapes.add_chart(
            XL_CHART_TYPE.BAR_CLUSTERED, Inches(start_x), Inches(3.6), Inches(SLIDE_W - 2 * start_x), Inches(3.3), chart_data
        )
        graphic.chart.has_legend = False
        graphic.chart.plots[0].series[0].format.fill.solid()
        graphic.chart.plots[0].series[0].format.fill.fore_color.rgb = _rgb(BLUE_600)
    else:
        _add_text(slide, "No activities in the selected range.", start_x, 4.5, 8, 0.6, size=16, italic=True)


def _summary_slide(prs, report: ActivityReport, slide_number: int) -> None:
    summary = report.summary
    slide = _blank_slide(prs, SLATE_50)
    _apply_header(slide, "Summary Overview", slide_number)

    stats = [
        ("Total Activities", str(summary.total), BLUE_600),
        ("Completed", str(summary.completed), GREEN),
        ("Pending", str(summary.pending), AMBER),
        ("Blockers", str(summary.blockers), RED),
    ]
    for index, (label, value, accent) in enumerate(stats):
        y = 1.6 + index * 1.3
        _add_shape(slide, MSO_SHAPE.ROUNDED_RECTANGLE, 0.8, y, 4.6, 1.1, WHITE)
        _add_shape(slide, MSO_SHAPE.RECTANGLE, 0.8, y, 0.1, 1.1, accent)
        _add_text(slide, label.upper(), 1.2, y + 0.15, 2.6, 0.4, size=12, color=SLATE_700, bold=True)
        _add_text(slide, value, 3.6, y + 0.15, 1.6, 0.8, size=28, color=accent, bold=True, align=PP_ALIGN.RIGHT)

    if summary.completed or summary.pending:
        chart_data = CategoryChartData()
        chart_data.categories = ["Completed", "Pending"]
        chart_data.add_series("Status", [summary.completed, summary.pending])
        graphic = slide.shapes.add_chart(XL_CHART_TYPE.DOUGHNUT, Inches(6.2), Inches(1.6), Inches(6.2), Inches(5.0), chart_data)
        chart = graphic.chart
        chart.has_legend = True
        chart.legend.position = XL_LEGEND_POSITION.BOTTOM
        chart.legend.include_in_layout = False
        for point, color in zip(chart.plots[0].series[0].points, (GREEN, AMBER)):
            point.format.fill.solid()
            point.format.fill.fore_color.rgb = _rgb(color)
    else:
        _add_text(slide, "No completed or pending activities.", 6.2, 3.8, 6.2, 0.6, size=16, italic=True, align=PP_ALIGN.CENTER)


def _chunk(records: Sequence[ActivityRecord], size: int) -> List[Sequence[ActivityRecord]]:
    if not records:
        return [()]
    return [records[index:index + size] for index in range(0, len(records), size)]


def _table_slides(prs, report: ActivityReport, slide_number: int) -> int:
    """Add the activity table, continued across slides. Returns slides added."""

    pages = _chunk(report.records, TABLE_ROWS_PER_SLIDE)
    for page_index, page in enumerate(pages):
        heading = "Recent Activities" if page_index == 0 else "Recent Activities (cont.)"
        slide = _blank_slide(prs, SLATE_50)
        _apply_header(slide, heading, slide_number + page_index)
        if not page:
            _add_text(slide, "No activities match this report.", 0.8, 3.2, 11, 0.6, size=18, italic=True, align=PP_ALIGN.CENTER)
            continue

        graphic = slide.shapes.add_table(
            len(page) + 1, len(TABLE_HEADERS), Inches(0.4), Inches(1.5), Inches(sum(TABLE_COL_WIDTHS)), Inches(0.4 * (len(page) + 1))
        )
        table = graphic.table
        for col, width in enumerate(TABLE_COL_WIDTHS):
            table.columns[col].width = Inches(width)
        for col, header in enumerate(TABLE_HEADERS):
            _fill_cell(table.cell(0, col), header, NAVY, WHITE, bold=True)
        for row_index, record in enumerate(page, start=1):
            background = BLUE_100 if row_index % 2 else WHITE
            values = [
                record.member_name,
                record.cells[COL_DATE] if record.cells else (record.date.isoformat() if record.date else ""),
                record.activity_type,
                record.description,
                f"{record.duration_minutes} min",
                record.status,
                "Yes" if record.is_blocker else "No",
            ]
            for col, value in enumerate(values):
                text_color = SLATE_700
                if col == 5:
                    text_color = GREEN if record.status == STATUS_COMPLETED else AMBER
                elif col == 6 and record.is_blocker:
                    text_color = RED
                _fill_cell(table.cell(row_index, col), value, background, text_color)
    return len(pages)


def _fill_cell(cell, text: str, background: str, color: str, bold: bool = False) -> None:
    cell.fill.solid()
    cell.fill.fore_color.rgb = _rgb(background)
    cell.text = text
    for paragraph in cell.text_frame.paragraphs:
        for run in paragraph.runs:
            run.font.name = FONT_FACE
            run.font.size = Pt(10)
            run.font.bold = bold
            run.font.color.rgb = _rgb(color)


def _leaderboard_slide(prs, report: ActivityReport, slide_number: int) -> None:
    leaderboard = report.summary.leaderboard
    slide = _blank_slide(prs, SLATE_50)
    _apply_header(slide, "Employee Leaderboard", slide_number)

    top3 = list(leaderboard[:3])
    colors = [BLUE_600, CYAN_DARK, INDIGO]
    heights = [2.8, 2.2, 1.8]
    width, gap, base_y = 2.5, 0.3, 6.4
    # Podium order: second, first, third.
    order = [1, 0, 2] if len(top3) == 3 else list(range(len(top3)))
    start_x = 0.8
    for slot, rank_index in enumerate(order):
        entry = top3[rank_index]
        x = start_x + slot * (width + gap)
        height = heights[rank_index]
        _add_shape(slide, MSO_SHAPE.RECTANGLE, x, base_y - height, width, height, colors[rank_index])
        _add_text(slide, f"#{rank_index + 1}", x, base_y - height + 0.2, width, 0.6, size=28, color=WHITE, bold=True, align=PP_ALIGN.CENTER)
        _add_text(slide, entry.name, x, base_y - height - 0.9, width, 0.45, size=16, color=NAVY, bold=True, align=PP_ALIGN.CENTER)
        _add_text(slide, f"{entry.count} activities", x, base_y - height - 0.5, width, 0.4, size=12, align=PP_ALIGN.CENTER)

    if len(leaderboard) > 3:
        chart_data = CategoryChartData()
        chart_data.categories = [entry.name or "(unnamed)" for entry in leaderboard]
        chart_data.add_series("Activities", [entry.count for entry in leaderboard])
        graphic = slide.shapes.add_chart(XL_CHART_TYPE.BAR_CLUSTERED, Inches(9.0), Inches(1.6), Inches(3.9), Inches(5.0), chart_data)
        graphic.chart.has_legend = False


def _insights_slide(prs, report: ActivityReport, slide_number: int) -> None:
    summary = report.summary
    query = report.query
    leader = most_active(summary)
    slide = _blank_slide(prs, SLATE_50)
    _apply_header(slide, "Key Insights", slide_number)

    insights = [
        ("Completion Rate", f"{summary.completion_rate_pct}%", f"{summary.completed} of {summary.total} tasks completed", GREEN),
        ("Most Active", leader.name if leader else "N/A", f"{leader.count} tasks logged" if leader else "", BLUE_600),
        ("Blocker Rate", f"{summary.blocker_rate_pct}%", f"{summary.blockers} blockers across {summary.total} tasks", RED),
        ("Avg Duration", f"{summary.avg_duration_minutes} min", f"{summary.total_minutes} total minutes logged", INDIGO),
    ]
    card_w, gap = 2.7, 0.35
    start_x = (SLIDE_W - (len(insights) * card_w + (len(insights) - 1) * gap)) / 2
    for index, (label, value, description, accent) in enumerate(insights):
        x = start_x + index * (card_w + gap)
        _add_shape(slide, MSO_SHAPE.ROUNDED_RECTANGLE, x, 1.8, card_w, 3.8, WHITE)
        _add_shape(slide, MSO_SHAPE.RECTANGLE, x, 1.8, card_w, 0.12, accent)
        _add_text(slide, label.upper(), x, 2.3, card_w, 0.4, size=12, color=SLATE_700, bold=True, align=PP_ALIGN.CENTER)
        _add_text(slide, value, x, 2.9, card_w, 0.9, size=26, color=accent, bold=True, align=PP_ALIGN.CENTER)
        _add_text(slide, description, x + 0.2, 4.1, card_w - 0.4, 1.0, size=11, align=PP_ALIGN.CENTER)

    _add_text(
        slide,
        f"Report generated for {query.employee_label} | {query.date_from.isoformat()} to {query.date_to.isoformat()}",
        0.8,
        6.3,
        SLIDE_W - 1.6,
        0.4,
        size=11,
        italic=True,
        align=PP_ALIGN.CENTER,
    )


def _closing_slide(prs, report: ActivityReport) -> None:
    generated = report.generated_at
    slide = _blank_slide(prs, NAVY)
    _add_shape(slide, MSO_SHAPE.OVAL, SLIDE_W - 5, -2, 6, 6, NAVY_800)
    _add_text(slide, "THANK YOU", 0, 2.4, SLIDE_W, 1.2, size=54, color=WHITE, bold=True, align=PP_ALIGN.CENTER)
    _add_shape(slide, MSO_SHAPE.RECTANGLE, SLIDE_W / 2 - 1, 3.7, 2, 0.06, CYAN)
    _add_text(slide, "For your time and attention", 0, 3.9, SLIDE_W, 0.6, size=20, color=GRAY_300, italic=True, align=PP_ALIGN.CENTER)
    _add_text(
        slide,
        f"Report generated on {generated:%B} {generated.day}, {generated.year}",
        0,
        5.2,
        SLIDE_W,
        0.4,
        size=12,
        color=GRAY_300,
        align=PP_ALIGN.CENTER,
    )
    _add_shape(slide, MSO_SHAPE.RECTANGLE, 0, SLIDE_H - 0.25, SLIDE_W, 0.25, BLUE_600)


def render_slides(report: ActivityReport, template: Optional[str] = None) -> bytes:
    prs = Presentation(template) if template else Presentation()
    prs.slide_width = Inches(SLIDE_W)
    prs.slide_height = Inches(SLIDE_H)

    _cover_slide(prs, report)
    _section_divider(prs, "Dashboard & Analytics", "Key metrics and performance overview")
    _overview_slide(prs, report, 3)
    _summary_slide(prs, report, 4)
    _section_divider(prs, "Detailed Data", "Activity records and team rankings")
    slide_number = 6 + _table_slides(prs, report, 6)
    if report.summary.leaderboard:
        _leaderboard_slide(prs, report, slide_number)
        slide_number += 1
    _insights_slide(prs, report, slide_number)
    _closing_slide(prs, report)

    buffer = BytesIO()
    prs.save(buffer)
    return buffer.getvalue()
