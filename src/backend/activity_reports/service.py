from __future__ import annotations

import logging
from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence, Tuple

from .dataset import ActivityDataset
from .errors import EmptyDatasetError
from .models import (
    STATUS_COMPLETED,
    STATUS_PENDING,
    ActivityRecord,
    ActivityReport,
    LeaderboardEntry,
    ReportQuery,
    ReportSummary,
)
from .repository import ActivityRowSource
from .rows import parse_rows, to_cell

logger = logging.getLogger(__name__)


def round1(value: float) -> float:
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _ratio(numerator: float, denominator: int, scale: float = 1.0) -> float:
    if denominator == 0:
        return 0.0
    return round1(numerator * scale / denominator)


def build_leaderboard(records: Sequence[ActivityRecord]) -> List[LeaderboardEntry]:
    # Counter keeps first-seen order and sorted() is stable, so ties stay in that order.
    counts = Counter(record.member_name for record in records)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [LeaderboardEntry(name=name, count=count) for name, count in ranked]


def summarize(records: Sequence[ActivityRecord]) -> ReportSummary:
    total = len(records)
    completed = sum(1 for record in records if record.status == STATUS_COMPLETED)
    pending = sum(1 for record in records if record.status == STATUS_PENDING)
    blockers = sum(1 for record in records if record.is_blocker)
    total_minutes = sum(record.duration_minutes for record in records)

    return ReportSummary(
        total=total,
        completed=completed,
        pending=pending,
        blockers=blockers,
        total_minutes=total_minutes,
        avg_duration_minutes=_ratio(total_minutes, total),
        completion_rate_pct=_ratio(completed, total, scale=100),
        blocker_rate_pct=_ratio(blockers, total, scale=100),
        leaderboard=tuple(build_leaderboard(records)),
    )


def derive_report(
    records: Sequence[ActivityRecord],
    query: ReportQuery,
    header: Sequence[str] = (),
) -> ActivityReport:
    """
    Filter ``records`` with ``query`` and aggregate the result.

    This is the only place report numbers are computed; every presenter
    renders the returned ``ActivityReport`` as-is. ``header`` is the
    source's header row, carried through for the CSV export.
    """

    filtered = tuple(ActivityDataset(records).iter_records(query))
    return ActivityReport(query=query, records=filtered, summary=summarize(filtered), header=tuple(header))


class ActivityReportService:
    """
    Fetch rows from a row source and derive a report for one request.

    Nothing is cached between calls: each ``build`` re-reads the source.
    """

    def __init__(self, source: ActivityRowSource, validate_header: bool = True) -> None:
        self.source = source
        self.validate_header = validate_header

    def load(self, require_rows: bool = False) -> Tuple[Tuple[str, ...], List[ActivityRecord]]:
        """Fetch once and return the header row as written plus the parsed records."""
        rows = self.source.fetch_rows()
        if require_rows and not rows:
            raise EmptyDatasetError("No data found")
        header = tuple(to_cell(cell) for cell in rows[0]) if rows else ()
        return header, parse_rows(rows, has_header=True, validate=self.validate_header)

    def load_records(self, require_rows: bool = False) -> List[ActivityRecord]:
        return self.load(require_rows=require_rows)[1]

    def build(self, query: ReportQuery, require_rows: bool = False) -> ActivityReport:
        header, records = self.load(require_rows=require_rows)
        report = derive_report(records, query, header=header)
        logger.info(
            "Derived activity report for %s (%s..%s, type=%s): %d of %d records",
            query.employee_label,
            query.date_from,
            query.date_to,
            query.type_filter.value,
            report.summary.total,
            len(records),
        )
        return report


def most_active(summary: ReportSummary) -> Optional[LeaderboardEntry]:
    return summary.leaderboard[0] if summary.leaderboard else None
