"""
Turn raw ``Activities!A:I`` sheet rows into ``ActivityRecord`` objects.

The sheet is read by position, so the column layout lives here and nowhere
else. Every cell is parsed permissively: a bad date leaves ``date`` empty
and a non-numeric duration becomes 0, but neither aborts the request.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from .errors import SchemaError
from .models import ActivityRecord

logger = logging.getLogger(__name__)

COL_ID = 0
COL_MEMBER_ID = 1
COL_MEMBER_NAME = 2
COL_ACTIVITY_TYPE = 3
COL_DESCRIPTION = 4
COL_DATE = 5
COL_DURATION = 6
COL_STATUS = 7
COL_BLOCKER = 8

EXPECTED_HEADER = (
    "ID",
    "Member ID",
    "Member Name",
    "Activity Type",
    "Description",
    "Date",
    "Duration",
    "Status",
    "Blocker",
)
COLUMN_COUNT = len(EXPECTED_HEADER)

_FALLBACK_DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%Y %H:%M:%S", "%Y/%m/%d")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _normalize_header_cell(value: str) -> str:
    return re.sub(r"[\s_]+", "", value).lower()


def validate_header(header: Sequence[str]) -> None:
    actual = tuple(_normalize_header_cell(str(cell)) for cell in header[:COLUMN_COUNT])
    expected = tuple(_normalize_header_cell(cell) for cell in EXPECTED_HEADER)
    if actual != expected:
        raise SchemaError(
            "Unexpected schema for activity sheet: expected columns "
            f"{list(EXPECTED_HEADER)}, got {list(header)}"
        )


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an ISO-like date cell down to its calendar day.

    Time-of-day and offsets are discarded: ``2024-01-10T23:00:00Z`` is
    2024-01-10. Returns ``None`` for blank or unparseable cells.
    """

    text = (value or "").strip()
    if not text:
        return None
    iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(iso_text).date()
    except ValueError:
        pass
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_duration(value: Optional[str]) -> int:
    # Leading integer only: "45 min" -> 45, "12.7" -> 12, "abc" -> 0.
    match = _LEADING_INT.match(value or "")
    if not match:
        return 0
    return max(0, int(match.group(1)))


def parse_blocker(value: Optional[str]) -> str:
    # Kept verbatim: only the exact literal counts as a blocker.
    return value or ""


def to_cell(value: object) -> str:
    """Render a value the way the sheet displays it (booleans as TRUE/FALSE)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _pad(row: Sequence[object]) -> List[str]:
    cells = [to_cell(cell) for cell in row[:COLUMN_COUNT]]
    return cells + [""] * (COLUMN_COUNT - len(cells))


def row_to_record(row: Sequence[object]) -> ActivityRecord:
    cells = _pad(row)
    return ActivityRecord(
        activity_id=cells[COL_ID],
        member_id=cells[COL_MEMBER_ID],
        member_name=cells[COL_MEMBER_NAME],
        activity_type=cells[COL_ACTIVITY_TYPE],
        description=cells[COL_DESCRIPTION],
        date=parse_date(cells[COL_DATE]),
        duration_minutes=parse_duration(cells[COL_DURATION]),
        status=cells[COL_STATUS],
        blocker_raw=parse_blocker(cells[COL_BLOCKER]),
        cells=tuple(cells),
    )


def parse_rows(
    rows: Iterable[Sequence[object]],
    has_header: bool = True,
    validate: bool = True,
) -> List[ActivityRecord]:
    """
    Convert sheet rows into records, preserving their order.

    When ``has_header`` is set the first row is treated as the header and
    skipped; ``validate`` additionally checks it against ``EXPECTED_HEADER``
    and raises ``SchemaError`` if the columns moved.
    """

    records: List[ActivityRecord] = []
    undated = 0
    iterator = iter(rows)
    if has_header:
        header = next(iterator, None)
        if header is not None and validate:
            validate_header(_pad(header))

    for row in iterator:
        if not any(str(cell).strip() for cell in row if cell is not None):
            continue
        record = row_to_record(row)
        if record.date is None:
            undated += 1
        records.append(record)

    if undated:
        logger.warning("%d of %d activity rows have a missing or invalid date", undated, len(records))
    return records
