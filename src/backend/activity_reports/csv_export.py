from __future__ import annotations

import csv
import io
from typing import Optional, Sequence

from .models import ActivityReport
from .rows import EXPECTED_HEADER

CSV_MEDIA_TYPE = "text/csv"
CSV_FILENAME = "Activity_Report.csv"


def render_csv(report: ActivityReport, header: Optional[Sequence[str]] = None) -> str:
    """
    Render the filtered records as CSV, one row per activity.

    Cells are written exactly as they appear in the sheet, every field
    quoted. The header row is ``header`` when given, else the header the
    source returned, else the expected sheet header.
    """

    stream = io.StringIO()
    writer = csv.writer(stream, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(list(header or report.header or EXPECTED_HEADER))
    writer.writerows(list(record.cells) for record in report.records)
    return stream.getvalue()
