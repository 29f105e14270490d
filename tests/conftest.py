"""
Shared fixtures for the activity report tests.

Rows are built in the same shape the ``Activities!A:I`` range returns them:
a header row followed by lists of string cells.
"""

from datetime import date
from itertools import count

import pytest

from backend.activity_reports.models import ReportQuery, TypeFilter
from backend.activity_reports.rows import EXPECTED_HEADER, parse_rows


@pytest.fixture()
def header():
    return list(EXPECTED_HEADER)


@pytest.fixture()
def make_row():
    """Factory for one sheet row; ids increase per call."""
    ids = count(1)

    def _make(
        name="Alice",
        day="2024-01-10",
        duration="30",
        status="completed",
        blocker="FALSE",
        activity_type="Development",
        description="Worked on the report",
    ):
        activity_id = str(next(ids))
        return [activity_id, f"m-{name.lower()}", name, activity_type, description, day, duration, status, blocker]

    return _make


@pytest.fixture()
def sample_rows(header, make_row):
    """Header plus a small mixed sheet spanning a few days and members."""
    return [
        header,
        make_row("Alice", "2024-01-08", "30", "completed", "FALSE", "Development"),
        make_row("Bob", "2024-01-09", "45", "pending", "TRUE", "Meeting"),
        make_row("Alice", "2024-01-10T23:00:00", "15", "completed", "true", "Review"),
        make_row("Carol", "2024-01-11", "abc", "in-progress", "", "Development"),
        make_row("Bob", "not a date", "60", "completed", "FALSE", "Meeting"),
        make_row("Carol", "2024-02-01", "20", "pending", "TRUE", "Support"),
    ]


@pytest.fixture()
def sample_records(sample_rows):
    return parse_rows(sample_rows)


@pytest.fixture()
def january_query():
    return ReportQuery(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31))


@pytest.fixture()
def query_factory():
    def _query(employee=None, type_filter=TypeFilter.ALL, date_from=date(2024, 1, 1), date_to=date(2024, 12, 31)):
        return ReportQuery(date_from=date_from, date_to=date_to, employee_name=employee, type_filter=type_filter)

    return _query
