"""
Tests for repository.py: static, SQL and Google Sheets row sources.
"""

import gspread
import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from backend.activity_reports.config import ReportSettings
from backend.activity_reports.errors import ConfigurationError, RowSourceError
from backend.activity_reports.repository import (
    GoogleSheetsRowSource,
    SQLActivityRowSource,
    StaticRowSource,
    build_row_source,
)
from backend.activity_reports.rows import EXPECTED_HEADER, parse_rows


class FakeSpreadsheet:
    def __init__(self, rows):
        self.rows = rows
        self.requested_ranges = []

    def values_get(self, range_name):
        self.requested_ranges.append(range_name)
        if self.rows is None:
            return {"range": range_name}
        return {"range": range_name, "values": self.rows}


class FakeClient:
    def __init__(self, sheets):
        self.sheets = sheets

    def open_by_key(self, key):
        if key not in self.sheets:
            raise gspread.exceptions.SpreadsheetNotFound(key)
        return self.sheets[key]


@pytest.fixture()
def sqlite_engine():
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    with engine.begin() as connection:
        connection.execute(
            text(
                """
                CREATE TABLE activities (
                    position INTEGER PRIMARY KEY,
                    id TEXT, member_id TEXT, member_name TEXT, activity_type TEXT,
                    description TEXT, date TEXT, duration INTEGER, status TEXT, blocker TEXT
                )
                """
            )
        )
        connection.execute(
            text(
                """
                INSERT INTO activities VALUES
                    (2, 'b', 'm-2', 'Bob', 'Meeting', 'Standup', '2024-01-09', 45, 'pending', 'TRUE'),
                    (1, 'a', 'm-1', 'Alice', 'Development', 'Report', '2024-01-08', NULL, 'completed', NULL)
                """
            )
        )
    yield engine
    engine.dispose()


class TestStaticRowSource:
    def test_returns_copies(self, sample_rows):
        source = StaticRowSource(sample_rows)
        fetched = source.fetch_rows()
        fetched[1][2] = "Mallory"
        assert source.fetch_rows()[1][2] == "Alice"


class TestSQLActivityRowSource:
    def test_rows_ordered_by_position_with_header(self, sqlite_engine):
        rows = SQLActivityRowSource(sqlite_engine).fetch_rows()
        assert rows[0] == list(EXPECTED_HEADER)
        assert [row[2] for row in rows[1:]] == ["Alice", "Bob"]

    def test_nulls_become_blank_cells(self, sqlite_engine):
        rows = SQLActivityRowSource(sqlite_engine).fetch_rows()
        assert rows[1][6] == ""
        assert rows[1][8] == ""
        assert rows[2][6] == "45"

    def test_rows_parse_like_sheet_rows(self, sqlite_engine):
        records = parse_rows(SQLActivityRowSource(sqlite_engine).fetch_rows())
        assert records[1].is_blocker is True
        assert records[0].duration_minutes == 0

    def test_missing_table_raises_row_source_error(self):
        engine = create_engine("sqlite://")
        with pytest.raises(RowSourceError):
            SQLActivityRowSource(engine).fetch_rows()


class TestGoogleSheetsRowSource:
    def test_reads_configured_range(self, sample_rows):
        spreadsheet = FakeSpreadsheet(sample_rows)
        source = GoogleSheetsRowSource("sheet-1", client=FakeClient({"sheet-1": spreadsheet}))
        assert source.fetch_rows() == sample_rows
        assert spreadsheet.requested_ranges == ["Activities!A:I"]

    def test_empty_sheet_returns_no_rows(self):
        source = GoogleSheetsRowSource("sheet-1", client=FakeClient({"sheet-1": FakeSpreadsheet(None)}))
        assert source.fetch_rows() == []

    def test_missing_sheet_raises_row_source_error(self):
        source = GoogleSheetsRowSource("missing", client=FakeClient({}))
        with pytest.raises(RowSourceError, match="missing"):
            source.fetch_rows()

    def test_bad_credentials_raise_row_source_error(self):
        source = GoogleSheetsRowSource("sheet-1", client_email="svc@example.com", private_key="not-a-key")
        with pytest.raises(RowSourceError):
            source.fetch_rows()


class TestBuildRowSource:
    def test_nothing_configured(self):
        assert build_row_source(ReportSettings()) is None

    def test_database_url_wins(self):
        settings = ReportSettings(
            database_url="sqlite://",
            google_sheet_id="sheet-1",
            google_service_account_email="svc@example.com",
            google_private_key="key",
        )
        assert isinstance(build_row_source(settings), SQLActivityRowSource)

    def test_sheet_source_with_override(self):
        settings = ReportSettings(
            google_sheet_id="sheet-1",
            google_service_account_email="svc@example.com",
            google_private_key="key",
            sheet_range="Log!A:I",
        )
        source = build_row_source(settings, spreadsheet_id="sheet-2")
        assert isinstance(source, GoogleSheetsRowSource)
        assert source.spreadsheet_id == "sheet-2"
        assert source.sheet_range == "Log!A:I"

    def test_sheet_id_without_credentials(self):
        assert build_row_source(ReportSettings(google_sheet_id="sheet-1")) is None

    def test_unusable_database_url(self):
        with pytest.raises(ConfigurationError, match="ACTIVITY_REPORTS_DATABASE_URL"):
            build_row_source(ReportSettings(database_url="not-a-database-url"))
