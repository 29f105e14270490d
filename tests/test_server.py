"""
Tests for the FastAPI export endpoints.
"""

import csv
import io

import pytest
from fastapi.testclient import TestClient

from backend.activity_reports.config import ReportSettings
from backend.activity_reports.errors import RowSourceError
from backend.activity_reports.repository import ActivityRowSource, StaticRowSource
from backend.activity_reports.rows import EXPECTED_HEADER
from backend.activity_reports.server import create_app

JANUARY = {"from": "2024-01-01", "to": "2024-01-31"}


class BrokenRowSource(ActivityRowSource):
    def fetch_rows(self):
        raise RowSourceError("sheet unavailable")


def _client(rows=None, source=None):
    if source is None and rows is not None:
        source = StaticRowSource(rows)
    return TestClient(create_app(ReportSettings(), row_source=source))


@pytest.fixture()
def client(sample_rows):
    return _client(sample_rows)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestParameterValidation:
    @pytest.mark.parametrize("path", ["/export", "/export-pdf", "/export-ppt"])
    def test_missing_dates(self, client, path):
        response = client.get(path, params={"from": "2024-01-01"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing parameters"

    def test_invalid_date(self, client):
        response = client.get("/export", params={"from": "yesterday", "to": "2024-01-31"})
        assert response.status_code == 400

    def test_inverted_range(self, client):
        response = client.get("/export", params={"from": "2024-02-01", "to": "2024-01-01"})
        assert response.status_code == 400

    def test_unknown_type(self, client):
        response = client.get("/export", params={**JANUARY, "type": "overdue"})
        assert response.status_code == 400
        assert "pending" in response.json()["detail"]


class TestCsvEndpoint:
    def test_download(self, client):
        response = client.get("/export", params=JANUARY)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="Activity_Report.csv"' in response.headers["content-disposition"]
        parsed = list(csv.reader(io.StringIO(response.text)))
        assert parsed[0] == list(EXPECTED_HEADER)
        assert len(parsed) == 5

    def test_filters_applied(self, client):
        response = client.get("/export", params={**JANUARY, "employee": "Bob", "type": "blocker"})
        parsed = list(csv.reader(io.StringIO(response.text)))
        assert [row[0] for row in parsed[1:]] == ["2"]

    def test_all_employees_label(self, client):
        response = client.get("/export", params={**JANUARY, "employee": "All Employees"})
        assert len(list(csv.reader(io.StringIO(response.text)))) == 5

    def test_empty_sheet_is_not_found(self):
        response = _client([]).get("/export", params=JANUARY)
        assert response.status_code == 404
        assert response.json()["detail"] == "No data found"

    def test_no_matches_is_header_only(self, client):
        response = client.get("/export", params={"from": "2030-01-01", "to": "2030-01-31"})
        assert response.status_code == 200
        assert len(response.text.splitlines()) == 1


class TestBinaryEndpoints:
    def test_pdf(self, client):
        response = client.get("/export-pdf", params=JANUARY)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_pdf_on_empty_sheet(self):
        response = _client([]).get("/export-pdf", params=JANUARY)
        assert response.status_code == 200

    def test_slides(self, client):
        response = client.get("/export-ppt", params=JANUARY)
        assert response.status_code == 200
        assert 'filename="Activity_Report.pptx"' in response.headers["content-disposition"]
        assert response.content.startswith(b"PK")


class TestFailures:
    @pytest.mark.parametrize("path", ["/export", "/export-pdf", "/export-ppt"])
    def test_source_failure(self, path):
        response = _client(source=BrokenRowSource()).get(path, params=JANUARY)
        assert response.status_code == 500
        assert response.json()["detail"] == "Export failed"

    def test_schema_mismatch(self, make_row):
        response = _client([["Name", "Date"], make_row()]).get("/export", params=JANUARY)
        assert response.status_code == 500
        assert "Unexpected schema" in response.json()["detail"]

    def test_no_source_configured(self):
        response = _client().get("/export", params=JANUARY)
        assert response.status_code == 500
        assert "No activity source is configured" in response.json()["detail"]


class TestReportEndpoint:
    def test_inline_rows(self, sample_rows):
        response = _client().post("/report", json={**JANUARY, "employee": "Alice", "rows": sample_rows})
        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "inline"
        assert body["data"]["summary"]["total"] == 2
        assert body["data"]["summary"]["completionRatePct"] == 100.0
        assert body["data"]["query"]["employee"] == "Alice"

    def test_json_booleans_become_blockers(self, header):
        rows = [header, ["1", "m-1", "Alice", "Dev", "", "2024-01-10", 30, "pending", True]]
        response = _client().post("/report", json={**JANUARY, "type": "blocker", "rows": rows})
        assert response.json()["data"]["summary"]["blockers"] == 1

    def test_configured_source_wins(self, client, header):
        response = client.post("/report", json={**JANUARY, "rows": [header]})
        assert response.json()["source"] == "configured"
        assert response.json()["data"]["summary"]["total"] == 4

    def test_inverted_range_rejected(self, client):
        response = client.post("/report", json={"from": "2024-02-01", "to": "2024-01-01"})
        assert response.status_code == 422

    def test_no_rows_and_no_source(self):
        response = _client().post("/report", json=JANUARY)
        assert response.status_code == 500


class TestAnalyticsEndpoint:
    def test_dashboard_stats(self, sample_rows):
        response = _client().post("/analytics", json={"today": "2024-01-11", "rows": sample_rows})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalActivities"] == 6
        assert data["totalBlockers"] == 3
        assert [point["count"] for point in data["lastSevenDays"]] == [0, 0, 0, 1, 1, 1, 1]


class TestCsvHeader:
    def test_sheet_header_written_verbatim(self, sample_rows):
        lowered = [name.lower() for name in EXPECTED_HEADER]
        response = _client([lowered] + sample_rows[1:]).get("/export", params=JANUARY)
        assert response.status_code == 200
        assert list(csv.reader(io.StringIO(response.text)))[0] == lowered

    def test_unvalidated_header_written_verbatim(self, make_row):
        renamed = ["Key", "Who ID", "Who", "Kind", "Notes", "Day", "Minutes", "State", "Stuck"]
        app = create_app(ReportSettings(validate_header=False), row_source=StaticRowSource([renamed, make_row()]))
        response = TestClient(app).get("/export", params=JANUARY)
        assert list(csv.reader(io.StringIO(response.text)))[0] == renamed


class TestQueryDates:
    @pytest.mark.parametrize("value", ["2024-01-31garbage", "2024-01-31 ", "2024-01-31Tnoon", "31-01-2024"])
    def test_trailing_junk_rejected(self, client, value):
        response = client.get("/export", params={"from": "2024-01-01", "to": value})
        assert response.status_code == 400

    def test_iso_timestamp_accepted(self, client):
        response = client.get("/export", params={"from": "2024-01-01T00:00:00.000Z", "to": "2024-01-31T23:59:59.999Z"})
        assert response.status_code == 200
        assert len(list(csv.reader(io.StringIO(response.text)))) == 5


class TestUnexpectedFailures:
    def test_bad_database_url(self):
        app = create_app(ReportSettings(database_url="not-a-database-url"))
        response = TestClient(app).get("/export", params=JANUARY)
        assert response.status_code == 500
        assert "ACTIVITY_REPORTS_DATABASE_URL" in response.json()["detail"]

    def test_renderer_failure(self, client, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("renderer exploded")

        monkeypatch.setattr("backend.activity_reports.server.render_pdf", broken)
        response = client.get("/export-pdf", params=JANUARY)
        assert response.status_code == 500
        assert response.json()["detail"] == "Export failed"
