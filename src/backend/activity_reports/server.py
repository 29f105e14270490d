from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .analytics import build_dashboard_stats
from .config import ReportSettings, configure_logging
from .csv_export import CSV_FILENAME, CSV_MEDIA_TYPE, render_csv
from .errors import ConfigurationError, EmptyDatasetError, RowSourceError, SchemaError
from .models import ActivityRecord, ActivityReport, ReportQuery, TypeFilter
from .pdf_export import PDF_FILENAME, PDF_MEDIA_TYPE, render_pdf
from .repository import ActivityRowSource, StaticRowSource, build_row_source
from .rows import parse_date
from .service import ActivityReportService
from .slides_export import PPTX_FILENAME, PPTX_MEDIA_TYPE, render_slides

logger = logging.getLogger(__name__)

_QUERY_DATE = re.compile(r"\d{4}-\d{2}-\d{2}(T.+)?")


class ReportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    employee: Optional[str] = None
    date_from: date = Field(alias="from")
    date_to: date = Field(alias="to")
    type: TypeFilter = TypeFilter.ALL
    sheet_id: Optional[str] = Field(default=None, alias="sheetId")
    rows: Optional[List[List[Any]]] = None

    @field_validator("date_to")
    @classmethod
    def _validate_range(cls, date_to: date, info: ValidationInfo) -> date:
        date_from = info.data.get("date_from")
        if date_from and date_to < date_from:
            raise ValueError("to must not be before from")
        return date_to

    def to_query(self) -> ReportQuery:
        return ReportQuery(
            date_from=self.date_from,
            date_to=self.date_to,
            employee_name=self.employee,
            type_filter=self.type,
        )


class AnalyticsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    today: Optional[date] = None
    members: Optional[List[str]] = None
    sheet_id: Optional[str] = Field(default=None, alias="sheetId")
    rows: Optional[List[List[Any]]] = None


class ReportResponse(BaseModel):
    data: Dict[str, Any]
    source: str


def _parse_query_date(value: Optional[str], name: str) -> date:
    # ISO day, optionally with a full ISO time after it.
    if not value:
        raise HTTPException(status_code=400, detail="Missing parameters")
    parsed = parse_date(value) if _QUERY_DATE.fullmatch(value) else None
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"Invalid '{name}' date: {value}")
    return parsed


def _parse_type(value: Optional[str]) -> TypeFilter:
    try:
        return TypeFilter(value or TypeFilter.ALL.value)
    except ValueError as exc:
        allowed = ", ".join(item.value for item in TypeFilter)
        raise HTTPException(status_code=400, detail=f"Invalid type '{value}', expected one of: {allowed}") from exc


def _query_from_params(employee: Optional[str], date_from: Optional[str], date_to: Optional[str], type_: Optional[str]) -> ReportQuery:
    start = _parse_query_date(date_from, "from")
    end = _parse_query_date(date_to, "to")
    if end < start:
        raise HTTPException(status_code=400, detail="'to' must not be before 'from'")
    return ReportQuery(date_from=start, date_to=end, employee_name=employee or None, type_filter=_parse_type(type_))


def _attachment(content: Any, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def create_app(
    settings: Optional[ReportSettings] = None,
    row_source: Optional[ActivityRowSource] = None,
) -> FastAPI:
    """
    Build the export API.

    ``row_source`` pins every request to one source (used by tests and
    embedded deployments); otherwise a source is built per request from
    ``settings``, honouring a ``sheetId`` override.
    """

    settings = settings or ReportSettings.from_env()
    app = FastAPI(title="Activity Reports API", version="0.1.0")
    app.state.settings = settings
    app.state.row_source = row_source

    def _resolve_source(
        sheet_id: Optional[str], inline_rows: Optional[List[List[Any]]]
    ) -> Tuple[ActivityRowSource, str]:
        if app.state.row_source is not None:
            return app.state.row_source, "configured"
        source = build_row_source(settings, spreadsheet_id=sheet_id)
        if source is not None:
            return source, "database" if settings.database_url else "google_sheets"
        if inline_rows is not None:
            return StaticRowSource(inline_rows), "inline"
        raise ConfigurationError(
            "No activity source is configured; set GOOGLE_SHEET_ID and service account credentials, "
            "ACTIVITY_REPORTS_DATABASE_URL, or supply rows in the request body."
        )

    def _load_records(source: ActivityRowSource) -> List[ActivityRecord]:
        return ActivityReportService(source, validate_header=settings.validate_header).load_records()

    def _run(action):
        # Every pipeline failure is translated here and nowhere else.
        try:
            return action()
        except EmptyDatasetError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ConfigurationError as exc:
            logger.error("Activity source not configured: %s", exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        except SchemaError as exc:
            logger.error("Activity sheet schema mismatch: %s", exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        except RowSourceError as exc:
            logger.exception("Activity export failed while reading rows")
            raise HTTPException(status_code=500, detail="Export failed") from exc
        except Exception as exc:
            logger.exception("Activity export failed")
            raise HTTPException(status_code=500, detail="Export failed") from exc

    def _build_report(query: ReportQuery, sheet_id: Optional[str], require_rows: bool = False) -> ActivityReport:
        source, _ = _resolve_source(sheet_id, None)
        service = ActivityReportService(source, validate_header=settings.validate_header)
        return service.build(query, require_rows=require_rows)

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/export")
    def export_csv(
        employee: Optional[str] = None,
        date_from: Optional[str] = Query(None, alias="from"),
        date_to: Optional[str] = Query(None, alias="to"),
        type_: Optional[str] = Query(None, alias="type"),
        sheet_id: Optional[str] = Query(None, alias="sheetId"),
    ) -> Response:
        query = _query_from_params(employee, date_from, date_to, type_)

        def export() -> Response:
            report = _build_report(query, sheet_id, require_rows=True)
            logger.info("CSV export: %d activities for %s", report.summary.total, query.employee_label)
            return _attachment(render_csv(report), CSV_MEDIA_TYPE, CSV_FILENAME)

        return _run(export)

    @app.get("/export-pdf")
    def export_pdf(
        employee: Optional[str] = None,
        date_from: Optional[str] = Query(None, alias="from"),
        date_to: Optional[str] = Query(None, alias="to"),
        type_: Optional[str] = Query(None, alias="type"),
        sheet_id: Optional[str] = Query(None, alias="sheetId"),
    ) -> Response:
        query = _query_from_params(employee, date_from, date_to, type_)

        def export() -> Response:
            report = _build_report(query, sheet_id)
            logger.info("PDF export: %d activities for %s", report.summary.total, query.employee_label)
            return _attachment(render_pdf(report, row_limit=settings.pdf_row_limit), PDF_MEDIA_TYPE, PDF_FILENAME)

        return _run(export)

    @app.get("/export-ppt")
    def export_ppt(
        employee: Optional[str] = None,
        date_from: Optional[str] = Query(None, alias="from"),
        date_to: Optional[str] = Query(None, alias="to"),
        type_: Optional[str] = Query(None, alias="type"),
        sheet_id: Optional[str] = Query(None, alias="sheetId"),
    ) -> Response:
        query = _query_from_params(employee, date_from, date_to, type_)

        def export() -> Response:
            report = _build_report(query, sheet_id)
            logger.info("Slide export: %d activities for %s", report.summary.total, query.employee_label)
            return _attachment(render_slides(report), PPTX_MEDIA_TYPE, PPTX_FILENAME)

        return _run(export)

    @app.post("/report", response_model=ReportResponse)
    def report_endpoint(request: ReportRequest) -> ReportResponse:
        def build() -> ReportResponse:
            source, source_name = _resolve_source(request.sheet_id, request.rows)
            service = ActivityReportService(source, validate_header=settings.validate_header)
            report = service.build(request.to_query())
            return ReportResponse(data=report.as_dict(), source=source_name)

        return _run(build)

    @app.post("/analytics", response_model=ReportResponse)
    def analytics_endpoint(request: AnalyticsRequest) -> ReportResponse:
        def build() -> ReportResponse:
            source, source_name = _resolve_source(request.sheet_id, request.rows)
            records = _load_records(source)
            stats = build_dashboard_stats(records, today=request.today or date.today(), members=request.members)
            return ReportResponse(data=stats.as_dict(), source=source_name)

        return _run(build)

    return app


def _default_app() -> FastAPI:
    settings = ReportSettings.from_env()
    configure_logging(settings.log_level)
    return create_app(settings)


app = _default_app()
