from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import gspread
from google.auth.exceptions import GoogleAuthError
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .config import DEFAULT_SHEET_RANGE, ReportSettings
from .errors import ConfigurationError, RowSourceError
from .rows import EXPECTED_HEADER, to_cell

logger = logging.getLogger(__name__)

SHEETS_READONLY_SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class ActivityRowSource:
    """
    Interface for loading raw activity rows.

    Implementations return the sheet as-is: a header row followed by one
    row of string cells per activity, in the columns of ``EXPECTED_HEADER``.
    """

    def fetch_rows(self) -> Sequence[Sequence[str]]:
        raise NotImplementedError


class StaticRowSource(ActivityRowSource):
    """Rows supplied in-process, e.g. inline in a request body."""

    def __init__(self, rows: Sequence[Sequence[Any]]):
        self.rows = [list(row) for row in rows]

    def fetch_rows(self) -> Sequence[Sequence[str]]:
        return [list(row) for row in self.rows]


class GoogleSheetsRowSource(ActivityRowSource):
    """
    Read the ``Activities`` tab with a service account.

    Credentials are passed in explicitly; the key may carry literal ``\\n``
    sequences as it does when stored in a single-line env var.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        client_email: Optional[str] = None,
        private_key: Optional[str] = None,
        sheet_range: str = DEFAULT_SHEET_RANGE,
        client: Optional[gspread.Client] = None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.client_email = client_email
        self.private_key = private_key
        self.sheet_range = sheet_range
        self._client = client

    def _get_client(self) -> gspread.Client:
        if self._client is None:
            info = {
                "type": "service_account",
                "client_email": self.client_email,
                "private_key": (self.private_key or "").replace("\\n", "\n"),
                "token_uri": GOOGLE_TOKEN_URI,
            }
            self._client = gspread.service_account_from_dict(info, scopes=SHEETS_READONLY_SCOPES)
        return self._client

    def fetch_rows(self) -> Sequence[Sequence[str]]:
        try:
            spreadsheet = self._get_client().open_by_key(self.spreadsheet_id)
            response = spreadsheet.values_get(self.sheet_range)
        except (gspread.exceptions.GSpreadException, GoogleAuthError, OSError, ValueError) as exc:
            raise RowSourceError(f"Failed to read {self.sheet_range} from sheet {self.spreadsheet_id}: {exc}") from exc
        rows = response.get("values", [])
        logger.debug("Fetched %d rows from sheet %s", len(rows), self.spreadsheet_id)
        return rows


class SQLActivityRowSource(ActivityRowSource):
    """
    Load activities mirrored into a relational table.

    Expected table:
      - activities(position, id, member_id, member_name, activity_type,
        description, date, duration, status, blocker)

    Values are rendered back to sheet-style strings (booleans as
    ``TRUE``/``FALSE``) so ingestion treats both sources the same.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def fetch_rows(self) -> Sequence[Sequence[str]]:
        query = text(
            """
            SELECT id, member_id, member_name, activity_type, description,
                   date, duration, status, blocker
            FROM activities
            ORDER BY position ASC
            """
        )
        try:
            with self.engine.connect() as connection:
                rows = connection.execute(query).fetchall()
        except SQLAlchemyError as exc:
            raise RowSourceError(f"Failed to load activities: {exc}") from exc
        return [list(EXPECTED_HEADER)] + [[to_cell(value) for value in row] for row in rows]


def build_row_source(
    settings: ReportSettings,
    spreadsheet_id: Optional[str] = None,
) -> Optional[ActivityRowSource]:
    """
    Pick the configured row source.

    A database URL wins over Sheets; ``spreadsheet_id`` overrides the
    configured sheet. Returns ``None`` when nothing is configured so the
    caller can fall back to inline rows.
    """

    if settings.database_url:
        try:
            engine = create_engine(settings.database_url)
        except (SQLAlchemyError, ImportError) as exc:
            raise ConfigurationError("ACTIVITY_REPORTS_DATABASE_URL is not a usable database URL") from exc
        return SQLActivityRowSource(engine)
    sheet_id = spreadsheet_id or settings.google_sheet_id
    if sheet_id and settings.has_sheet_credentials:
        return GoogleSheetsRowSource(
            spreadsheet_id=sheet_id,
            client_email=settings.google_service_account_email,
            private_key=settings.google_private_key,
            sheet_range=settings.sheet_range,
        )
    return None
