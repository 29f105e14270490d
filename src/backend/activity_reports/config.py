"""
Settings for the activity report service.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_SHEET_RANGE = "Activities!A:I"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ReportSettings(BaseModel):
    google_sheet_id: Optional[str] = None
    """Spreadsheet holding the ``Activities`` tab"""

    google_service_account_email: Optional[str] = None
    google_private_key: Optional[str] = None
    """PEM key; literal ``\\n`` sequences are restored to newlines when used"""

    sheet_range: str = DEFAULT_SHEET_RANGE

    database_url: Optional[str] = None
    """When set, rows are read from the ``activities`` table instead of Sheets"""

    validate_header: bool = True
    pdf_row_limit: int = 15
    log_level: str = "INFO"

    @property
    def has_sheet_credentials(self) -> bool:
        return bool(self.google_service_account_email and self.google_private_key)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "ReportSettings":
        if dotenv:
            load_dotenv()
        defaults = cls()
        return cls(
            google_sheet_id=os.getenv("GOOGLE_SHEET_ID") or None,
            google_service_account_email=os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL") or None,
            google_private_key=os.getenv("GOOGLE_PRIVATE_KEY") or None,
            sheet_range=os.getenv("ACTIVITY_SHEET_RANGE", defaults.sheet_range),
            database_url=os.getenv("ACTIVITY_REPORTS_DATABASE_URL") or None,
            validate_header=_env_bool("ACTIVITY_VALIDATE_HEADER", defaults.validate_header),
            pdf_row_limit=_env_int("ACTIVITY_PDF_ROW_LIMIT", defaults.pdf_row_limit),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        )


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
