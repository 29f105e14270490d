"""
Backend activity report helpers.

This package turns the rows of the team ``Activities`` sheet into filtered
activity reports (counts, rates and a leaderboard) and renders them as CSV,
PDF or slide-deck downloads.
"""

from .analytics import DashboardStats, build_dashboard_stats  # noqa: F401
from .config import ReportSettings, configure_logging  # noqa: F401
from .dataset import ActivityDataset, filter_records  # noqa: F401
from .errors import (  # noqa: F401
    ActivityReportError,
    ConfigurationError,
    EmptyDatasetError,
    RowSourceError,
    SchemaError,
)
from .models import (  # noqa: F401
    ALL_EMPLOYEES,
    ActivityRecord,
    ActivityReport,
    LeaderboardEntry,
    ReportQuery,
    ReportSummary,
    TypeFilter,
)
from .repository import (  # noqa: F401
    ActivityRowSource,
    GoogleSheetsRowSource,
    SQLActivityRowSource,
    StaticRowSource,
    build_row_source,
)
from .rows import EXPECTED_HEADER, parse_rows  # noqa: F401
from .service import ActivityReportService, derive_report, summarize  # noqa: F401
