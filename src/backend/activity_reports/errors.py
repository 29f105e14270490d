from __future__ import annotations


class ActivityReportError(Exception):
    """Base class for failures raised by the report pipeline."""


class SchemaError(ActivityReportError):
    """The sheet header does not match the expected column layout."""


class RowSourceError(ActivityReportError):
    """The upstream row source could not be read."""


class EmptyDatasetError(ActivityReportError):
    """The row source returned no rows at all."""


class ConfigurationError(ActivityReportError):
    """No usable row source is configured for the request."""
