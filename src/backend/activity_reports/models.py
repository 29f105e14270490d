from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

ALL_EMPLOYEES = "All Employees"

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"

BLOCKER_STRICT_VALUES = frozenset({"TRUE"})
BLOCKER_LENIENT_VALUES = frozenset({"TRUE", "true"})


class TypeFilter(str, Enum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"
    BLOCKER = "blocker"


@dataclass(frozen=True)
class ActivityRecord:
    """
    One logged activity, built once from a raw sheet row.

    ``cells`` keeps the nine raw cells so the CSV export can reproduce the
    sheet verbatim. ``date`` is ``None`` when the date cell is missing or
    cannot be parsed; such records never match a date-range query.
    """

    activity_id: str
    member_id: str
    member_name: str
    activity_type: str
    description: str
    date: Optional[date]
    duration_minutes: int
    status: str
    blocker_raw: str
    cells: Tuple[str, ...] = ()

    @property
    def is_blocker(self) -> bool:
        """Export rule: only the exact literal ``TRUE`` marks a blocker."""
        return self.blocker_raw in BLOCKER_STRICT_VALUES

    @property
    def is_blocker_lenient(self) -> bool:
        """Dashboard rule: ``TRUE`` or ``true``."""
        return self.blocker_raw in BLOCKER_LENIENT_VALUES


@dataclass(frozen=True)
class ReportQuery:
    """
    Filters shared by every export format.

    ``date_from`` and ``date_to`` are both inclusive calendar days. An
    ``employee_name`` of ``None``, ``""`` or ``ALL_EMPLOYEES`` places no
    constraint on the member.
    """

    date_from: date
    date_to: date
    employee_name: Optional[str] = None
    type_filter: TypeFilter = TypeFilter.ALL

    @property
    def has_employee_constraint(self) -> bool:
        return bool(self.employee_name) and self.employee_name != ALL_EMPLOYEES

    @property
    def employee_label(self) -> str:
        return self.employee_name if self.has_employee_constraint else ALL_EMPLOYEES

    def as_dict(self) -> Dict[str, Any]:
        return {
            "employee": self.employee_label,
            "from": self.date_from.isoformat(),
            "to": self.date_to.isoformat(),
            "type": self.type_filter.value,
        }


@dataclass(frozen=True)
class LeaderboardEntry:
    name: str
    count: int


@dataclass(frozen=True)
class ReportSummary:
    total: int = 0
    completed: int = 0
    pending: int = 0
    blockers: int = 0
    total_minutes: int = 0
    avg_duration_minutes: float = 0.0
    completion_rate_pct: float = 0.0
    blocker_rate_pct: float = 0.0
    leaderboard: Sequence[LeaderboardEntry] = field(default_factory=tuple)

    @property
    def other_status(self) -> int:
        return self.total - self.completed - self.pending


@dataclass(frozen=True)
class ActivityReport:
    query: ReportQuery
    records: Sequence[ActivityRecord]
    summary: ReportSummary
    generated_at: datetime = field(default_factory=datetime.now)
    header: Tuple[str, ...] = ()
    """The source's own header row, empty when the rows came without one."""

    def as_dict(self) -> Dict[str, Any]:
        """
        Convert the report into a JSON-serialisable structure.

        The keys follow the camelCase names the dashboard frontend already
        reads, so presenters and the UI agree on one shape.
        """

        def _serialize(obj: Any) -> Any:
            if isinstance(obj, ActivityReport):
                return {
                    "query": obj.query.as_dict(),
                    "records": [_serialize(record) for record in obj.records],
                    "summary": _serialize(obj.summary),
                    "generatedAt": obj.generated_at.isoformat(),
                }
            if isinstance(obj, ReportSummary):
                return {
                    "total": obj.total,
                    "completed": obj.completed,
                    "pending": obj.pending,
                    "blockers": obj.blockers,
                    "totalMinutes": obj.total_minutes,
                    "avgDurationMinutes": obj.avg_duration_minutes,
                    "completionRatePct": obj.completion_rate_pct,
                    "blockerRatePct": obj.blocker_rate_pct,
                    "leaderboard": [_serialize(entry) for entry in obj.leaderboard],
                }
            if isinstance(obj, ActivityRecord):
                return {
                    "id": obj.activity_id,
                    "memberId": obj.member_id,
                    "memberName": obj.member_name,
                    "activityType": obj.activity_type,
                    "description": obj.description,
                    "date": obj.date.isoformat() if obj.date else None,
                    "durationMinutes": obj.duration_minutes,
                    "status": obj.status,
                    "blocker": obj.is_blocker,
                }
            if isinstance(obj, LeaderboardEntry):
                return {"name": obj.name, "count": obj.count}
            return obj

        return _serialize(self)
