"""
Dashboard statistics over the full (unfiltered) activity log.

These feed the calendar dashboard rather than the exports, and follow the
dashboard's own blocker rule: ``TRUE`` and ``true`` both count.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence

from .dataset import ActivityDataset
from .models import STATUS_COMPLETED, ActivityRecord
from .service import round1


@dataclass(frozen=True)
class MemberMinutes:
    name: str
    minutes: int
    hours: float


@dataclass(frozen=True)
class DailyCount:
    day: date
    label: str
    count: int


@dataclass(frozen=True)
class DashboardStats:
    total_activities: int
    total_hours: float
    avg_activity_minutes: int
    total_blockers: int
    minutes_by_member: Sequence[MemberMinutes] = field(default_factory=tuple)
    activities_by_type: Dict[str, int] = field(default_factory=dict)
    last_seven_days: Sequence[DailyCount] = field(default_factory=tuple)
    pending_total: int = 0
    pending_by_member: Dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "totalActivities": self.total_activities,
            "totalHours": self.total_hours,
            "avgActivityMinutes": self.avg_activity_minutes,
            "totalBlockers": self.total_blockers,
            "minutesByMember": [
                {"name": row.name, "minutes": row.minutes, "hours": row.hours} for row in self.minutes_by_member
            ],
            "activitiesByType": dict(self.activities_by_type),
            "lastSevenDays": [
                {"date": point.day.isoformat(), "label": point.label, "count": point.count}
                for point in self.last_seven_days
            ],
            "pendingTotal": self.pending_total,
            "pendingByMember": dict(self.pending_by_member),
        }


def _round_int(value: float) -> int:
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _day_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def minutes_by_member(
    records: Sequence[ActivityRecord],
    members: Optional[Sequence[str]] = None,
) -> List[MemberMinutes]:
    """
    Total logged minutes per member.

    ``members`` fixes the roster (members with no activity get 0); without
    it every name seen in ``records`` is listed in first-seen order.
    """

    totals: Dict[str, int] = defaultdict(int)
    for record in records:
        totals[record.member_name] += record.duration_minutes
    names = list(members) if members is not None else list(totals)
    return [MemberMinutes(name=name, minutes=totals.get(name, 0), hours=round1(totals.get(name, 0) / 60)) for name in names]


def activities_by_type(records: Sequence[ActivityRecord]) -> Dict[str, int]:
    return dict(Counter(record.activity_type for record in records))


def last_seven_days(records: Sequence[ActivityRecord], today: date) -> List[DailyCount]:
    dataset = ActivityDataset(records)
    days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    return [DailyCount(day=day, label=_day_label(day), count=len(dataset.on_day(day))) for day in days]


def pending_for_month(records: Sequence[ActivityRecord], month_of: date) -> List[ActivityRecord]:
    # A blank status is treated as completed, matching how activities are logged by default.
    return [
        record
        for record in records
        if (record.status or STATUS_COMPLETED) != STATUS_COMPLETED
        and record.date is not None
        and (record.date.year, record.date.month) == (month_of.year, month_of.month)
    ]


def build_dashboard_stats(
    records: Sequence[ActivityRecord],
    today: date,
    members: Optional[Sequence[str]] = None,
) -> DashboardStats:
    total = len(records)
    total_minutes = sum(record.duration_minutes for record in records)
    pending = pending_for_month(records, today)
    pending_counts = Counter(record.member_name for record in pending)
    if members is not None:
        pending_by_member = {name: pending_counts.get(name, 0) for name in members}
    else:
        pending_by_member = dict(pending_counts)

    return DashboardStats(
        total_activities=total,
        total_hours=round1(total_minutes / 60),
        avg_activity_minutes=_round_int(total_minutes / total) if total else 0,
        total_blockers=sum(1 for record in records if record.is_blocker_lenient),
        minutes_by_member=tuple(minutes_by_member(records, members)),
        activities_by_type=activities_by_type(records),
        last_seven_days=tuple(last_seven_days(records, today)),
        pending_total=len(pending),
        pending_by_member=pending_by_member,
    )
