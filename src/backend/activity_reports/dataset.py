from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterator, List, Optional, Sequence

from .models import STATUS_COMPLETED, STATUS_PENDING, ActivityRecord, ReportQuery, TypeFilter


@dataclass
class ActivityDataset:
    """
    Ordered, read-only view over the records fetched for one request.

    Records keep the order the row source returned them in; every helper
    yields a subsequence of that order.
    """

    records: Sequence[ActivityRecord]

    def __post_init__(self) -> None:
        self.records = tuple(self.records)

    def iter_records(self, query: ReportQuery) -> Iterator[ActivityRecord]:
        """
        Yield records matching the employee, date range and type filters.

        The range is inclusive on both ends and compares calendar days only,
        so anything logged on ``date_to`` is included whatever its time.
        Records without a parseable date never match.
        """

        for record in self.records:
            if query.has_employee_constraint and record.member_name != query.employee_name:
                continue
            if record.date is None or not (query.date_from <= record.date <= query.date_to):
                continue
            if not self._matches_type(record, query.type_filter):
                continue
            yield record

    def filter(self, query: ReportQuery) -> List[ActivityRecord]:
        return list(self.iter_records(query))

    def for_member(self, member_name: str) -> List[ActivityRecord]:
        return [record for record in self.records if record.member_name == member_name]

    def between(self, start: date, end: date) -> List[ActivityRecord]:
        return [record for record in self.records if record.date is not None and start <= record.date <= end]

    def on_day(self, day: date) -> List[ActivityRecord]:
        return self.between(day, day)

    @staticmethod
    def _matches_type(record: ActivityRecord, type_filter: Optional[TypeFilter]) -> bool:
        if type_filter == TypeFilter.PENDING:
            return record.status == STATUS_PENDING
        if type_filter == TypeFilter.COMPLETED:
            return record.status == STATUS_COMPLETED
        if type_filter == TypeFilter.BLOCKER:
            return record.is_blocker
        return True


def filter_records(records: Sequence[ActivityRecord], query: ReportQuery) -> List[ActivityRecord]:
    return ActivityDataset(records).filter(query)
