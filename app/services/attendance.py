"""
Leave aggregation for payroll.

Pure functions over leave records already loaded by the caller: no
database or HTTP access here. A leave counts toward the month that
contains its start date only; leaves crossing a month boundary are not
split.
"""
import calendar
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, List

from app.core.exceptions import InvalidInputError

UNPAID_LEAVE_TYPE = "Unpaid Leave"
APPROVED_STATUS = "approved"

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True)
class MonthWindow:
    year: int
    month: int

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def label(self) -> str:
        """e.g. 'February 2026'"""
        return f"{calendar.month_name[self.month]} {self.year}"

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def contains(self, value: Any) -> bool:
        if isinstance(value, datetime):
            value = value.date()
        return self.first_day <= value <= self.last_day


def parse_month(month: str) -> MonthWindow:
    """Parse a 'YYYY-MM' string. Anything else is rejected."""
    match = _MONTH_PATTERN.match(month or "")
    if not match:
        raise InvalidInputError(f"Invalid month '{month}'. Expected format YYYY-MM")
    year, month_num = int(match.group(1)), int(match.group(2))
    if not 1 <= month_num <= 12 or year < 1:
        raise InvalidInputError(f"Invalid month '{month}'. Expected format YYYY-MM")
    return MonthWindow(year=year, month=month_num)


@dataclass
class LeaveSummary:
    approved_leaves: List[Any] = field(default_factory=list)
    unpaid_leaves: List[Any] = field(default_factory=list)
    total_leave_days: float = 0.0
    unpaid_days: float = 0.0


def _status_of(leave) -> str:
    status = getattr(leave, "status", None)
    return getattr(status, "value", status)


def summarize_leaves(leaves: Iterable[Any], window: MonthWindow) -> LeaveSummary:
    """
    Split an employee's leave records for one month.

    Only records whose start_date falls inside the window are counted.
    approved_leaves holds status == "approved"; unpaid_leaves is the
    subset with leave_type exactly "Unpaid Leave" (case-sensitive).
    """
    in_month = [l for l in leaves if l.start_date is not None and window.contains(l.start_date)]
    approved = [l for l in in_month if _status_of(l) == APPROVED_STATUS]
    unpaid = [l for l in approved if l.leave_type == UNPAID_LEAVE_TYPE]

    return LeaveSummary(
        approved_leaves=approved,
        unpaid_leaves=unpaid,
        total_leave_days=sum(l.days_count or 0 for l in approved),
        unpaid_days=sum(l.days_count or 0 for l in unpaid),
    )
