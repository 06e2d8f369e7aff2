"""Period parsing for report windows."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class PeriodError(ValueError):
    """Raised when a period string or wrapped period cannot be resolved."""

    pass


@dataclass(frozen=True)
class PeriodBounds:
    """Half-open report window ``[start, end)``."""

    start: datetime
    end: datetime
    label: str
    kind: str = "custom"

    @property
    def days(self) -> int:
        """Whole days covered, rounded up, never less than 1."""
        return max(1, math.ceil((self.end - self.start).total_seconds() / 86400))

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


def parse_period(period: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """
    Convert period string to date range.

    Args:
        period: One of 'week', 'month', 'year', 'all', 'YYYY', or 'YYYY-MM'
        now: Reference time (defaults to the current UTC time)

    Returns:
        Tuple of (start_datetime, end_datetime)
    """
    now = now or datetime.now(timezone.utc)

    if period == "week":
        return now - timedelta(days=7), now
    elif period == "month":
        return now - timedelta(days=30), now
    elif period == "year":
        return now - timedelta(days=365), now
    elif period == "all":
        return datetime(2000, 1, 1, tzinfo=timezone.utc), now
    elif re.match(r"^\d{4}$", period):
        year = int(period)
        return (
            datetime(year, 1, 1, tzinfo=timezone.utc),
            datetime(year + 1, 1, 1, tzinfo=timezone.utc),
        )
    elif re.match(r"^\d{4}-\d{2}$", period):
        year, month = map(int, period.split("-"))
        if not 1 <= month <= 12:
            raise PeriodError(f"Invalid month in period '{period}'")
        return _month_bounds(year, month)
    raise PeriodError(
        f"Unknown period '{period}'. Use week, month, year, all, YYYY, or YYYY-MM"
    )


def wrapped_period(
    kind: str = "month",
    year: int | None = None,
    month: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    now: datetime | None = None,
) -> PeriodBounds:
    """
    Resolve the window of a wrapped report.

    Args:
        kind: 'month', 'year' or 'custom'
        year: Calendar year (defaults to the current year)
        month: Calendar month 1-12 for monthly reports (defaults to current)
        start: Custom range start
        end: Custom range end
        now: Reference time

    Returns:
        PeriodBounds with a display label
    """
    now = now or datetime.now(timezone.utc)
    year = year or now.year

    if kind == "year":
        return PeriodBounds(
            start=datetime(year, 1, 1, tzinfo=timezone.utc),
            end=datetime(year + 1, 1, 1, tzinfo=timezone.utc),
            label=str(year),
            kind=kind,
        )
    if kind == "month":
        month = month or now.month
        if not 1 <= month <= 12:
            raise PeriodError(f"Invalid month {month}")
        month_start, month_end = _month_bounds(year, month)
        return PeriodBounds(
            start=month_start,
            end=month_end,
            label=f"{MONTH_NAMES[month - 1]} {year}",
            kind=kind,
        )
    if kind == "custom":
        custom_start = _as_utc(start or now)
        custom_end = _as_utc(end or now)
        if custom_end < custom_start:
            raise PeriodError("Custom period ends before it starts")
        return PeriodBounds(
            start=custom_start,
            end=custom_end,
            label=f"{custom_start.date().isoformat()} - {custom_end.date().isoformat()}",
            kind=kind,
        )
    raise PeriodError(f"Unknown wrapped period type '{kind}'")
