"""
Time & shift arithmetic for attendance records.

All functions are pure. Times are naive time-of-day values interpreted on the
attendance record's calendar date; durations are returned as ``Decimal``.
Weekday indexes follow the stored workday convention: 0 = Sunday .. 6 = Saturday.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Iterable, Iterator, Optional, Tuple

ZERO = Decimal("0")
SECONDS_PER_HOUR = Decimal(3600)
SECONDS_PER_MINUTE = Decimal(60)


def day_index(on_date: date) -> int:
    """Weekday index with Sunday as day 0."""
    return on_date.isoweekday() % 7


def iter_dates(start_date: date, end_date: date) -> Iterator[date]:
    """Yield every date in the inclusive range; nothing when start > end."""
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def is_scheduled_workday(on_date: date, workdays: Iterable[int]) -> bool:
    return day_index(on_date) in set(workdays)


def compute_worked_hours(check_in: Optional[time], check_out: Optional[time], on_date: date) -> Decimal:
    """Hours between check-in and check-out on ``on_date``.

    A missing checkout contributes nothing. A checkout earlier than the
    check-in is an overnight shift and wraps past midnight.
    """
    if check_in is None or check_out is None:
        return ZERO

    started = datetime.combine(on_date, check_in)
    finished = datetime.combine(on_date, check_out)
    if finished < started:
        finished += timedelta(days=1)

    seconds = int((finished - started).total_seconds())
    return Decimal(seconds) / SECONDS_PER_HOUR


def compute_lateness_minutes(
    check_in: Optional[time],
    scheduled_check_in_start: Optional[time],
    scheduled_check_in_end: Optional[time]
) -> Decimal:
    """Minutes past the end of the check-in window; 0 inside ``[start, end]``."""
    if check_in is None or scheduled_check_in_end is None:
        return ZERO
    if check_in <= scheduled_check_in_end:
        return ZERO

    late = datetime.combine(date.min, check_in) - datetime.combine(date.min, scheduled_check_in_end)
    return Decimal(int(late.total_seconds())) / SECONDS_PER_MINUTE


def effective_check_in(
    check_in: time,
    scheduled_check_in_start: Optional[time],
    scheduled_check_in_end: Optional[time]
) -> time:
    """Check-in used for worked hours: arrivals inside the grace window count from its start."""
    if scheduled_check_in_start is None or scheduled_check_in_end is None:
        return check_in
    if scheduled_check_in_start < check_in <= scheduled_check_in_end:
        return scheduled_check_in_start
    return check_in


def split_regular_and_overtime(worked_hours: Decimal, agreed_daily_hours: Decimal) -> Tuple[Decimal, Decimal]:
    regular = min(worked_hours, agreed_daily_hours)
    overtime = max(ZERO, worked_hours - agreed_daily_hours)
    return regular, overtime
