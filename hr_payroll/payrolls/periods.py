"""
Pay-period partitioning for weekly-settled employees.

Weeks start on Sunday and are numbered 1..N inside a month. The first and
last weeks are clipped to the month, so the weeks of a month tile it exactly.
Week numbers are stable for a given (year, month) and key the payment ledger.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache
from typing import Optional, Tuple

from hr_payroll.payrolls.time_utils import day_index


@dataclass(frozen=True)
class WeekPeriod:
    week_number: int
    start_date: date
    end_date: date

    def contains(self, on_date: date) -> bool:
        return self.start_date <= on_date <= self.end_date

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of the month."""
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, days_in_month)


@lru_cache(maxsize=256)
def get_weeks_for_month(year: int, month: int) -> Tuple[WeekPeriod, ...]:
    first_day, last_day = month_bounds(year, month)

    weeks = []
    week_start = first_day - timedelta(days=day_index(first_day))
    week_number = 1
    while week_start <= last_day:
        week_end = week_start + timedelta(days=6)
        if week_end >= first_day:
            weeks.append(WeekPeriod(
                week_number=week_number,
                start_date=max(week_start, first_day),
                end_date=min(week_end, last_day),
            ))
            week_number += 1
        week_start += timedelta(days=7)

    return tuple(weeks)


def find_week(year: int, month: int, week_number: int) -> Optional[WeekPeriod]:
    for week in get_weeks_for_month(year, month):
        if week.week_number == week_number:
            return week
    return None


def format_period(year: int, month: int, week_number: Optional[int] = None) -> str:
    label = f"{year}-{month:02d}"
    if week_number:
        label += f" week {week_number}"
    return label
