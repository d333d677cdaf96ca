"""
Payroll calculator.

``calculate_payroll`` turns an employee's pay profile and the already-loaded
attendance, leave, bonus, deduction and advance rows into a
``PayrollCalculationResult``. It never touches storage and keeps no state, so
it may be called repeatedly and concurrently.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Set

from hr_payroll.adjustments.models import AdvanceStatus
from hr_payroll.attendance.models import LeaveStatus, LeaveType
from hr_payroll.employees.models import Currency, FlatSalaryPeriod, PaymentType
from hr_payroll.payrolls.pay_profile import EmployeePayProfile, ManufacturingFlatPay, to_decimal
from hr_payroll.payrolls.time_utils import (
    compute_lateness_minutes, compute_worked_hours, effective_check_in, is_scheduled_workday,
    iter_dates, split_regular_and_overtime
)
from hr_payroll.payrolls.periods import month_bounds

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")
THIRTY_DAYS = 30
SEVEN_DAYS = 7
MINUTES_PER_HOUR = Decimal("60")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class PayrollCalculationResult:
    employee_id: int
    currency: Currency
    start_date: date
    end_date: date
    is_flat_salary: bool
    base_salary: Decimal = ZERO
    overtime_pay: Decimal = ZERO
    bonuses_total: Decimal = ZERO
    lateness_deductions: Decimal = ZERO
    unpaid_leave_deductions: Decimal = ZERO
    absence_deductions: Decimal = ZERO
    manual_deductions_total: Decimal = ZERO
    advances_total: Decimal = ZERO
    total_deductions: Decimal = ZERO
    net_salary: Decimal = ZERO
    total_worked_hours: Decimal = ZERO
    total_regular_hours: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    total_late_minutes: Decimal = ZERO
    unpaid_leave_days: int = 0
    absent_days: int = 0
    outstanding_advances: List = field(default_factory=list)

    @property
    def gross_salary(self) -> Decimal:
        return self.base_salary + self.overtime_pay + self.bonuses_total


def _matches(value, enum_cls, expected) -> bool:
    if value is None:
        return False
    return enum_cls(value) == expected


def _in_range(on_date: date, start_date: date, end_date: date) -> bool:
    return start_date <= on_date <= end_date


def _is_deductible(leave) -> bool:
    """Unpaid leave always deducts; other types only when flagged."""
    return _matches(leave.type, LeaveType, LeaveType.UNPAID) or bool(leave.deduct_from_salary)


def count_workdays_in_month(year: int, month: int, workdays) -> int:
    first_day, last_day = month_bounds(year, month)
    return sum(1 for day in iter_dates(first_day, last_day) if is_scheduled_workday(day, workdays))


def daily_rate(profile: EmployeePayProfile, period_start: date) -> Decimal:
    """Amount one scheduled workday is worth, used for leave and absence deductions."""
    workdays = profile.schedule.workdays
    by_30_days = profile.calculate_salary_by_30_days

    if isinstance(profile.pay, ManufacturingFlatPay):
        weekly = profile.pay.period == FlatSalaryPeriod.WEEKLY
    elif profile.payment_type == PaymentType.HOURLY:
        # unworked hours are already unpaid
        return ZERO
    else:
        weekly = profile.payment_type == PaymentType.WEEKLY

    if weekly:
        days = SEVEN_DAYS if by_30_days else len(workdays)
    else:
        days = THIRTY_DAYS if by_30_days else count_workdays_in_month(
            period_start.year, period_start.month, workdays
        )

    if days <= 0:
        return ZERO
    return profile.period_salary / Decimal(days)


def lateness_rate_per_minute(profile: EmployeePayProfile, period_start: date) -> Decimal:
    """Deduction per late minute.

    The configured ``lateness_deduction_rate`` wins. Without one, a late minute
    costs a minute of the employee's effective hourly rate: ``hourly_rate`` when
    set, otherwise the day rate spread over the agreed daily hours.
    """
    pay = profile.pay
    if pay.lateness_deduction_rate > 0:
        return pay.lateness_deduction_rate

    if pay.hourly_rate > 0 or profile.payment_type == PaymentType.HOURLY:
        hourly = pay.hourly_rate
    else:
        agreed_hours = profile.schedule.agreed_daily_hours
        if agreed_hours <= 0:
            return ZERO
        hourly = daily_rate(profile, period_start) / agreed_hours
    return hourly / MINUTES_PER_HOUR


def calculate_payroll(
    profile: EmployeePayProfile,
    start_date: date,
    end_date: date,
    attendance: Iterable = (),
    leave_requests: Iterable = (),
    bonuses: Iterable = (),
    deductions: Iterable = (),
    approved_advances: Iterable = (),
    today: Optional[date] = None,
    deduct_absences: bool = False
) -> PayrollCalculationResult:
    employee_id = profile.employee_id
    schedule = profile.schedule
    currency = profile.currency
    is_flat = profile.is_flat_salary

    def own(rows):
        return [row for row in rows if row.employee_id == employee_id]

    records = [r for r in own(attendance) if _in_range(r.date, start_date, end_date)]
    leaves = [
        leave for leave in own(leave_requests)
        if _matches(leave.status, LeaveStatus, LeaveStatus.APPROVED)
        and leave.start_date <= end_date and leave.end_date >= start_date
    ]

    result = PayrollCalculationResult(
        employee_id=employee_id,
        currency=currency,
        start_date=start_date,
        end_date=end_date,
        is_flat_salary=is_flat,
    )

    # Hours, overtime and lateness
    worked_total = regular_total = overtime_total = late_minutes = ZERO
    for record in records:
        check_in = record.check_in
        if check_in is not None:
            check_in = effective_check_in(check_in, schedule.check_in_start, schedule.check_in_end)
        worked = compute_worked_hours(check_in, record.check_out, record.date)
        worked_total += worked

        if is_flat:
            regular_total += worked
            continue

        regular, overtime = split_regular_and_overtime(worked, schedule.agreed_hours_on(record.date))
        regular_total += regular
        overtime_total += overtime
        late_minutes += compute_lateness_minutes(record.check_in, schedule.check_in_start, schedule.check_in_end)

    result.total_worked_hours = quantize(worked_total)
    result.total_regular_hours = quantize(regular_total)
    result.total_overtime_hours = quantize(overtime_total)
    result.total_late_minutes = quantize(late_minutes)

    # Base pay
    if is_flat:
        base = profile.pay.flat_salary
        overtime_pay = lateness = ZERO
    else:
        pay = profile.pay
        if profile.payment_type == PaymentType.HOURLY:
            base = regular_total * pay.hourly_rate
        else:
            base = profile.period_salary
        overtime_pay = overtime_total * pay.overtime_rate
        lateness = late_minutes * lateness_rate_per_minute(profile, start_date)

    rate = daily_rate(profile, start_date)

    # Unpaid leave: scheduled workdays only, each day counted once
    leave_days: Set[date] = set()
    for leave in leaves:
        if not _is_deductible(leave):
            continue
        span_start = max(leave.start_date, start_date)
        span_end = min(leave.end_date, end_date)
        for day in iter_dates(span_start, span_end):
            if is_scheduled_workday(day, schedule.workdays):
                leave_days.add(day)
    unpaid_leave = rate * len(leave_days)

    absent_days = 0
    if deduct_absences:
        cutoff = min(end_date, today or date.today())
        attended = {record.date for record in records}
        on_leave = set()
        for leave in leaves:
            on_leave.update(iter_dates(max(leave.start_date, start_date), min(leave.end_date, end_date)))
        absent_days = sum(
            1 for day in iter_dates(start_date, cutoff)
            if is_scheduled_workday(day, schedule.workdays) and day not in attended and day not in on_leave
        )
    absences = rate * absent_days

    # Line items: salary currency only
    bonuses_total = sum(
        (to_decimal(b.amount) for b in own(bonuses)
         if _in_range(b.date, start_date, end_date) and _matches(b.currency, Currency, currency)),
        ZERO
    )
    manual_total = sum(
        (to_decimal(d.amount) for d in own(deductions)
         if _in_range(d.date, start_date, end_date) and _matches(d.currency, Currency, currency)),
        ZERO
    )

    outstanding = sorted(
        (a for a in own(approved_advances) if _matches(a.status, AdvanceStatus, AdvanceStatus.APPROVED)),
        key=lambda a: (a.date, a.id or 0)
    )
    advances_total = sum(
        (to_decimal(a.amount) for a in outstanding if _matches(a.currency, Currency, currency)),
        ZERO
    )

    result.base_salary = quantize(base)
    result.overtime_pay = quantize(overtime_pay)
    result.bonuses_total = quantize(bonuses_total)
    result.lateness_deductions = quantize(lateness)
    result.unpaid_leave_deductions = quantize(unpaid_leave)
    result.absence_deductions = quantize(absences)
    result.manual_deductions_total = quantize(manual_total)
    result.advances_total = quantize(advances_total)
    result.unpaid_leave_days = len(leave_days)
    result.absent_days = absent_days
    result.outstanding_advances = outstanding

    result.total_deductions = (
        result.lateness_deductions + result.unpaid_leave_deductions
        + result.absence_deductions + result.manual_deductions_total
    )
    result.net_salary = (
        result.base_salary + result.overtime_pay + result.bonuses_total
        - result.total_deductions - result.advances_total
    )

    logger.debug(
        f"Calculated payroll for employee {employee_id} {start_date}..{end_date}: "
        f"net {result.net_salary} {currency.value}"
    )
    return result
