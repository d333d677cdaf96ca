"""
Resolved pay terms for one employee.

An employee is paid either on standard terms (monthly / weekly / hourly with
overtime and lateness rates) or as flat-salary manufacturing staff. The
branch is picked once here, when the employee is loaded, and the calculator
dispatches on the type of ``EmployeePayProfile.pay``.
"""

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import FrozenSet, Iterable, Optional, Tuple, Union

from hr_payroll.core.config import settings
from hr_payroll.employees.models import Currency, FlatSalaryPeriod, PaymentType

ZERO = Decimal("0")
DEFAULT_AGREED_DAILY_HOURS = Decimal("8")


def to_decimal(value) -> Decimal:
    """Coerce a stored amount to Decimal; missing values count as 0."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class WorkSchedule:
    workdays: FrozenSet[int]
    agreed_daily_hours: Decimal
    check_in_start: Optional[time] = None
    check_in_end: Optional[time] = None
    # (effective_from, hours) sorted by effective_from
    hours_history: Tuple[Tuple[date, Decimal], ...] = ()

    def agreed_hours_on(self, on_date: date) -> Decimal:
        """Agreed daily hours in force on ``on_date``."""
        for effective_from, hours in reversed(self.hours_history):
            if effective_from <= on_date:
                return hours
        return self.agreed_daily_hours


@dataclass(frozen=True)
class StandardPay:
    payment_type: PaymentType
    monthly_salary: Decimal = ZERO
    weekly_salary: Decimal = ZERO
    hourly_rate: Decimal = ZERO
    overtime_rate: Decimal = ZERO
    lateness_deduction_rate: Decimal = ZERO


@dataclass(frozen=True)
class ManufacturingFlatPay:
    flat_salary: Decimal
    currency: Currency
    period: FlatSalaryPeriod


PayTerms = Union[StandardPay, ManufacturingFlatPay]


@dataclass(frozen=True)
class EmployeePayProfile:
    employee_id: int
    employee_name: str
    payment_type: PaymentType
    currency: Currency
    schedule: WorkSchedule
    pay: PayTerms
    calculate_salary_by_30_days: bool = False

    @property
    def is_flat_salary(self) -> bool:
        return isinstance(self.pay, ManufacturingFlatPay)

    @property
    def settles_weekly(self) -> bool:
        """Whether delivery happens per week of the month instead of per month."""
        if isinstance(self.pay, ManufacturingFlatPay):
            return self.pay.period == FlatSalaryPeriod.WEEKLY
        return self.payment_type == PaymentType.WEEKLY

    @property
    def period_salary(self) -> Decimal:
        """Fixed amount owed per settlement period (0 for hourly pay)."""
        if isinstance(self.pay, ManufacturingFlatPay):
            return self.pay.flat_salary
        if self.payment_type == PaymentType.MONTHLY:
            return self.pay.monthly_salary
        if self.payment_type == PaymentType.WEEKLY:
            return self.pay.weekly_salary
        return ZERO


def _resolve_workdays(workdays, default_workdays) -> FrozenSet[int]:
    if workdays:
        return frozenset(int(day) for day in workdays)
    if default_workdays is None:
        default_workdays = settings.default_workdays
    return frozenset(int(day) for day in default_workdays)


def _resolve_agreed_hours(agreed_daily_hours, default_agreed_hours) -> Decimal:
    hours = to_decimal(agreed_daily_hours)
    if hours > ZERO:
        return hours
    if default_agreed_hours is None:
        default_agreed_hours = settings.default_agreed_daily_hours
    fallback = to_decimal(default_agreed_hours)
    return fallback if fallback > ZERO else DEFAULT_AGREED_DAILY_HOURS


def resolve_pay_profile(
    employee,
    manufacturing=None,
    schedule_history: Iterable = (),
    default_workdays: Optional[Iterable[int]] = None,
    default_agreed_hours=None
) -> EmployeePayProfile:
    """Build the pay profile from an employee row and its side-table rows.

    ``manufacturing`` is the employee's ManufacturingStaff row, if any;
    ``schedule_history`` are WorkScheduleHistory rows in any order.
    """
    history = tuple(sorted(
        ((row.start_date, to_decimal(row.hours)) for row in schedule_history if to_decimal(row.hours) > ZERO),
        key=lambda item: item[0]
    ))

    schedule = WorkSchedule(
        workdays=_resolve_workdays(employee.workdays, default_workdays),
        agreed_daily_hours=_resolve_agreed_hours(employee.agreed_daily_hours, default_agreed_hours),
        check_in_start=employee.check_in_start_time,
        check_in_end=employee.check_in_end_time,
        hours_history=history,
    )

    payment_type = PaymentType(employee.payment_type or PaymentType.MONTHLY)

    if manufacturing is not None:
        pay = ManufacturingFlatPay(
            flat_salary=to_decimal(manufacturing.flat_salary),
            currency=Currency(manufacturing.currency or employee.salary_currency),
            period=FlatSalaryPeriod(manufacturing.period or FlatSalaryPeriod.MONTHLY),
        )
        currency = pay.currency
    else:
        pay = StandardPay(
            payment_type=payment_type,
            monthly_salary=to_decimal(employee.monthly_salary),
            weekly_salary=to_decimal(employee.weekly_salary),
            hourly_rate=to_decimal(employee.hourly_rate),
            overtime_rate=to_decimal(employee.overtime_rate),
            lateness_deduction_rate=to_decimal(employee.lateness_deduction_rate),
        )
        currency = Currency(employee.salary_currency or Currency.SYP)

    return EmployeePayProfile(
        employee_id=employee.id,
        employee_name=employee.name,
        payment_type=payment_type,
        currency=currency,
        schedule=schedule,
        pay=pay,
        calculate_salary_by_30_days=bool(employee.calculate_salary_by_30_days),
    )
