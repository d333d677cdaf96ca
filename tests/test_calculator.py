from datetime import date, time
from decimal import Decimal

import pytest

from hr_payroll.adjustments.models import AdvanceStatus, Bonus, Deduction, SalaryAdvance
from hr_payroll.attendance.models import AttendanceRecord, LeaveRequest, LeaveStatus, LeaveType
from hr_payroll.employees.models import (
    Currency, Employee, FlatSalaryPeriod, ManufacturingStaff, PaymentType, WorkScheduleHistory
)
from hr_payroll.payrolls.calculator import calculate_payroll, daily_rate
from hr_payroll.payrolls.pay_profile import ManufacturingFlatPay, StandardPay, resolve_pay_profile

MARCH_START = date(2024, 3, 1)
MARCH_END = date(2024, 3, 31)
EMPLOYEE_ID = 7


def employee(**overrides):
    data = {
        "id": EMPLOYEE_ID,
        "name": "Lina Saleh",
        "payment_type": PaymentType.MONTHLY,
        "salary_currency": Currency.USD,
        "monthly_salary": Decimal("2100"),
        "weekly_salary": Decimal("500"),
        "hourly_rate": Decimal("10"),
        "overtime_rate": Decimal("15"),
        "lateness_deduction_rate": Decimal("2"),
        "agreed_daily_hours": Decimal("8"),
        "calculate_salary_by_30_days": False,
        # Sunday..Thursday
        "workdays": [0, 1, 2, 3, 4],
    }
    data.update(overrides)
    return Employee(**data)


def shift(on, check_in=time(8, 0), check_out=time(16, 0), employee_id=EMPLOYEE_ID):
    return AttendanceRecord(employee_id=employee_id, date=on, check_in=check_in, check_out=check_out)


def leave(start, end, leave_type=LeaveType.UNPAID, status=LeaveStatus.APPROVED, deduct=False):
    return LeaveRequest(
        employee_id=EMPLOYEE_ID, type=leave_type, status=status,
        start_date=start, end_date=end, deduct_from_salary=deduct
    )


def advance(advance_id, amount, currency=Currency.USD, status=AdvanceStatus.APPROVED):
    return SalaryAdvance(
        id=advance_id, employee_id=EMPLOYEE_ID, amount=Decimal(amount),
        currency=currency, date=date(2024, 2, 20), status=status
    )


def test_profile_resolves_standard_pay():
    profile = resolve_pay_profile(employee())

    assert isinstance(profile.pay, StandardPay)
    assert not profile.is_flat_salary
    assert profile.currency == Currency.USD
    assert profile.schedule.workdays == frozenset({0, 1, 2, 3, 4})


def test_profile_resolves_flat_pay_in_its_own_currency():
    flat = ManufacturingStaff(flat_salary=Decimal("900"), currency=Currency.TRY, period=FlatSalaryPeriod.WEEKLY)
    profile = resolve_pay_profile(employee(), manufacturing=flat)

    assert isinstance(profile.pay, ManufacturingFlatPay)
    assert profile.currency == Currency.TRY
    assert profile.settles_weekly


def test_missing_workdays_fall_back_to_defaults():
    profile = resolve_pay_profile(employee(workdays=None), default_workdays=[1, 2])
    assert profile.schedule.workdays == frozenset({1, 2})


def test_overtime_split_and_pay():
    profile = resolve_pay_profile(employee())
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[shift(date(2024, 3, 4), time(8, 0), time(18, 0))]
    )

    assert result.total_worked_hours == Decimal("10.00")
    assert result.total_regular_hours == Decimal("8.00")
    assert result.total_overtime_hours == Decimal("2.00")
    assert result.overtime_pay == Decimal("30.00")
    assert result.base_salary == Decimal("2100.00")
    assert result.net_salary == Decimal("2130.00")


def test_overnight_shift_counts_eight_hours():
    profile = resolve_pay_profile(employee())
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[shift(date(2024, 3, 4), time(22, 0), time(6, 0))]
    )

    assert result.total_worked_hours == Decimal("8.00")
    assert result.total_overtime_hours == Decimal("0.00")


def test_missing_checkout_contributes_zero_hours():
    profile = resolve_pay_profile(employee())
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[shift(date(2024, 3, 4), time(8, 0), None)]
    )

    assert result.total_worked_hours == Decimal("0.00")
    assert result.net_salary == Decimal("2100.00")


def test_attendance_on_non_workday_still_counts():
    profile = resolve_pay_profile(employee())
    # Friday
    result = calculate_payroll(profile, MARCH_START, MARCH_END, attendance=[shift(date(2024, 3, 8))])

    assert result.total_worked_hours == Decimal("8.00")


def test_records_outside_range_or_for_others_are_ignored():
    profile = resolve_pay_profile(employee())
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[shift(date(2024, 4, 1)), shift(date(2024, 3, 4), employee_id=99)]
    )

    assert result.total_worked_hours == Decimal("0.00")


def test_lateness_and_grace_window():
    profile = resolve_pay_profile(employee(
        check_in_start_time=time(8, 0), check_in_end_time=time(8, 15)
    ))
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[
            # inside the grace window: worked from 08:00, not late
            shift(date(2024, 3, 4), time(8, 10), time(16, 0)),
            # 30 minutes late
            shift(date(2024, 3, 5), time(8, 45), time(16, 45)),
        ]
    )

    assert result.total_worked_hours == Decimal("16.00")
    assert result.total_late_minutes == Decimal("30.00")
    assert result.lateness_deductions == Decimal("60.00")
    assert result.total_deductions == Decimal("60.00")


def test_hourly_base_uses_regular_hours_only():
    profile = resolve_pay_profile(employee(payment_type=PaymentType.HOURLY))
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[
            shift(date(2024, 3, 4), time(8, 0), time(18, 0)),
            shift(date(2024, 3, 5), time(8, 0), time(18, 0)),
        ]
    )

    assert result.base_salary == Decimal("160.00")
    assert result.overtime_pay == Decimal("60.00")


def test_weekly_base_is_weekly_salary():
    profile = resolve_pay_profile(employee(payment_type=PaymentType.WEEKLY))
    result = calculate_payroll(profile, date(2024, 3, 3), date(2024, 3, 9))

    assert result.base_salary == Decimal("500.00")


def test_manufacturing_flat_salary_ignores_lateness_and_overtime():
    flat = ManufacturingStaff(flat_salary=Decimal("1200"), currency=Currency.USD, period=FlatSalaryPeriod.MONTHLY)
    profile = resolve_pay_profile(
        employee(check_in_start_time=time(8, 0), check_in_end_time=time(8, 15)),
        manufacturing=flat
    )
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[
            shift(date(2024, 3, 4), time(11, 0), time(23, 0)),
            shift(date(2024, 3, 5), time(10, 30), time(22, 0)),
        ]
    )

    assert result.is_flat_salary
    assert result.base_salary == Decimal("1200.00")
    assert result.overtime_pay == Decimal("0.00")
    assert result.lateness_deductions == Decimal("0.00")
    assert result.total_late_minutes == Decimal("0.00")
    assert result.total_overtime_hours == Decimal("0.00")
    assert result.total_worked_hours == Decimal("23.50")
    assert result.net_salary == Decimal("1200.00")


def test_unpaid_leave_counts_scheduled_workdays_only():
    profile = resolve_pay_profile(employee())
    # Thu 7th .. Sun 10th: Thursday and Sunday are workdays
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        leave_requests=[leave(date(2024, 3, 7), date(2024, 3, 10))]
    )

    # 2100 / 21 workdays in March 2024
    assert result.unpaid_leave_days == 2
    assert result.unpaid_leave_deductions == Decimal("200.00")
    assert result.net_salary == Decimal("1900.00")


def test_paid_leave_deducts_only_when_flagged():
    profile = resolve_pay_profile(employee())
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        leave_requests=[
            leave(date(2024, 3, 4), date(2024, 3, 4), leave_type=LeaveType.ANNUAL),
            leave(date(2024, 3, 5), date(2024, 3, 5), leave_type=LeaveType.SICK, deduct=True),
            leave(date(2024, 3, 6), date(2024, 3, 6), status=LeaveStatus.PENDING),
        ]
    )

    assert result.unpaid_leave_days == 1
    assert result.unpaid_leave_deductions == Decimal("100.00")


def test_overlapping_leaves_count_a_day_once():
    profile = resolve_pay_profile(employee())
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        leave_requests=[
            leave(date(2024, 3, 4), date(2024, 3, 5)),
            leave(date(2024, 3, 5), date(2024, 3, 6)),
        ]
    )

    assert result.unpaid_leave_days == 3


def test_leave_deduction_by_30_days():
    profile = resolve_pay_profile(employee(monthly_salary=Decimal("3000"), calculate_salary_by_30_days=True))
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        leave_requests=[leave(date(2024, 3, 4), date(2024, 3, 4))]
    )

    assert result.unpaid_leave_deductions == Decimal("100.00")


def test_zero_day_period_yields_zero_rate():
    profile = resolve_pay_profile(employee(workdays=None), default_workdays=[])

    assert daily_rate(profile, MARCH_START) == Decimal("0")
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        leave_requests=[leave(date(2024, 3, 4), date(2024, 3, 8))]
    )
    assert result.unpaid_leave_deductions == Decimal("0.00")


def test_hourly_employees_have_no_leave_rate():
    profile = resolve_pay_profile(employee(payment_type=PaymentType.HOURLY))
    assert daily_rate(profile, MARCH_START) == Decimal("0")


def test_line_items_in_other_currencies_are_not_summed():
    profile = resolve_pay_profile(employee())
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        bonuses=[
            Bonus(employee_id=EMPLOYEE_ID, amount=Decimal("100"), currency=Currency.USD, date=date(2024, 3, 10)),
            Bonus(employee_id=EMPLOYEE_ID, amount=Decimal("50000"), currency=Currency.SYP, date=date(2024, 3, 10)),
        ],
        deductions=[
            Deduction(employee_id=EMPLOYEE_ID, amount=Decimal("40"), currency=Currency.USD, date=date(2024, 3, 12)),
            Deduction(employee_id=EMPLOYEE_ID, amount=Decimal("70"), currency=Currency.TRY, date=date(2024, 3, 12)),
        ],
        approved_advances=[advance(1, "30"), advance(2, "20000", currency=Currency.SYP)],
    )

    assert result.bonuses_total == Decimal("100.00")
    assert result.manual_deductions_total == Decimal("40.00")
    assert result.advances_total == Decimal("30.00")
    assert [a.id for a in result.outstanding_advances] == [1, 2]
    assert result.net_salary == Decimal("2100") + Decimal("100") - Decimal("40") - Decimal("30")


def test_advances_are_not_range_filtered_but_must_be_approved():
    profile = resolve_pay_profile(employee())
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        approved_advances=[
            advance(1, "100"),
            advance(2, "50", status=AdvanceStatus.PAID),
            advance(3, "25", status=AdvanceStatus.PENDING),
        ],
    )

    assert result.advances_total == Decimal("100.00")
    assert [a.id for a in result.outstanding_advances] == [1]


def test_schedule_history_changes_agreed_hours():
    history = [WorkScheduleHistory(hours=Decimal("6"), start_date=date(2024, 3, 10))]
    profile = resolve_pay_profile(employee(), schedule_history=history)
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[shift(date(2024, 3, 4)), shift(date(2024, 3, 11))]
    )

    assert result.total_overtime_hours == Decimal("2.00")
    assert result.total_regular_hours == Decimal("14.00")


def test_absence_deduction_when_enabled():
    profile = resolve_pay_profile(employee())
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[shift(date(2024, 3, 4))],
        today=date(2024, 3, 5),
        deduct_absences=True,
    )

    # Sunday 3rd and Tuesday 5th missed
    assert result.absent_days == 2
    assert result.absence_deductions == Decimal("200.00")
    assert result.total_deductions == Decimal("200.00")


def test_absences_ignored_by_default():
    profile = resolve_pay_profile(employee())
    result = calculate_payroll(profile, MARCH_START, MARCH_END, today=date(2024, 3, 31))

    assert result.absent_days == 0
    assert result.absence_deductions == Decimal("0.00")


@pytest.mark.parametrize("payment_type", [PaymentType.MONTHLY, PaymentType.WEEKLY, PaymentType.HOURLY])
def test_empty_inputs_never_fail(payment_type):
    profile = resolve_pay_profile(employee(payment_type=payment_type))
    result = calculate_payroll(profile, MARCH_START, MARCH_END)

    assert result.total_deductions == Decimal("0.00")
    assert result.outstanding_advances == []


def test_lateness_without_a_rate_costs_the_hourly_equivalent():
    # 2100 over 21 March workdays is 100 a day, 12.50 an hour over 8 agreed hours
    profile = resolve_pay_profile(employee(
        lateness_deduction_rate=Decimal("0"), hourly_rate=Decimal("0"),
        check_in_start_time=time(8, 0), check_in_end_time=time(8, 15)
    ))
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[shift(date(2024, 3, 5), time(8, 45), time(16, 45))]
    )

    assert result.total_late_minutes == Decimal("30.00")
    assert result.lateness_deductions == Decimal("6.25")


def test_lateness_without_a_rate_prefers_the_hourly_rate():
    profile = resolve_pay_profile(employee(
        lateness_deduction_rate=Decimal("0"), hourly_rate=Decimal("10"),
        check_in_start_time=time(8, 0), check_in_end_time=time(8, 15)
    ))
    result = calculate_payroll(
        profile, MARCH_START, MARCH_END,
        attendance=[shift(date(2024, 3, 5), time(8, 45), time(16, 45))]
    )

    assert result.lateness_deductions == Decimal("5.00")
