import enum
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from hr_payroll.core.config import settings
from hr_payroll.core.exceptions import PayrollCalculationError, ResourceNotFoundError
from hr_payroll.core.service_base import BaseService
from hr_payroll.core.validators import validate_date_range, validate_period
from hr_payroll.employees.models import Currency, PaymentType
from hr_payroll.payrolls.calculator import PayrollCalculationResult, calculate_payroll, quantize
from hr_payroll.payrolls.models import WHOLE_MONTH, Payment
from hr_payroll.payrolls.pay_profile import EmployeePayProfile, resolve_pay_profile
from hr_payroll.payrolls.periods import WeekPeriod, get_weeks_for_month, month_bounds
from hr_payroll.payrolls.repositories import PayrollRepositories

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class SettlementStatus(str, enum.Enum):
    PAID = "Paid"
    DUE = "Due"


@dataclass
class PayrollInputs:
    attendance: List
    leave_requests: List
    bonuses: List
    deductions: List
    approved_advances: List


@dataclass
class WeekSettlement:
    week_number: int
    start_date: date
    end_date: date
    status: SettlementStatus
    earned: Decimal
    total_hours_worked: Decimal
    payment_id: Optional[int] = None


@dataclass
class PayrollSheetRow:
    employee_id: int
    employee_name: str
    department: Optional[str]
    payment_type: PaymentType
    currency: Currency
    settles_weekly: bool
    calculation: PayrollCalculationResult
    amount_due: Decimal
    is_settled: Optional[bool] = None
    weeks: Optional[List[WeekSettlement]] = None


@dataclass
class PayrollSheet:
    year: int
    month: int
    rows: List[PayrollSheetRow] = field(default_factory=list)
    totals_to_deliver: Dict[str, Decimal] = field(default_factory=dict)


class PayrollService(BaseService):
    """Loads payroll inputs through the repositories and runs the calculator."""

    def __init__(
        self,
        db: Session,
        repositories: Optional[PayrollRepositories] = None,
        clock: Optional[Callable[[], date]] = None,
        deduct_absences: Optional[bool] = None
    ):
        super().__init__(db)
        self.repositories = repositories or PayrollRepositories.from_session(db)
        self.clock = clock or date.today
        self.deduct_absences = settings.payroll_deduct_absences if deduct_absences is None else deduct_absences

    def get_pay_profile(self, employee_id: int) -> EmployeePayProfile:
        profile = self.repositories.employees.get_pay_profile(employee_id)
        if profile is None:
            raise ResourceNotFoundError(resource_type="Employee", resource_id=employee_id)
        return profile

    def load_inputs(self, profile: EmployeePayProfile, start_date: date, end_date: date) -> PayrollInputs:
        repos = self.repositories
        employee_id = profile.employee_id
        return PayrollInputs(
            attendance=repos.attendance.list_for_range(employee_id, start_date, end_date),
            leave_requests=repos.attendance.list_approved_leaves(employee_id, start_date, end_date),
            bonuses=repos.adjustments.list_bonuses(employee_id, start_date, end_date),
            deductions=repos.adjustments.list_deductions(employee_id, start_date, end_date),
            approved_advances=repos.advances.list_outstanding(employee_id),
        )

    def calculate_for_profile(
        self,
        profile: EmployeePayProfile,
        start_date: date,
        end_date: date,
        inputs: Optional[PayrollInputs] = None
    ) -> PayrollCalculationResult:
        if inputs is None:
            inputs = self.load_inputs(profile, start_date, end_date)

        try:
            return calculate_payroll(
                profile,
                start_date,
                end_date,
                attendance=inputs.attendance,
                leave_requests=inputs.leave_requests,
                bonuses=inputs.bonuses,
                deductions=inputs.deductions,
                approved_advances=inputs.approved_advances,
                today=self.clock(),
                deduct_absences=self.deduct_absences,
            )
        except ArithmeticError as e:
            logger.error(f"Payroll calculation failed for employee {profile.employee_id}: {str(e)}")
            raise PayrollCalculationError(
                detail=f"Error calculating payroll: {str(e)}",
                employee_id=profile.employee_id
            )

    def calculate(self, employee_id: int, start_date: date, end_date: date) -> PayrollCalculationResult:
        """Calculate payroll for one employee over an inclusive date range."""
        validate_date_range(start_date, end_date)
        profile = self.get_pay_profile(employee_id)
        return self.calculate_for_profile(profile, start_date, end_date)

    def get_weeks(self, year: int, month: int) -> List[WeekPeriod]:
        validate_period(year, month)
        return list(get_weeks_for_month(year, month))

    def list_payments(
        self,
        employee_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None
    ) -> List[Payment]:
        return self.repositories.payments.list_payments(employee_id=employee_id, year=year, month=month)

    def _week_settlements(
        self,
        profile: EmployeePayProfile,
        year: int,
        month: int,
        inputs: PayrollInputs,
        payments: Dict[int, Payment]
    ) -> List[WeekSettlement]:
        weeks = []
        for week in get_weeks_for_month(year, month):
            payment = payments.get(week.week_number)
            week_hours = calculate_payroll(
                profile, week.start_date, week.end_date, attendance=inputs.attendance
            ).total_worked_hours

            weeks.append(WeekSettlement(
                week_number=week.week_number,
                start_date=week.start_date,
                end_date=week.end_date,
                status=SettlementStatus.PAID if payment else SettlementStatus.DUE,
                earned=payment.gross_amount if payment else quantize(profile.period_salary),
                total_hours_worked=week_hours,
                payment_id=payment.id if payment else None,
            ))
        return weeks

    def build_payroll_sheet(
        self,
        year: int,
        month: int,
        department: Optional[str] = None,
        payment_type: Optional[PaymentType] = None,
        currency: Optional[Currency] = None,
        search: Optional[str] = None
    ) -> PayrollSheet:
        """Month view of every active employee with what is still due, totalled per currency."""
        validate_period(year, month)
        first_day, last_day = month_bounds(year, month)

        employees = self.repositories.employees.list_roster(
            department=department, payment_type=payment_type, search=search
        )
        ledger: Dict[int, Dict[int, Payment]] = {}
        for payment in self.repositories.payments.list_for_period(year, month, [e.id for e in employees]):
            ledger.setdefault(payment.employee_id, {})[payment.week_number] = payment

        sheet = PayrollSheet(year=year, month=month)
        totals: Dict[str, Decimal] = OrderedDict()

        for employee in employees:
            profile = resolve_pay_profile(
                employee,
                manufacturing=employee.manufacturing_profile,
                schedule_history=employee.schedule_history,
            )
            if currency is not None and profile.currency != Currency(currency):
                continue

            inputs = self.load_inputs(profile, first_day, last_day)
            calculation = self.calculate_for_profile(profile, first_day, last_day, inputs)
            payments = ledger.get(employee.id, {})

            row = PayrollSheetRow(
                employee_id=employee.id,
                employee_name=employee.name,
                department=employee.department,
                payment_type=profile.payment_type,
                currency=profile.currency,
                settles_weekly=profile.settles_weekly,
                calculation=calculation,
                amount_due=ZERO,
            )

            if profile.settles_weekly:
                row.weeks = self._week_settlements(profile, year, month, inputs, payments)
                due = [week.earned for week in row.weeks if week.status == SettlementStatus.DUE]
                row.amount_due = sum(due, ZERO)
                has_due = bool(due)
            else:
                row.is_settled = WHOLE_MONTH in payments
                has_due = not row.is_settled
                if has_due:
                    row.amount_due = calculation.net_salary

            if has_due:
                bucket = profile.currency.value
                totals[bucket] = totals.get(bucket, ZERO) + row.amount_due

            sheet.rows.append(row)

        sheet.totals_to_deliver = dict(totals)
        logger.debug(f"Built payroll sheet {year}-{month:02d}: {len(sheet.rows)} rows, totals {sheet.totals_to_deliver}")
        return sheet
