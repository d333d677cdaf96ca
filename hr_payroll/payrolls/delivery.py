"""
Salary delivery: the only operation that moves a ledger cell from unsettled to settled.

A delivery writes one Payment row for (employee, year, month, week), marks the
operator-selected advances Paid and flags the period's attendance as paid, all
in one commit. Every rejection comes back as a ``DeliveryResult`` instead of
an exception; only storage failures propagate.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hr_payroll.adjustments.models import AdvanceStatus
from hr_payroll.core.exceptions import DatabaseError, DeliveryLockError
from hr_payroll.core.logging_config import DeliveryOperationLogger
from hr_payroll.core.redis_service import DeliveryLockService, delivery_lock_service
from hr_payroll.core.service_base import BaseService
from hr_payroll.employees.models import Currency
from hr_payroll.payrolls.calculator import quantize
from hr_payroll.payrolls.models import WHOLE_MONTH, Payment
from hr_payroll.payrolls.pay_profile import EmployeePayProfile, to_decimal
from hr_payroll.payrolls.periods import find_week, format_period, month_bounds
from hr_payroll.payrolls.repositories import PayrollRepositories
from hr_payroll.payrolls.schemas import SalaryDeliveryRequest
from hr_payroll.payrolls.service import PayrollService

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class DeliveryResult:
    success: bool
    message: str
    payment: Optional[Payment] = None


class DeliveryRejected(Exception):
    """Raised inside a delivery to abort it with a user-facing message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def ledger_key(employee_id: int, year: int, month: int, week_number: int) -> str:
    return f"{employee_id}:{year}:{month}:{week_number}"


class SalaryDeliveryService(BaseService):
    def __init__(
        self,
        db: Session,
        repositories: Optional[PayrollRepositories] = None,
        lock_service: Optional[DeliveryLockService] = None,
        payroll_service: Optional[PayrollService] = None
    ):
        super().__init__(db)
        self.repositories = repositories or PayrollRepositories.from_session(db)
        self.lock_service = lock_service or delivery_lock_service
        self.payroll_service = payroll_service or PayrollService(db, self.repositories)

    def deliver_salary(self, request: SalaryDeliveryRequest) -> DeliveryResult:
        """Settle one (employee, year, month[, week]) cell of the payment ledger."""
        period = format_period(request.year, request.month, request.week_number)
        week_number = request.week_number or WHOLE_MONTH
        key = ledger_key(request.employee_id, request.year, request.month, week_number)

        with DeliveryOperationLogger("deliver_salary", request.employee_id, period) as operation:
            try:
                with self.lock_service.hold(key):
                    result = self._deliver(request, period)
            except DeliveryLockError:
                result = DeliveryResult(
                    success=False,
                    message=f"Salary for {period} is already settled or being delivered"
                )
            except DeliveryRejected as e:
                result = DeliveryResult(success=False, message=e.message)

            operation.set_success(result.success)
            operation.add_detail("message", result.message)
            if result.payment is not None:
                operation.add_detail("net", f"{result.payment.net_amount} {result.payment.currency.value}")
            return result

    def _settlement_range(self, profile: EmployeePayProfile, request: SalaryDeliveryRequest) -> Tuple[date, date]:
        if profile.settles_weekly:
            if request.week_number is None:
                raise DeliveryRejected(f"{profile.employee_name} is paid weekly; a week number is required")
            week = find_week(request.year, request.month, request.week_number)
            if week is None:
                raise DeliveryRejected(
                    f"Week {request.week_number} does not exist in {request.year}-{request.month:02d}"
                )
            return week.start_date, week.end_date

        if request.week_number is not None:
            raise DeliveryRejected(f"{profile.employee_name} is paid monthly; a week number cannot be given")
        return month_bounds(request.year, request.month)

    def _selected_advances(self, profile: EmployeePayProfile, advance_ids: List[int]) -> List:
        if not advance_ids:
            return []

        found = {advance.id: advance for advance in self.repositories.advances.get_many(advance_ids)}
        selected = []
        for advance_id in advance_ids:
            advance = found.get(advance_id)
            if advance is None or advance.employee_id != profile.employee_id:
                raise DeliveryRejected(f"Salary advance {advance_id} not found for this employee")
            if AdvanceStatus(advance.status) != AdvanceStatus.APPROVED:
                raise DeliveryRejected(
                    f"Salary advance {advance_id} is {AdvanceStatus(advance.status).value}, not Approved"
                )
            if Currency(advance.currency) != profile.currency:
                raise DeliveryRejected(
                    f"Salary advance {advance_id} is in {Currency(advance.currency).value}, "
                    f"salary is paid in {profile.currency.value}"
                )
            selected.append(advance)
        return selected

    def _deliver(self, request: SalaryDeliveryRequest, period: str) -> DeliveryResult:
        repos = self.repositories
        profile = repos.employees.get_pay_profile(request.employee_id)
        if profile is None:
            raise DeliveryRejected(f"Employee {request.employee_id} not found")

        start_date, end_date = self._settlement_range(profile, request)
        week_number = request.week_number if profile.settles_weekly else WHOLE_MONTH

        if repos.payments.find(profile.employee_id, request.year, request.month, week_number) is not None:
            raise DeliveryRejected(f"Salary for {period} is already settled")

        # Order preserved, duplicates dropped
        advance_ids = list(dict.fromkeys(request.advance_ids_to_deduct))
        advances = self._selected_advances(profile, advance_ids)
        advances_deducted = quantize(sum((to_decimal(a.amount) for a in advances), ZERO))

        calculation = self.payroll_service.calculate_for_profile(profile, start_date, end_date)
        if profile.settles_weekly:
            # a week pays the flat weekly amount, whatever hours or bonuses fell inside it
            gross = quantize(profile.period_salary)
        else:
            gross = calculation.gross_salary
        net = gross - calculation.total_deductions - advances_deducted

        try:
            if repos.advances.mark_paid(profile.employee_id, advance_ids) != len(advance_ids):
                self.safe_rollback()
                raise DeliveryRejected("Selected salary advances changed while delivering; nothing was paid")

            payment = repos.payments.add(Payment(
                employee_id=profile.employee_id,
                year=request.year,
                month=request.month,
                week_number=week_number,
                payment_type=profile.payment_type,
                currency=profile.currency,
                gross_amount=gross,
                advances_deducted=advances_deducted,
                net_amount=net,
                payment_date=datetime.now(timezone.utc),
            ))
            repos.attendance.mark_paid(profile.employee_id, start_date, end_date)
            self.db.commit()
        except IntegrityError as e:
            self.safe_rollback()
            logger.warning(f"Ledger conflict delivering {period} for employee {profile.employee_id}: {str(e.orig)}")
            raise DeliveryRejected(f"Salary for {period} is already settled")
        except SQLAlchemyError as e:
            self.safe_rollback()
            logger.error(f"Database error delivering {period} for employee {profile.employee_id}: {str(e)}")
            raise DatabaseError(
                detail="Salary delivery failed; nothing was recorded",
                operation="deliver_salary",
                error_data={"employee_id": profile.employee_id, "period": period}
            )

        self.db.refresh(payment)
        self.log_service_action(
            "deliver_salary",
            resource_type="Payment",
            resource_id=payment.id,
            extra_data={"employee_id": profile.employee_id, "period": period, "advances": advance_ids}
        )

        message = f"Salary delivered to {profile.employee_name} for {period}: {net} {profile.currency.value}"
        if advances:
            message += f" after {advances_deducted} in advances"
        return DeliveryResult(success=True, message=message, payment=payment)
