import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from hr_payroll.core.service_base import BaseService
from hr_payroll.core.exceptions import InvalidStatusTransitionError, ValidationError
from hr_payroll.adjustments.models import (
    ADVANCE_TRANSITIONS, AdvanceStatus, Bonus, Deduction, SalaryAdvance
)
from hr_payroll.adjustments.schemas import (
    AdvanceStatusUpdate, BonusCreate, DeductionCreate, SalaryAdvanceCreate
)
from hr_payroll.employees.models import Employee

logger = logging.getLogger(__name__)


class AdjustmentService(BaseService):
    """Bonuses, manual deductions and salary advances."""

    def __init__(self, db: Session):
        super().__init__(db)

    def _create(self, model_class, data, action: str):
        self.get_or_404(Employee, data.employee_id, "Employee")

        item = model_class(**data.model_dump())
        self.db.add(item)
        self.safe_commit(f"Error creating {model_class.__name__}")
        self.db.refresh(item)

        self.log_service_action(
            action, model_class.__name__, item.id,
            {"employee_id": item.employee_id, "amount": str(item.amount), "currency": item.currency.value}
        )
        return item

    def create_bonus(self, bonus_data: BonusCreate) -> Bonus:
        return self._create(Bonus, bonus_data, "create_bonus")

    def create_deduction(self, deduction_data: DeductionCreate) -> Deduction:
        return self._create(Deduction, deduction_data, "create_deduction")

    def create_advance(self, advance_data: SalaryAdvanceCreate) -> SalaryAdvance:
        """Request a salary advance; it starts Pending."""
        return self._create(SalaryAdvance, advance_data, "create_advance")

    def get_advances(
        self,
        employee_id: Optional[int] = None,
        status: Optional[AdvanceStatus] = None
    ) -> List[SalaryAdvance]:
        query = self.db.query(SalaryAdvance)
        if employee_id is not None:
            query = query.filter(SalaryAdvance.employee_id == employee_id)
        if status:
            query = query.filter(SalaryAdvance.status == status)
        return query.order_by(SalaryAdvance.date.desc(), SalaryAdvance.id.desc()).all()

    def update_advance_status(self, advance_id: int, status_data: AdvanceStatusUpdate) -> SalaryAdvance:
        """Approve or reject an advance.

        Paid is only reached by delivering a salary that deducts the advance.
        """
        advance = self.get_or_404(SalaryAdvance, advance_id, "Salary advance")
        current = AdvanceStatus(advance.status)
        requested = status_data.status

        if requested == AdvanceStatus.PAID:
            raise ValidationError(
                detail="Advances are marked Paid by salary delivery only",
                field="status",
                value=requested.value
            )

        if requested not in ADVANCE_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(
                resource_type="Salary advance",
                current_status=current.value,
                requested_status=requested.value
            )

        advance.status = requested
        advance.status_reason = status_data.reason
        self.safe_commit("Error updating salary advance")
        self.db.refresh(advance)

        self.log_service_action(
            "update_advance_status", "SalaryAdvance", advance_id,
            {"from_status": current.value, "to_status": requested.value}
        )
        return advance
