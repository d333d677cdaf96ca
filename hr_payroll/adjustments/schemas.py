from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from hr_payroll.adjustments.models import AdvanceStatus
from hr_payroll.employees.models import Currency


class AdjustmentCreate(BaseModel):
    employee_id: int
    amount: Decimal = Field(..., gt=0)
    currency: Currency
    date: date
    reason: Optional[str] = None


class BonusCreate(AdjustmentCreate):
    pass


class DeductionCreate(AdjustmentCreate):
    pass


class SalaryAdvanceCreate(AdjustmentCreate):
    pass


class AdvanceStatusUpdate(BaseModel):
    status: AdvanceStatus
    reason: Optional[str] = Field(None, max_length=255)


class AdjustmentResponse(BaseModel):
    id: int
    employee_id: int
    amount: Decimal
    currency: Currency
    date: date
    reason: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class BonusResponse(AdjustmentResponse):
    pass


class DeductionResponse(AdjustmentResponse):
    pass


class SalaryAdvanceResponse(AdjustmentResponse):
    status: AdvanceStatus
    status_reason: Optional[str]
    updated_at: Optional[datetime]
