from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal

from hr_payroll.adjustments.models import AdvanceStatus
from hr_payroll.employees.models import Currency, PaymentType
from hr_payroll.payrolls.models import WHOLE_MONTH
from hr_payroll.payrolls.service import SettlementStatus


class PayrollCalculationRequest(BaseModel):
    employee_id: int
    start_date: date
    end_date: date


class OutstandingAdvanceResponse(BaseModel):
    id: int
    amount: Decimal
    currency: Currency
    date: date
    reason: Optional[str] = None
    status: AdvanceStatus

    class Config:
        from_attributes = True


class PayrollCalculationResponse(BaseModel):
    employee_id: int
    currency: Currency
    start_date: date
    end_date: date
    is_flat_salary: bool
    base_salary: Decimal
    overtime_pay: Decimal
    bonuses_total: Decimal
    gross_salary: Decimal
    lateness_deductions: Decimal
    unpaid_leave_deductions: Decimal
    absence_deductions: Decimal
    manual_deductions_total: Decimal
    advances_total: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    total_worked_hours: Decimal
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    total_late_minutes: Decimal
    unpaid_leave_days: int
    absent_days: int
    outstanding_advances: List[OutstandingAdvanceResponse] = []

    class Config:
        from_attributes = True


class WeekPeriodResponse(BaseModel):
    week_number: int
    start_date: date
    end_date: date

    class Config:
        from_attributes = True


class WeekSettlementResponse(WeekPeriodResponse):
    status: SettlementStatus
    earned: Decimal
    total_hours_worked: Decimal
    payment_id: Optional[int] = None


class PayrollSheetRowResponse(BaseModel):
    employee_id: int
    employee_name: str
    department: Optional[str]
    payment_type: PaymentType
    currency: Currency
    settles_weekly: bool
    amount_due: Decimal
    is_settled: Optional[bool] = None
    weeks: Optional[List[WeekSettlementResponse]] = None
    calculation: PayrollCalculationResponse

    class Config:
        from_attributes = True


class PayrollSheetResponse(BaseModel):
    year: int
    month: int
    rows: List[PayrollSheetRowResponse]
    totals_to_deliver: Dict[str, Decimal]

    class Config:
        from_attributes = True


class SalaryDeliveryRequest(BaseModel):
    employee_id: int
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    week_number: Optional[int] = Field(None, ge=1, le=6)
    advance_ids_to_deduct: List[int] = []


class PaymentResponse(BaseModel):
    id: int
    employee_id: int
    year: int
    month: int
    week_number: Optional[int] = None
    payment_type: PaymentType
    currency: Currency
    gross_amount: Decimal
    advances_deducted: Decimal
    net_amount: Decimal
    payment_date: datetime

    class Config:
        from_attributes = True

    @field_validator("week_number", mode="before")
    @classmethod
    def whole_month_as_null(cls, value):
        return None if value == WHOLE_MONTH else value


class SalaryDeliveryResponse(BaseModel):
    success: bool
    message: str
    payment: Optional[PaymentResponse] = None

    class Config:
        from_attributes = True
