from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import date, datetime, time
from decimal import Decimal

from hr_payroll.employees.models import Currency, EmployeeStatus, FlatSalaryPeriod, PaymentType


def _check_workdays(value):
    if value is None:
        return value
    invalid = [day for day in value if day < 0 or day > 6]
    if invalid:
        raise ValueError("workdays must be day indexes between 0 (Sunday) and 6 (Saturday)")
    return sorted(set(value))


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    department: Optional[str] = None
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    payment_type: PaymentType = PaymentType.MONTHLY
    salary_currency: Currency = Currency.SYP
    monthly_salary: Decimal = Field(Decimal("0"), ge=0)
    weekly_salary: Decimal = Field(Decimal("0"), ge=0)
    hourly_rate: Decimal = Field(Decimal("0"), ge=0)
    overtime_rate: Decimal = Field(Decimal("0"), ge=0)
    lateness_deduction_rate: Decimal = Field(Decimal("0"), ge=0)
    calculate_salary_by_30_days: bool = False
    agreed_daily_hours: Decimal = Field(Decimal("8"), gt=0, le=24)
    workdays: Optional[List[int]] = None
    check_in_start_time: Optional[time] = None
    check_in_end_time: Optional[time] = None
    check_out_start_time: Optional[time] = None
    check_out_end_time: Optional[time] = None

    @field_validator("workdays")
    @classmethod
    def validate_workdays(cls, value):
        return _check_workdays(value)


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    department: Optional[str] = None
    status: Optional[EmployeeStatus] = None
    payment_type: Optional[PaymentType] = None
    salary_currency: Optional[Currency] = None
    monthly_salary: Optional[Decimal] = Field(None, ge=0)
    weekly_salary: Optional[Decimal] = Field(None, ge=0)
    hourly_rate: Optional[Decimal] = Field(None, ge=0)
    overtime_rate: Optional[Decimal] = Field(None, ge=0)
    lateness_deduction_rate: Optional[Decimal] = Field(None, ge=0)
    calculate_salary_by_30_days: Optional[bool] = None
    agreed_daily_hours: Optional[Decimal] = Field(None, gt=0, le=24)
    workdays: Optional[List[int]] = None
    check_in_start_time: Optional[time] = None
    check_in_end_time: Optional[time] = None
    check_out_start_time: Optional[time] = None
    check_out_end_time: Optional[time] = None

    @field_validator("workdays")
    @classmethod
    def validate_workdays(cls, value):
        return _check_workdays(value)


class ManufacturingProfileUpdate(BaseModel):
    flat_salary: Decimal = Field(..., ge=0)
    currency: Currency = Currency.SYP
    period: FlatSalaryPeriod = FlatSalaryPeriod.MONTHLY


class ManufacturingProfileResponse(ManufacturingProfileUpdate):
    id: int
    employee_id: int

    class Config:
        from_attributes = True


class ScheduleHistoryCreate(BaseModel):
    hours: Decimal = Field(..., gt=0, le=24)
    start_date: date


class ScheduleHistoryResponse(ScheduleHistoryCreate):
    id: int
    employee_id: int

    class Config:
        from_attributes = True


class EmployeeResponse(BaseModel):
    id: int
    name: str
    email: Optional[str]
    department: Optional[str]
    status: EmployeeStatus
    payment_type: PaymentType
    salary_currency: Currency
    monthly_salary: Decimal
    weekly_salary: Decimal
    hourly_rate: Decimal
    overtime_rate: Decimal
    lateness_deduction_rate: Decimal
    calculate_salary_by_30_days: bool
    agreed_daily_hours: Decimal
    workdays: Optional[List[int]]
    check_in_start_time: Optional[time]
    check_in_end_time: Optional[time]
    check_out_start_time: Optional[time]
    check_out_end_time: Optional[time]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class EmployeeDetailResponse(EmployeeResponse):
    manufacturing_profile: Optional[ManufacturingProfileResponse] = None
    schedule_history: List[ScheduleHistoryResponse] = []
