from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import date, datetime, time
from hr_payroll.attendance.models import AttendanceSource, LeaveStatus, LeaveType


class AttendanceCreate(BaseModel):
    employee_id: int
    date: date
    check_in: time
    check_out: Optional[time] = None
    source: AttendanceSource = AttendanceSource.MANUAL


class CheckoutUpdate(BaseModel):
    check_out: time


class AttendanceResponse(BaseModel):
    id: int
    employee_id: int
    date: date
    check_in: time
    check_out: Optional[time]
    source: AttendanceSource
    is_paid: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class LeaveRequestCreate(BaseModel):
    employee_id: int
    type: LeaveType
    start_date: date
    end_date: date
    deduct_from_salary: bool = False
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_span(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class LeaveStatusUpdate(BaseModel):
    status: LeaveStatus
    reason: Optional[str] = Field(None, max_length=255)


class LeaveRequestResponse(BaseModel):
    id: int
    employee_id: int
    type: LeaveType
    status: LeaveStatus
    start_date: date
    end_date: date
    deduct_from_salary: bool
    reason: Optional[str]
    status_reason: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
