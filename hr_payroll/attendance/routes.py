from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from hr_payroll.core.database import get_db
from hr_payroll.attendance.models import LeaveStatus
from hr_payroll.attendance.schemas import (
    AttendanceCreate,
    AttendanceResponse,
    CheckoutUpdate,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveStatusUpdate
)
from hr_payroll.attendance.service import AttendanceService

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("/", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
async def record_attendance(
    attendance_data: AttendanceCreate,
    db: Session = Depends(get_db)
):
    """Record a check-in, optionally with its check-out."""
    attendance_service = AttendanceService(db)
    return attendance_service.record_attendance(attendance_data)


@router.get("/", response_model=List[AttendanceResponse])
async def get_attendance(
    employee_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    """Get attendance records with optional filters."""
    attendance_service = AttendanceService(db)
    return attendance_service.get_attendance(
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit
    )


@router.patch("/{attendance_id}/checkout", response_model=AttendanceResponse)
async def set_checkout(
    attendance_id: int,
    checkout_data: CheckoutUpdate,
    db: Session = Depends(get_db)
):
    """Close an open shift."""
    attendance_service = AttendanceService(db)
    return attendance_service.set_checkout(attendance_id, checkout_data)


@router.post("/leaves", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_request(
    leave_data: LeaveRequestCreate,
    db: Session = Depends(get_db)
):
    attendance_service = AttendanceService(db)
    return attendance_service.create_leave_request(leave_data)


@router.get("/leaves", response_model=List[LeaveRequestResponse])
async def get_leave_requests(
    employee_id: Optional[int] = Query(None),
    leave_status: Optional[LeaveStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    attendance_service = AttendanceService(db)
    return attendance_service.get_leave_requests(employee_id=employee_id, status=leave_status)


@router.patch("/leaves/{leave_id}/status", response_model=LeaveRequestResponse)
async def update_leave_status(
    leave_id: int,
    status_data: LeaveStatusUpdate,
    db: Session = Depends(get_db)
):
    """Approve or reject a pending leave request."""
    attendance_service = AttendanceService(db)
    return attendance_service.update_leave_status(leave_id, status_data)
