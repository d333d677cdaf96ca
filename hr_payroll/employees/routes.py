from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from hr_payroll.core.database import get_db
from hr_payroll.employees.models import EmployeeStatus, PaymentType
from hr_payroll.employees.schemas import (
    EmployeeCreate,
    EmployeeUpdate,
    EmployeeResponse,
    EmployeeDetailResponse,
    ManufacturingProfileUpdate,
    ManufacturingProfileResponse,
    ScheduleHistoryCreate,
    ScheduleHistoryResponse
)
from hr_payroll.employees.service import EmployeeService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.post("/", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_data: EmployeeCreate,
    db: Session = Depends(get_db)
):
    """Create a new employee."""
    employee_service = EmployeeService(db)
    return employee_service.create_employee(employee_data)


@router.get("/", response_model=List[EmployeeResponse])
async def get_employees(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    status: Optional[EmployeeStatus] = Query(None),
    department: Optional[str] = Query(None),
    payment_type: Optional[PaymentType] = Query(None),
    db: Session = Depends(get_db)
):
    """Get all employees with optional filters."""
    employee_service = EmployeeService(db)
    return employee_service.get_employees(
        skip=skip, limit=limit, status=status, department=department, payment_type=payment_type
    )


@router.get("/{employee_id}", response_model=EmployeeDetailResponse)
async def get_employee(
    employee_id: int,
    db: Session = Depends(get_db)
):
    """Get employee by ID, including flat-salary terms and schedule history."""
    employee_service = EmployeeService(db)
    return employee_service.get_employee(employee_id)


@router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: int,
    employee_data: EmployeeUpdate,
    db: Session = Depends(get_db)
):
    """Update employee information."""
    employee_service = EmployeeService(db)
    return employee_service.update_employee(employee_id, employee_data)


@router.put("/{employee_id}/manufacturing", response_model=ManufacturingProfileResponse)
async def set_manufacturing_profile(
    employee_id: int,
    profile_data: ManufacturingProfileUpdate,
    db: Session = Depends(get_db)
):
    """Put an employee on the flat-salary manufacturing roster."""
    employee_service = EmployeeService(db)
    return employee_service.set_manufacturing_profile(employee_id, profile_data)


@router.delete("/{employee_id}/manufacturing", status_code=status.HTTP_204_NO_CONTENT)
async def remove_manufacturing_profile(
    employee_id: int,
    db: Session = Depends(get_db)
):
    """Take an employee off the flat-salary roster."""
    employee_service = EmployeeService(db)
    employee_service.remove_manufacturing_profile(employee_id)


@router.post(
    "/{employee_id}/schedule-history",
    response_model=ScheduleHistoryResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_schedule_history(
    employee_id: int,
    history_data: ScheduleHistoryCreate,
    db: Session = Depends(get_db)
):
    """Record a change of agreed daily hours effective from a date."""
    employee_service = EmployeeService(db)
    return employee_service.add_schedule_history(employee_id, history_data)
