from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional
from hr_payroll.core.database import get_db
from hr_payroll.core.route_decorators import log_route_access
from hr_payroll.employees.models import Currency, PaymentType
from hr_payroll.payrolls.delivery import SalaryDeliveryService
from hr_payroll.payrolls.schemas import (
    PayrollCalculationRequest,
    PayrollCalculationResponse,
    PayrollSheetResponse,
    PaymentResponse,
    SalaryDeliveryRequest,
    SalaryDeliveryResponse,
    WeekPeriodResponse
)
from hr_payroll.payrolls.service import PayrollService

router = APIRouter(prefix="/payrolls", tags=["payrolls"])


@router.post("/calculate", response_model=PayrollCalculationResponse)
async def calculate_payroll(
    calculation_request: PayrollCalculationRequest,
    db: Session = Depends(get_db)
):
    """Calculate payroll for an employee over a date range without settling anything."""
    payroll_service = PayrollService(db)
    result = payroll_service.calculate(
        employee_id=calculation_request.employee_id,
        start_date=calculation_request.start_date,
        end_date=calculation_request.end_date
    )
    return PayrollCalculationResponse.model_validate(result)


@router.get("/weeks", response_model=List[WeekPeriodResponse])
async def get_weeks(
    year: int = Query(...),
    month: int = Query(...),
    db: Session = Depends(get_db)
):
    """Sunday-start weeks of a month, as used for weekly settlement."""
    payroll_service = PayrollService(db)
    return [WeekPeriodResponse.model_validate(week) for week in payroll_service.get_weeks(year, month)]


@router.get("/sheet", response_model=PayrollSheetResponse)
async def get_payroll_sheet(
    year: int = Query(...),
    month: int = Query(...),
    department: Optional[str] = Query(None),
    payment_type: Optional[PaymentType] = Query(None),
    currency: Optional[Currency] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Payroll sheet for a month with totals still to be delivered per currency."""
    payroll_service = PayrollService(db)
    sheet = payroll_service.build_payroll_sheet(
        year=year,
        month=month,
        department=department,
        payment_type=payment_type,
        currency=currency,
        search=search
    )
    return PayrollSheetResponse.model_validate(sheet)


@router.post("/deliver", response_model=SalaryDeliveryResponse)
@log_route_access
def deliver_salary(
    request: Request,
    delivery_request: SalaryDeliveryRequest,
    db: Session = Depends(get_db)
):
    """Deliver salary for a month or a week.

    Rejections (already settled, unknown advance, wrong week...) are returned
    with ``success: false`` and HTTP 200. A plain ``def`` so waiting on a busy
    delivery lock happens in the threadpool.
    """
    delivery_service = SalaryDeliveryService(db)
    result = delivery_service.deliver_salary(delivery_request)
    return SalaryDeliveryResponse(
        success=result.success,
        message=result.message,
        payment=PaymentResponse.model_validate(result.payment) if result.payment else None
    )


@router.get("/payments", response_model=List[PaymentResponse])
async def get_payments(
    employee_id: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db)
):
    """Payment ledger rows, newest period first."""
    payroll_service = PayrollService(db)
    return [PaymentResponse.model_validate(p) for p in payroll_service.list_payments(employee_id, year, month)]
