from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from hr_payroll.core.database import get_db
from hr_payroll.adjustments.models import AdvanceStatus
from hr_payroll.adjustments.schemas import (
    AdvanceStatusUpdate,
    BonusCreate,
    BonusResponse,
    DeductionCreate,
    DeductionResponse,
    SalaryAdvanceCreate,
    SalaryAdvanceResponse
)
from hr_payroll.adjustments.service import AdjustmentService

router = APIRouter(prefix="/adjustments", tags=["adjustments"])


@router.post("/bonuses", response_model=BonusResponse, status_code=status.HTTP_201_CREATED)
async def create_bonus(
    bonus_data: BonusCreate,
    db: Session = Depends(get_db)
):
    adjustment_service = AdjustmentService(db)
    return adjustment_service.create_bonus(bonus_data)


@router.post("/deductions", response_model=DeductionResponse, status_code=status.HTTP_201_CREATED)
async def create_deduction(
    deduction_data: DeductionCreate,
    db: Session = Depends(get_db)
):
    adjustment_service = AdjustmentService(db)
    return adjustment_service.create_deduction(deduction_data)


@router.post("/advances", response_model=SalaryAdvanceResponse, status_code=status.HTTP_201_CREATED)
async def create_advance(
    advance_data: SalaryAdvanceCreate,
    db: Session = Depends(get_db)
):
    """Request a salary advance (starts Pending)."""
    adjustment_service = AdjustmentService(db)
    return adjustment_service.create_advance(advance_data)


@router.get("/advances", response_model=List[SalaryAdvanceResponse])
async def get_advances(
    employee_id: Optional[int] = Query(None),
    advance_status: Optional[AdvanceStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    adjustment_service = AdjustmentService(db)
    return adjustment_service.get_advances(employee_id=employee_id, status=advance_status)


@router.patch("/advances/{advance_id}/status", response_model=SalaryAdvanceResponse)
async def update_advance_status(
    advance_id: int,
    status_data: AdvanceStatusUpdate,
    db: Session = Depends(get_db)
):
    """Approve or reject a pending advance."""
    adjustment_service = AdjustmentService(db)
    return adjustment_service.update_advance_status(advance_id, status_data)
