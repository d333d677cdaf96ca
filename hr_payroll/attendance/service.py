import logging
from typing import List, Optional
from datetime import date
from sqlalchemy.orm import Session
from hr_payroll.core.service_base import BaseService
from hr_payroll.core.exceptions import InvalidStatusTransitionError, ValidationError
from hr_payroll.core.validators import validate_date_range
from hr_payroll.attendance.models import (
    AttendanceRecord, LeaveRequest, LeaveStatus, LEAVE_TRANSITIONS
)
from hr_payroll.attendance.schemas import (
    AttendanceCreate, CheckoutUpdate, LeaveRequestCreate, LeaveStatusUpdate
)
from hr_payroll.employees.models import Employee

logger = logging.getLogger(__name__)


class AttendanceService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)

    def record_attendance(self, attendance_data: AttendanceCreate) -> AttendanceRecord:
        """Store one check-in (and optional check-out) for an employee."""
        self.get_or_404(Employee, attendance_data.employee_id, "Employee")

        record = AttendanceRecord(**attendance_data.model_dump())
        self.db.add(record)
        self.safe_commit("Error recording attendance")
        self.db.refresh(record)

        self.log_service_action(
            "record_attendance", "AttendanceRecord", record.id,
            {"employee_id": record.employee_id, "date": record.date.isoformat()}
        )
        return record

    def get_attendance(
        self,
        employee_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[AttendanceRecord]:
        """Get attendance records with optional filters."""
        if start_date and end_date:
            validate_date_range(start_date, end_date)

        query = self.db.query(AttendanceRecord)

        if employee_id is not None:
            query = query.filter(AttendanceRecord.employee_id == employee_id)
        if start_date:
            query = query.filter(AttendanceRecord.date >= start_date)
        if end_date:
            query = query.filter(AttendanceRecord.date <= end_date)

        query = query.order_by(AttendanceRecord.date.desc(), AttendanceRecord.check_in.desc())
        return self.paginate_query(query, skip, limit).all()

    def set_checkout(self, record_id: int, checkout_data: CheckoutUpdate) -> AttendanceRecord:
        record = self.get_or_404(AttendanceRecord, record_id, "Attendance record")

        if record.is_paid:
            raise ValidationError(
                detail="Attendance of a settled pay period cannot be changed",
                field="check_out",
                error_data={"attendance_id": record_id}
            )

        record.check_out = checkout_data.check_out
        self.safe_commit("Error updating attendance")
        self.db.refresh(record)

        self.log_service_action("set_checkout", "AttendanceRecord", record_id)
        return record

    def create_leave_request(self, leave_data: LeaveRequestCreate) -> LeaveRequest:
        """File a leave request; it starts Pending."""
        self.get_or_404(Employee, leave_data.employee_id, "Employee")
        validate_date_range(leave_data.start_date, leave_data.end_date)

        leave = LeaveRequest(status=LeaveStatus.PENDING, **leave_data.model_dump())
        self.db.add(leave)
        self.safe_commit("Error creating leave request")
        self.db.refresh(leave)

        self.log_service_action(
            "create_leave_request", "LeaveRequest", leave.id,
            {"employee_id": leave.employee_id, "leave_type": leave.type.value}
        )
        return leave

    def get_leave_requests(
        self,
        employee_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None
    ) -> List[LeaveRequest]:
        query = self.db.query(LeaveRequest)
        if employee_id is not None:
            query = query.filter(LeaveRequest.employee_id == employee_id)
        if status:
            query = query.filter(LeaveRequest.status == status)
        return query.order_by(LeaveRequest.start_date.desc()).all()

    def update_leave_status(self, leave_id: int, status_data: LeaveStatusUpdate) -> LeaveRequest:
        """Approve or reject a pending leave request."""
        leave = self.get_or_404(LeaveRequest, leave_id, "Leave request")

        current = LeaveStatus(leave.status)
        if status_data.status not in LEAVE_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(
                resource_type="Leave request",
                current_status=current.value,
                requested_status=status_data.status.value
            )

        leave.status = status_data.status
        leave.status_reason = status_data.reason
        self.safe_commit("Error updating leave request")
        self.db.refresh(leave)

        self.log_service_action(
            "update_leave_status", "LeaveRequest", leave_id,
            {"from_status": current.value, "to_status": status_data.status.value}
        )
        return leave
