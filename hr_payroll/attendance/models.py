import enum
from sqlalchemy import Column, String, Boolean, Date, DateTime, ForeignKey, Integer, Time, Enum, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hr_payroll.core.database import Base


class AttendanceSource(str, enum.Enum):
    MANUAL = "manual"
    DEVICE = "device"


class LeaveType(str, enum.Enum):
    ANNUAL = "Annual"
    SICK = "Sick"
    EMERGENCY = "Emergency"
    UNPAID = "Unpaid"


class LeaveStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class AttendanceRecord(Base):
    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    check_in = Column(Time, nullable=False)
    check_out = Column(Time)  # NULL while the shift is still open
    source = Column(Enum(AttendanceSource), nullable=False, default=AttendanceSource.MANUAL)
    is_paid = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    employee = relationship("Employee")


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(LeaveType), nullable=False)
    status = Column(Enum(LeaveStatus), nullable=False, default=LeaveStatus.PENDING)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # inclusive
    deduct_from_salary = Column(Boolean, nullable=False, default=False)
    reason = Column(Text)
    status_reason = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    employee = relationship("Employee")


LEAVE_TRANSITIONS = {
    LeaveStatus.PENDING: {LeaveStatus.APPROVED, LeaveStatus.REJECTED},
    LeaveStatus.APPROVED: set(),
    LeaveStatus.REJECTED: set(),
}
