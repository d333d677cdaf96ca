import enum
from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Integer, Numeric, Enum, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hr_payroll.core.database import Base
from hr_payroll.employees.models import Currency


class AdvanceStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    PAID = "Paid"


# Paid is reachable only through salary delivery
ADVANCE_TRANSITIONS = {
    AdvanceStatus.PENDING: {AdvanceStatus.APPROVED, AdvanceStatus.REJECTED},
    AdvanceStatus.APPROVED: {AdvanceStatus.PAID},
    AdvanceStatus.REJECTED: set(),
    AdvanceStatus.PAID: set(),
}


class Bonus(Base):
    __tablename__ = "bonuses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(Enum(Currency), nullable=False)
    date = Column(Date, nullable=False)
    reason = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee")


class Deduction(Base):
    __tablename__ = "deductions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(Enum(Currency), nullable=False)
    date = Column(Date, nullable=False)
    reason = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee")


class SalaryAdvance(Base):
    __tablename__ = "salary_advances"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(Enum(Currency), nullable=False, default=Currency.SYP)
    date = Column(Date, nullable=False)
    reason = Column(Text)
    status = Column(Enum(AdvanceStatus), nullable=False, default=AdvanceStatus.PENDING, index=True)
    status_reason = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employee = relationship("Employee")
