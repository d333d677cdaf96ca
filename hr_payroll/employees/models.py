import enum
from sqlalchemy import (
    Column, String, Boolean, Date, DateTime, ForeignKey, Integer, Numeric, Time, JSON, Enum
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hr_payroll.core.database import Base


class PaymentType(str, enum.Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    HOURLY = "hourly"


class Currency(str, enum.Enum):
    SYP = "SYP"
    USD = "USD"
    TRY = "TRY"


class EmployeeStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"


class FlatSalaryPeriod(str, enum.Enum):
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True)
    department = Column(String(100))
    status = Column(Enum(EmployeeStatus), nullable=False, default=EmployeeStatus.ACTIVE)

    # Pay terms (amounts are in salary_currency)
    payment_type = Column(Enum(PaymentType), nullable=False, default=PaymentType.MONTHLY)
    salary_currency = Column(Enum(Currency), nullable=False, default=Currency.SYP)
    monthly_salary = Column(Numeric(12, 2), nullable=False, default=0)
    weekly_salary = Column(Numeric(12, 2), nullable=False, default=0)
    hourly_rate = Column(Numeric(12, 2), nullable=False, default=0)
    overtime_rate = Column(Numeric(12, 2), nullable=False, default=0)
    lateness_deduction_rate = Column(Numeric(12, 2), nullable=False, default=0)  # per late minute
    calculate_salary_by_30_days = Column(Boolean, nullable=False, default=False)

    # Schedule
    agreed_daily_hours = Column(Numeric(5, 2), nullable=False, default=8)
    workdays = Column(JSON)  # day indexes, 0 = Sunday
    check_in_start_time = Column(Time)
    check_in_end_time = Column(Time)
    check_out_start_time = Column(Time)
    check_out_end_time = Column(Time)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    manufacturing_profile = relationship(
        "ManufacturingStaff", back_populates="employee", uselist=False, cascade="all, delete-orphan"
    )
    schedule_history = relationship(
        "WorkScheduleHistory", back_populates="employee", cascade="all, delete-orphan",
        order_by="WorkScheduleHistory.start_date"
    )


class ManufacturingStaff(Base):
    """Flat-salary roster; membership exempts the employee from lateness and overtime."""
    __tablename__ = "manufacturing_staff"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, unique=True)
    flat_salary = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(Enum(Currency), nullable=False, default=Currency.SYP)
    period = Column(Enum(FlatSalaryPeriod), nullable=False, default=FlatSalaryPeriod.MONTHLY)

    # Relationships
    employee = relationship("Employee", back_populates="manufacturing_profile")


class WorkScheduleHistory(Base):
    __tablename__ = "work_schedule_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    hours = Column(Numeric(5, 2), nullable=False)
    start_date = Column(Date, nullable=False)

    # Relationships
    employee = relationship("Employee", back_populates="schedule_history")
