import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENABLE_REDIS_LOCKS", "false")
os.environ.setdefault("PAYROLL_DEDUCT_ABSENCES", "false")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date, time
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hr_payroll.main import app
from hr_payroll.core.database import Base, get_db
from hr_payroll.adjustments.models import AdvanceStatus, Bonus, Deduction, SalaryAdvance
from hr_payroll.attendance.models import AttendanceRecord, LeaveRequest, LeaveStatus, LeaveType
from hr_payroll.employees.models import Currency, Employee, ManufacturingStaff, PaymentType


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_employee(db_session):
    def create(**overrides):
        data = {
            "name": "Rami Haddad",
            "payment_type": PaymentType.MONTHLY,
            "salary_currency": Currency.USD,
            "monthly_salary": Decimal("3000"),
            "overtime_rate": Decimal("15"),
            "agreed_daily_hours": Decimal("8"),
            "workdays": [0, 1, 2, 3, 4],
        }
        flat = overrides.pop("flat", None)
        data.update(overrides)

        employee = Employee(**data)
        db_session.add(employee)
        db_session.flush()
        if flat is not None:
            db_session.add(ManufacturingStaff(employee_id=employee.id, **flat))
        db_session.commit()
        db_session.refresh(employee)
        return employee

    return create


@pytest.fixture
def make_advance(db_session):
    def create(employee, amount, currency=Currency.USD, status=AdvanceStatus.APPROVED, on=date(2024, 3, 1)):
        advance = SalaryAdvance(
            employee_id=employee.id,
            amount=Decimal(amount),
            currency=currency,
            date=on,
            status=status,
        )
        db_session.add(advance)
        db_session.commit()
        db_session.refresh(advance)
        return advance

    return create


@pytest.fixture
def add_attendance(db_session):
    def create(employee, on, check_in=time(8, 0), check_out=time(16, 0)):
        record = AttendanceRecord(employee_id=employee.id, date=on, check_in=check_in, check_out=check_out)
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return create


@pytest.fixture
def add_leave(db_session):
    def create(employee, start, end, leave_type=LeaveType.UNPAID, status=LeaveStatus.APPROVED, deduct=False):
        leave = LeaveRequest(
            employee_id=employee.id,
            type=leave_type,
            status=status,
            start_date=start,
            end_date=end,
            deduct_from_salary=deduct,
        )
        db_session.add(leave)
        db_session.commit()
        return leave

    return create


@pytest.fixture
def add_bonus(db_session):
    def create(employee, amount, currency=Currency.USD, on=date(2024, 3, 10)):
        bonus = Bonus(employee_id=employee.id, amount=Decimal(amount), currency=currency, date=on)
        db_session.add(bonus)
        db_session.commit()
        return bonus

    return create


@pytest.fixture
def add_deduction(db_session):
    def create(employee, amount, currency=Currency.USD, on=date(2024, 3, 10)):
        deduction = Deduction(employee_id=employee.id, amount=Decimal(amount), currency=currency, date=on)
        db_session.add(deduction)
        db_session.commit()
        return deduction

    return create
