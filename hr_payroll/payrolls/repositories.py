"""
Typed repositories the payroll core reads from and writes through.

Each protocol exposes only what calculation and delivery need. The SQLAlchemy
implementations share one ``Session``; none of them commits, the caller owns
the transaction.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Protocol, Sequence

from sqlalchemy import or_, update
from sqlalchemy.orm import Session, selectinload

from hr_payroll.adjustments.models import AdvanceStatus, Bonus, Deduction, SalaryAdvance
from hr_payroll.attendance.models import AttendanceRecord, LeaveRequest, LeaveStatus
from hr_payroll.employees.models import Employee, EmployeeStatus, PaymentType
from hr_payroll.payrolls.models import Payment
from hr_payroll.payrolls.pay_profile import EmployeePayProfile, resolve_pay_profile


class EmployeeRepository(Protocol):
    def get(self, employee_id: int) -> Optional[Employee]: ...

    def get_pay_profile(self, employee_id: int) -> Optional[EmployeePayProfile]: ...

    def list_roster(
        self,
        department: Optional[str] = None,
        payment_type: Optional[PaymentType] = None,
        search: Optional[str] = None
    ) -> List[Employee]: ...


class AttendanceRepository(Protocol):
    def list_for_range(self, employee_id: int, start_date: date, end_date: date) -> List[AttendanceRecord]: ...

    def list_approved_leaves(self, employee_id: int, start_date: date, end_date: date) -> List[LeaveRequest]: ...

    def mark_paid(self, employee_id: int, start_date: date, end_date: date) -> int: ...


class AdjustmentRepository(Protocol):
    def list_bonuses(self, employee_id: int, start_date: date, end_date: date) -> List[Bonus]: ...

    def list_deductions(self, employee_id: int, start_date: date, end_date: date) -> List[Deduction]: ...


class SalaryAdvanceRepository(Protocol):
    def list_outstanding(self, employee_id: int) -> List[SalaryAdvance]: ...

    def get_many(self, advance_ids: Sequence[int]) -> List[SalaryAdvance]: ...

    def mark_paid(self, employee_id: int, advance_ids: Sequence[int]) -> int: ...


class PaymentLedgerRepository(Protocol):
    def find(self, employee_id: int, year: int, month: int, week_number: int) -> Optional[Payment]: ...

    def list_for_period(self, year: int, month: int, employee_ids: Optional[Sequence[int]] = None) -> List[Payment]: ...

    def list_payments(
        self,
        employee_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None
    ) -> List[Payment]: ...

    def add(self, payment: Payment) -> Payment: ...


class SqlEmployeeRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, employee_id: int) -> Optional[Employee]:
        return self.db.get(Employee, employee_id)

    def get_pay_profile(self, employee_id: int) -> Optional[EmployeePayProfile]:
        employee = self.get(employee_id)
        if employee is None:
            return None
        return self.to_pay_profile(employee)

    @staticmethod
    def to_pay_profile(employee: Employee) -> EmployeePayProfile:
        return resolve_pay_profile(
            employee,
            manufacturing=employee.manufacturing_profile,
            schedule_history=employee.schedule_history,
        )

    def list_roster(
        self,
        department: Optional[str] = None,
        payment_type: Optional[PaymentType] = None,
        search: Optional[str] = None
    ) -> List[Employee]:
        query = self.db.query(Employee).options(
            selectinload(Employee.manufacturing_profile),
            selectinload(Employee.schedule_history),
        ).filter(Employee.status == EmployeeStatus.ACTIVE)

        if department:
            query = query.filter(Employee.department == department)
        if payment_type:
            query = query.filter(Employee.payment_type == payment_type)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Employee.name.ilike(pattern), Employee.email.ilike(pattern)))

        return query.order_by(Employee.name, Employee.id).all()


class SqlAttendanceRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_for_range(self, employee_id: int, start_date: date, end_date: date) -> List[AttendanceRecord]:
        return self.db.query(AttendanceRecord).filter(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.date >= start_date,
            AttendanceRecord.date <= end_date
        ).order_by(AttendanceRecord.date, AttendanceRecord.check_in).all()

    def list_approved_leaves(self, employee_id: int, start_date: date, end_date: date) -> List[LeaveRequest]:
        return self.db.query(LeaveRequest).filter(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status == LeaveStatus.APPROVED,
            LeaveRequest.start_date <= end_date,
            LeaveRequest.end_date >= start_date
        ).order_by(LeaveRequest.start_date).all()

    def mark_paid(self, employee_id: int, start_date: date, end_date: date) -> int:
        result = self.db.execute(
            update(AttendanceRecord)
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date >= start_date,
                AttendanceRecord.date <= end_date,
                AttendanceRecord.is_paid.is_(False)
            )
            .values(is_paid=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class SqlAdjustmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_bonuses(self, employee_id: int, start_date: date, end_date: date) -> List[Bonus]:
        return self.db.query(Bonus).filter(
            Bonus.employee_id == employee_id,
            Bonus.date >= start_date,
            Bonus.date <= end_date
        ).order_by(Bonus.date).all()

    def list_deductions(self, employee_id: int, start_date: date, end_date: date) -> List[Deduction]:
        return self.db.query(Deduction).filter(
            Deduction.employee_id == employee_id,
            Deduction.date >= start_date,
            Deduction.date <= end_date
        ).order_by(Deduction.date).all()


class SqlSalaryAdvanceRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_outstanding(self, employee_id: int) -> List[SalaryAdvance]:
        return self.db.query(SalaryAdvance).filter(
            SalaryAdvance.employee_id == employee_id,
            SalaryAdvance.status == AdvanceStatus.APPROVED
        ).order_by(SalaryAdvance.date, SalaryAdvance.id).all()

    def get_many(self, advance_ids: Sequence[int]) -> List[SalaryAdvance]:
        if not advance_ids:
            return []
        return self.db.query(SalaryAdvance).filter(SalaryAdvance.id.in_(list(advance_ids))).all()

    def mark_paid(self, employee_id: int, advance_ids: Sequence[int]) -> int:
        """Approved -> Paid for the given advances; returns how many rows moved."""
        if not advance_ids:
            return 0
        result = self.db.execute(
            update(SalaryAdvance)
            .where(
                SalaryAdvance.id.in_(list(advance_ids)),
                SalaryAdvance.employee_id == employee_id,
                SalaryAdvance.status == AdvanceStatus.APPROVED
            )
            .values(status=AdvanceStatus.PAID)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class SqlPaymentLedgerRepository:
    def __init__(self, db: Session):
        self.db = db

    def find(self, employee_id: int, year: int, month: int, week_number: int) -> Optional[Payment]:
        return self.db.query(Payment).filter(
            Payment.employee_id == employee_id,
            Payment.year == year,
            Payment.month == month,
            Payment.week_number == week_number
        ).first()

    def list_for_period(self, year: int, month: int, employee_ids: Optional[Sequence[int]] = None) -> List[Payment]:
        query = self.db.query(Payment).filter(Payment.year == year, Payment.month == month)
        if employee_ids is not None:
            query = query.filter(Payment.employee_id.in_(list(employee_ids)))
        return query.order_by(Payment.employee_id, Payment.week_number).all()

    def list_payments(
        self,
        employee_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None
    ) -> List[Payment]:
        query = self.db.query(Payment)
        if employee_id is not None:
            query = query.filter(Payment.employee_id == employee_id)
        if year is not None:
            query = query.filter(Payment.year == year)
        if month is not None:
            query = query.filter(Payment.month == month)
        return query.order_by(
            Payment.year.desc(), Payment.month.desc(), Payment.week_number, Payment.employee_id
        ).all()

    def add(self, payment: Payment) -> Payment:
        self.db.add(payment)
        self.db.flush()
        return payment


@dataclass
class PayrollRepositories:
    employees: EmployeeRepository
    attendance: AttendanceRepository
    adjustments: AdjustmentRepository
    advances: SalaryAdvanceRepository
    payments: PaymentLedgerRepository

    @classmethod
    def from_session(cls, db: Session) -> "PayrollRepositories":
        return cls(
            employees=SqlEmployeeRepository(db),
            attendance=SqlAttendanceRepository(db),
            adjustments=SqlAdjustmentRepository(db),
            advances=SqlSalaryAdvanceRepository(db),
            payments=SqlPaymentLedgerRepository(db),
        )
