import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from hr_payroll.core.service_base import BaseService
from hr_payroll.core.exceptions import ResourceNotFoundError
from hr_payroll.employees.models import (
    Employee, EmployeeStatus, ManufacturingStaff, PaymentType, WorkScheduleHistory
)
from hr_payroll.employees.schemas import (
    EmployeeCreate, EmployeeUpdate, ManufacturingProfileUpdate, ScheduleHistoryCreate
)

logger = logging.getLogger(__name__)


class EmployeeService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)

    def create_employee(self, employee_data: EmployeeCreate) -> Employee:
        """Create a new employee."""
        if employee_data.email:
            self.check_unique_constraint(Employee, "email", employee_data.email, resource_type="Employee")

        db_employee = Employee(**employee_data.model_dump())
        self.db.add(db_employee)
        self.safe_commit("Error creating employee")
        self.db.refresh(db_employee)

        self.log_service_action("create_employee", "Employee", db_employee.id)
        return db_employee

    def get_employee(self, employee_id: int) -> Employee:
        return self.get_or_404(Employee, employee_id, "Employee")

    def get_employees(
        self,
        skip: int = 0,
        limit: int = 100,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        payment_type: Optional[PaymentType] = None
    ) -> List[Employee]:
        """Get employees with optional filters."""
        query = self.db.query(Employee)

        if status:
            query = query.filter(Employee.status == status)
        if department:
            query = query.filter(Employee.department == department)
        if payment_type:
            query = query.filter(Employee.payment_type == payment_type)

        return self.paginate_query(query.order_by(Employee.name, Employee.id), skip, limit).all()

    def update_employee(self, employee_id: int, employee_data: EmployeeUpdate) -> Employee:
        """Update employee information."""
        employee = self.get_employee(employee_id)

        update_data = employee_data.model_dump(exclude_unset=True)
        if update_data.get("email"):
            self.check_unique_constraint(
                Employee, "email", update_data["email"], resource_type="Employee", exclude_id=employee_id
            )

        for field, value in update_data.items():
            setattr(employee, field, value)

        self.safe_commit("Error updating employee")
        self.db.refresh(employee)

        self.log_service_action("update_employee", "Employee", employee_id, {"fields": sorted(update_data)})
        return employee

    def set_manufacturing_profile(self, employee_id: int, profile_data: ManufacturingProfileUpdate) -> ManufacturingStaff:
        """Put an employee on the flat-salary roster, or change their flat terms."""
        employee = self.get_employee(employee_id)

        profile = employee.manufacturing_profile
        if profile is None:
            profile = ManufacturingStaff(employee_id=employee.id)
            self.db.add(profile)

        profile.flat_salary = profile_data.flat_salary
        profile.currency = profile_data.currency
        profile.period = profile_data.period

        self.safe_commit("Error saving manufacturing profile")
        self.db.refresh(profile)

        self.log_service_action("set_manufacturing_profile", "Employee", employee_id)
        return profile

    def remove_manufacturing_profile(self, employee_id: int):
        employee = self.get_employee(employee_id)
        if employee.manufacturing_profile is None:
            raise ResourceNotFoundError(resource_type="Manufacturing profile", resource_id=employee_id)

        employee.manufacturing_profile = None
        self.safe_commit("Error removing manufacturing profile")

        self.log_service_action("remove_manufacturing_profile", "Employee", employee_id)

    def add_schedule_history(self, employee_id: int, history_data: ScheduleHistoryCreate) -> WorkScheduleHistory:
        """Record agreed daily hours effective from a date."""
        employee = self.get_employee(employee_id)

        entry = WorkScheduleHistory(
            employee_id=employee.id,
            hours=history_data.hours,
            start_date=history_data.start_date
        )
        self.db.add(entry)
        self.safe_commit("Error saving schedule history")
        self.db.refresh(entry)

        self.log_service_action(
            "add_schedule_history", "Employee", employee_id,
            {"hours": str(history_data.hours), "start_date": history_data.start_date.isoformat()}
        )
        return entry
