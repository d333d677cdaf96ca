from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, Enum, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hr_payroll.core.database import Base
from hr_payroll.employees.models import Currency, PaymentType


# Ledger week slot for a whole-month settlement. A real value (not NULL) so the
# unique constraint also covers monthly and hourly rows.
WHOLE_MONTH = 0


class Payment(Base):
    """One settled (employee, year, month, week) cell of the payment ledger."""
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("employee_id", "year", "month", "week_number", name="uq_payment_period"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)  # 1-12
    week_number = Column(Integer, nullable=False, default=WHOLE_MONTH)
    payment_type = Column(Enum(PaymentType), nullable=False)
    currency = Column(Enum(Currency), nullable=False)
    gross_amount = Column(Numeric(12, 2), nullable=False)
    advances_deducted = Column(Numeric(12, 2), nullable=False, default=0)
    net_amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    employee = relationship("Employee")

    @property
    def week(self):
        return None if self.week_number == WHOLE_MONTH else self.week_number
