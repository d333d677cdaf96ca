import threading
from datetime import date, time
from decimal import Decimal

from hr_payroll.adjustments.models import AdvanceStatus, SalaryAdvance
from hr_payroll.attendance.models import AttendanceRecord
from hr_payroll.core.redis_service import DeliveryLockService
from hr_payroll.employees.models import Currency, FlatSalaryPeriod, PaymentType
from hr_payroll.payrolls.delivery import SalaryDeliveryService, ledger_key
from hr_payroll.payrolls.models import WHOLE_MONTH, Payment
from hr_payroll.payrolls.repositories import PayrollRepositories, SqlPaymentLedgerRepository
from hr_payroll.payrolls.schemas import SalaryDeliveryRequest
from hr_payroll.payrolls.service import PayrollService


def deliver(db_session, employee_id, year=2024, month=3, week_number=None, advances=(), **service_options):
    service = SalaryDeliveryService(db_session, **service_options)
    return service.deliver_salary(SalaryDeliveryRequest(
        employee_id=employee_id,
        year=year,
        month=month,
        week_number=week_number,
        advance_ids_to_deduct=list(advances),
    ))


def payments_for(db_session, employee_id):
    return db_session.query(Payment).filter(Payment.employee_id == employee_id).all()


def test_delivery_is_idempotent(db_session, make_employee):
    employee = make_employee()

    first = deliver(db_session, employee.id)
    second = deliver(db_session, employee.id)

    assert first.success
    assert first.payment.week_number == WHOLE_MONTH
    assert first.payment.net_amount == Decimal("3000.00")
    assert not second.success
    assert "already settled" in second.message
    assert len(payments_for(db_session, employee.id)) == 1


def test_partial_advance_settlement(db_session, make_employee, make_advance):
    employee = make_employee()
    first_advance = make_advance(employee, "100")
    second_advance = make_advance(employee, "50")

    result = deliver(db_session, employee.id, advances=[first_advance.id])

    assert result.success
    assert result.payment.advances_deducted == Decimal("100.00")
    assert result.payment.gross_amount == Decimal("3000.00")
    assert result.payment.net_amount == Decimal("2900.00")

    db_session.refresh(first_advance)
    db_session.refresh(second_advance)
    assert first_advance.status == AdvanceStatus.PAID
    assert second_advance.status == AdvanceStatus.APPROVED

    april = PayrollService(db_session).calculate(employee.id, date(2024, 4, 1), date(2024, 4, 30))
    assert [a.id for a in april.outstanding_advances] == [second_advance.id]
    assert april.advances_total == Decimal("50.00")


def test_duplicate_advance_ids_are_deducted_once(db_session, make_employee, make_advance):
    employee = make_employee()
    advance = make_advance(employee, "100")

    result = deliver(db_session, employee.id, advances=[advance.id, advance.id])

    assert result.success
    assert result.payment.advances_deducted == Decimal("100.00")


def test_delivery_includes_overtime_bonuses_and_deductions(
    db_session, make_employee, add_attendance, add_bonus, add_deduction
):
    employee = make_employee()
    add_attendance(employee, date(2024, 3, 4), time(8, 0), time(18, 0))
    add_bonus(employee, "200")
    add_deduction(employee, "50")

    result = deliver(db_session, employee.id)

    assert result.success
    assert result.payment.gross_amount == Decimal("3230.00")
    assert result.payment.net_amount == Decimal("3180.00")


def test_attendance_of_the_settled_period_is_marked_paid(db_session, make_employee, add_attendance):
    employee = make_employee()
    march = add_attendance(employee, date(2024, 3, 4))
    april = add_attendance(employee, date(2024, 4, 1))

    assert deliver(db_session, employee.id).success

    assert db_session.get(AttendanceRecord, march.id).is_paid
    assert not db_session.get(AttendanceRecord, april.id).is_paid


def test_weekly_delivery_settles_one_week(db_session, make_employee, add_attendance):
    employee = make_employee(payment_type=PaymentType.WEEKLY, weekly_salary=Decimal("500"))
    in_week = add_attendance(employee, date(2024, 3, 4))
    next_week = add_attendance(employee, date(2024, 3, 11))

    result = deliver(db_session, employee.id, week_number=2)

    assert result.success
    assert result.payment.week_number == 2
    assert result.payment.gross_amount == Decimal("500.00")
    assert db_session.get(AttendanceRecord, in_week.id).is_paid
    assert not db_session.get(AttendanceRecord, next_week.id).is_paid

    assert not deliver(db_session, employee.id, week_number=2).success
    assert deliver(db_session, employee.id, week_number=3).success
    assert len(payments_for(db_session, employee.id)) == 2


def test_weekly_delivery_requires_an_existing_week(db_session, make_employee):
    employee = make_employee(payment_type=PaymentType.WEEKLY, weekly_salary=Decimal("500"))

    missing = deliver(db_session, employee.id)
    out_of_month = deliver(db_session, employee.id, year=2024, month=2, week_number=6)

    assert not missing.success
    assert "week number is required" in missing.message
    assert not out_of_month.success
    assert "does not exist" in out_of_month.message
    assert payments_for(db_session, employee.id) == []


def test_monthly_delivery_rejects_a_week(db_session, make_employee):
    employee = make_employee()

    result = deliver(db_session, employee.id, week_number=1)

    assert not result.success
    assert payments_for(db_session, employee.id) == []


def test_weekly_flat_salary_settles_per_week(db_session, make_employee):
    employee = make_employee(
        flat={"flat_salary": Decimal("400"), "currency": Currency.USD, "period": FlatSalaryPeriod.WEEKLY}
    )

    monthly_attempt = deliver(db_session, employee.id)
    weekly = deliver(db_session, employee.id, week_number=1)

    assert not monthly_attempt.success
    assert weekly.success
    assert weekly.payment.gross_amount == Decimal("400.00")


def test_advance_in_another_currency_is_rejected(db_session, make_employee, make_advance):
    employee = make_employee()
    advance = make_advance(employee, "100000", currency=Currency.SYP)

    result = deliver(db_session, employee.id, advances=[advance.id])

    assert not result.success
    assert "SYP" in result.message
    db_session.refresh(advance)
    assert advance.status == AdvanceStatus.APPROVED
    assert payments_for(db_session, employee.id) == []


def test_advance_must_be_approved(db_session, make_employee, make_advance):
    employee = make_employee()
    pending = make_advance(employee, "100", status=AdvanceStatus.PENDING)

    result = deliver(db_session, employee.id, advances=[pending.id])

    assert not result.success
    assert "not Approved" in result.message


def test_advance_of_another_employee_is_rejected(db_session, make_employee, make_advance):
    employee = make_employee()
    colleague = make_employee(name="Omar Khatib", email="omar@example.com")
    advance = make_advance(colleague, "100")

    result = deliver(db_session, employee.id, advances=[advance.id])

    assert not result.success
    assert "not found" in result.message
    db_session.refresh(advance)
    assert advance.status == AdvanceStatus.APPROVED


def test_unknown_employee_is_a_failure_result(db_session):
    result = deliver(db_session, 404)

    assert not result.success
    assert "not found" in result.message


def test_ledger_conflict_rolls_back_advances(db_session, make_employee, make_advance):
    class BlindLedger(SqlPaymentLedgerRepository):
        def find(self, employee_id, year, month, week_number):
            return None

    employee = make_employee()
    first_advance = make_advance(employee, "100")
    second_advance = make_advance(employee, "50")

    assert deliver(db_session, employee.id, advances=[first_advance.id]).success

    repositories = PayrollRepositories.from_session(db_session)
    repositories.payments = BlindLedger(db_session)
    raced = deliver(db_session, employee.id, advances=[second_advance.id], repositories=repositories)

    assert not raced.success
    assert "already settled" in raced.message
    assert db_session.get(SalaryAdvance, second_advance.id).status == AdvanceStatus.APPROVED
    assert len(payments_for(db_session, employee.id)) == 1


def test_busy_ledger_key_is_reported_as_settled(db_session, make_employee):
    employee = make_employee()
    lock_service = DeliveryLockService(enabled=False)
    lock_service.lock_wait = 0.05

    with lock_service.hold(ledger_key(employee.id, 2024, 3, WHOLE_MONTH)):
        result = deliver(db_session, employee.id, lock_service=lock_service)

    assert not result.success
    assert "already settled" in result.message
    assert payments_for(db_session, employee.id) == []


def test_weekly_delivery_records_the_weekly_salary(
    db_session, make_employee, add_attendance, add_bonus, add_deduction
):
    employee = make_employee(payment_type=PaymentType.WEEKLY, weekly_salary=Decimal("500"))
    add_attendance(employee, date(2024, 3, 4), time(8, 0), time(18, 0))
    add_bonus(employee, "200", on=date(2024, 3, 5))
    add_deduction(employee, "30", on=date(2024, 3, 6))

    sheet = PayrollService(db_session).build_payroll_sheet(2024, 3, payment_type=PaymentType.WEEKLY)
    assert sheet.rows[0].weeks[1].earned == Decimal("500.00")

    result = deliver(db_session, employee.id, week_number=2)

    assert result.success
    assert result.payment.gross_amount == Decimal("500.00")
    assert result.payment.net_amount == Decimal("470.00")

    sheet = PayrollService(db_session).build_payroll_sheet(2024, 3, payment_type=PaymentType.WEEKLY)
    assert sheet.rows[0].weeks[1].earned == Decimal("500.00")


def test_delivery_waits_for_a_key_held_by_another_thread(db_session, make_employee):
    employee = make_employee()
    lock_service = DeliveryLockService(enabled=False)
    lock_service.lock_wait = 5
    key = ledger_key(employee.id, 2024, 3, WHOLE_MONTH)
    held = threading.Event()
    release = threading.Event()

    def hold_key():
        with lock_service.hold(key):
            held.set()
            release.wait(5)

    holder = threading.Thread(target=hold_key)
    holder.start()
    assert held.wait(5)
    threading.Timer(0.2, release.set).start()

    result = deliver(db_session, employee.id, lock_service=lock_service)
    holder.join(5)

    assert result.success
    assert len(payments_for(db_session, employee.id)) == 1


def test_local_locks_are_dropped_after_release(db_session, make_employee):
    employee = make_employee()
    lock_service = DeliveryLockService(enabled=False)

    assert deliver(db_session, employee.id, lock_service=lock_service).success
    assert not deliver(db_session, employee.id, lock_service=lock_service).success

    assert lock_service._local_locks == {}
