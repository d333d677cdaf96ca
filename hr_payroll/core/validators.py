"""
Business-rule checks shared by the payroll and attendance services.
"""

from datetime import date

from hr_payroll.core.exceptions import ValidationError


MIN_PAYROLL_YEAR = 2000
MAX_PAYROLL_YEAR = 2100
MAX_RANGE_DAYS = 366


def validate_period(year: int, month: int):
    """Validate a payroll year/month pair."""
    errors = {}

    if not isinstance(month, int) or not 1 <= month <= 12:
        errors["month"] = "Month must be between 1 and 12"

    if not isinstance(year, int) or not MIN_PAYROLL_YEAR <= year <= MAX_PAYROLL_YEAR:
        errors["year"] = f"Year must be between {MIN_PAYROLL_YEAR} and {MAX_PAYROLL_YEAR}"

    if errors:
        raise ValidationError(
            detail="Payroll period validation failed",
            error_data={"validation_errors": errors}
        )


def validate_date_range(start_date: date, end_date: date, max_days: int = MAX_RANGE_DAYS):
    """Validate an inclusive date range."""
    if start_date > end_date:
        raise ValidationError(
            detail="Start date must not be after end date",
            error_data={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()}
        )

    span = (end_date - start_date).days
    if span > max_days:
        raise ValidationError(
            detail=f"Date range cannot exceed {max_days} days",
            error_data={"max_days": max_days, "actual_days": span}
        )
