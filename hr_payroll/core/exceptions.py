"""
API exceptions raised by the payroll services and rendered by error_handlers.
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """An HTTPException carrying a machine readable code and context data."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        error_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.error_data = error_data or {}


class ResourceNotFoundError(BaseAPIException):
    def __init__(self, resource_type: str, resource_id: Any = None, error_data: Optional[Dict[str, Any]] = None):
        detail = f"{resource_type} not found"
        if resource_id is not None:
            detail = f"{resource_type} {resource_id} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="RESOURCE_NOT_FOUND",
            error_data={"resource_type": resource_type, "resource_id": resource_id, **(error_data or {})}
        )


class ResourceAlreadyExistsError(BaseAPIException):
    def __init__(
        self,
        resource_type: str,
        field: Optional[str] = None,
        value: Optional[str] = None,
        error_data: Optional[Dict[str, Any]] = None
    ):
        detail = f"{resource_type} already exists"
        if field and value:
            detail += f" with {field} {value}"

        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="RESOURCE_ALREADY_EXISTS",
            error_data={"resource_type": resource_type, "field": field, "value": value, **(error_data or {})}
        )


class ValidationError(BaseAPIException):
    """Input that parses but breaks a business rule (ranges, settled periods)."""

    def __init__(
        self,
        detail: str,
        field: Optional[str] = None,
        value: Any = None,
        error_data: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR",
            error_data={"field": field, "value": value, **(error_data or {})}
        )


class InvalidStatusTransitionError(BaseAPIException):
    """A leave request or advance was asked to move to a status it cannot reach."""

    def __init__(
        self,
        resource_type: str,
        current_status: str,
        requested_status: str,
        error_data: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{resource_type} cannot move from {current_status} to {requested_status}",
            error_code="INVALID_STATUS_TRANSITION",
            error_data={
                "resource_type": resource_type,
                "current_status": current_status,
                "requested_status": requested_status,
                **(error_data or {})
            }
        )


class DatabaseError(BaseAPIException):
    def __init__(
        self,
        detail: str = "Database operation failed",
        operation: Optional[str] = None,
        error_data: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="DATABASE_ERROR",
            error_data={"operation": operation, **(error_data or {})}
        )


class PayrollCalculationError(BaseAPIException):
    def __init__(
        self,
        detail: str = "Payroll calculation failed",
        employee_id: Any = None,
        error_data: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="PAYROLL_CALCULATION_ERROR",
            error_data={"employee_id": employee_id, **(error_data or {})}
        )


class DeliveryLockError(Exception):
    """Another delivery holds the lock for the same ledger key."""

    def __init__(self, lock_key: str):
        super().__init__(f"Delivery already in progress for {lock_key}")
        self.lock_key = lock_key
