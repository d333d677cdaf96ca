"""
Exception handlers that turn payroll errors into a uniform JSON error body.

Every error response carries ``error``, ``status_code``, ``detail`` and
``timestamp``; ``error_code``, ``error_data`` and ``request_id`` appear when known.
"""

import logging
import traceback
from typing import Any, Dict, Optional, Tuple
from datetime import datetime, timezone

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, DataError, OperationalError
from psycopg2.errors import UniqueViolation, ForeignKeyViolation, ConnectionException

from hr_payroll.core.exceptions import BaseAPIException
from hr_payroll.core.config import settings

logger = logging.getLogger(__name__)


def create_error_response(
    status_code: int,
    detail: str,
    error_code: Optional[str] = None,
    error_data: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None
) -> JSONResponse:
    content = {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if error_code:
        content["error_code"] = error_code
    if error_data:
        content["error_data"] = error_data
    if request_id:
        content["request_id"] = request_id

    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


async def base_api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    logger.warning(
        f"{exc.error_code or 'API_ERROR'} on {request.method} {request.url.path}: {exc.detail}",
        extra={"request_id": _request_id(request), "error_data": exc.error_data}
    )
    return create_error_response(
        status_code=exc.status_code,
        detail=exc.detail,
        error_code=exc.error_code,
        error_data=exc.error_data,
        request_id=_request_id(request)
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning(f"HTTP {exc.status_code} on {request.method} {request.url.path}: {exc.detail}")
    return create_error_response(
        status_code=exc.status_code,
        detail=str(exc.detail),
        error_code="HTTP_EXCEPTION",
        request_id=_request_id(request)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        f"Rejected payload on {request.method} {request.url.path}: {len(problems)} problem(s)",
        extra={"request_id": _request_id(request)}
    )
    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail="Request validation failed",
        error_code="VALIDATION_ERROR",
        error_data={"validation_errors": problems},
        request_id=_request_id(request)
    )


def _classify_database_error(exc: SQLAlchemyError) -> Tuple[int, str, str]:
    original = getattr(exc, "orig", None)

    if isinstance(exc, IntegrityError):
        if isinstance(original, UniqueViolation) or "UNIQUE constraint failed" in str(original):
            return status.HTTP_409_CONFLICT, "DUPLICATE_RESOURCE", "A record with the same key already exists"
        if isinstance(original, ForeignKeyViolation) or "FOREIGN KEY constraint failed" in str(original):
            return status.HTTP_400_BAD_REQUEST, "INVALID_REFERENCE", "A referenced employee or record does not exist"
        return status.HTTP_400_BAD_REQUEST, "INTEGRITY_ERROR", "Data integrity constraint violated"

    if isinstance(exc, DataError):
        return status.HTTP_400_BAD_REQUEST, "DATA_ERROR", "Invalid data provided"

    if isinstance(exc, OperationalError) and isinstance(original, ConnectionException):
        return status.HTTP_503_SERVICE_UNAVAILABLE, "DATABASE_CONNECTION_ERROR", "Database connection failed"

    return status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR", "Database error occurred"


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    status_code, error_code, detail = _classify_database_error(exc)
    logger.error(
        f"{error_code} on {request.method} {request.url.path}: {type(exc).__name__}",
        extra={"request_id": _request_id(request), "error_details": str(exc)}
    )

    error_data = {"exception_type": type(exc).__name__, "original_error": str(exc)} if settings.debug else None
    return create_error_response(
        status_code=status_code,
        detail=detail,
        error_code=error_code,
        error_data=error_data,
        request_id=_request_id(request)
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        extra={"request_id": _request_id(request), "traceback": traceback.format_exc()}
    )

    if settings.debug:
        detail = f"Internal server error: {exc}"
        error_data = {"exception_type": type(exc).__name__}
    else:
        detail = "An unexpected error occurred. Please try again later."
        error_data = None

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
        error_code="INTERNAL_SERVER_ERROR",
        error_data=error_data,
        request_id=_request_id(request)
    )


ERROR_HANDLERS = {
    BaseAPIException: base_api_exception_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: validation_exception_handler,
    SQLAlchemyError: sqlalchemy_exception_handler,
    Exception: generic_exception_handler,
}


def register_error_handlers(app):
    for exception_class, handler in ERROR_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
