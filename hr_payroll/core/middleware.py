"""
HTTP middleware for the payroll API: request ids, timing and body size limits.
"""

import time
import uuid
import logging
from typing import Callable
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from fastapi import status

from hr_payroll.core.config import settings
from hr_payroll.core.error_handlers import create_error_response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Tags every request with an id and logs how long it took."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse an id forwarded by a gateway so delivery logs can be correlated
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"{request.method} {request.url.path} failed with {type(exc).__name__}",
                extra={"request_id": request_id, "elapsed_ms": _elapsed_ms(started)}
            )
            raise

        elapsed = _elapsed_ms(started)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time-Ms"] = str(elapsed)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"{request.method} {request.url.path} -> {response.status_code} in {elapsed}ms",
            extra={"request_id": request_id, "status_code": response.status_code}
        )
        return response


class RequestSizeMiddleware(BaseHTTPMiddleware):
    """Rejects bodies larger than the configured limit before they reach a route."""

    def __init__(self, app, max_request_size: int):
        super().__init__(app)
        self.max_request_size = max_request_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_request_size:
            logger.warning(f"Rejected {declared} byte body on {request.url.path}")
            return create_error_response(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Request body exceeds {self.max_request_size} bytes",
                error_code="REQUEST_TOO_LARGE",
                request_id=getattr(request.state, "request_id", None)
            )

        return await call_next(request)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def add_middleware(app):
    """Register the payroll middleware stack; the last one added runs first."""
    app.add_middleware(RequestSizeMiddleware, max_request_size=settings.max_request_size)
    app.add_middleware(RequestTrackingMiddleware)
