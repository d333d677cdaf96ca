"""
Audit decorator for routes that move money.
"""

import functools
import inspect
import logging
from typing import Callable, Any
from fastapi import Request

logger = logging.getLogger("hr_payroll.audit")


def _log_access(func: Callable, args, kwargs):
    request = next(
        (value for value in (*args, *kwargs.values()) if isinstance(value, Request)),
        None
    )

    if request is not None:
        logger.info(
            f"{func.__name__} called: {request.method} {request.url.path}",
            extra={
                "route": func.__name__,
                "client_ip": request.client.host if request.client else None,
                "request_id": getattr(request.state, "request_id", None)
            }
        )
    else:
        logger.info(f"{func.__name__} called", extra={"route": func.__name__})


def log_route_access(func: Callable) -> Callable:
    """Log who called a route before running it. The route must take a ``Request``.

    Sync routes stay sync so FastAPI still runs them in its threadpool.
    """

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            _log_access(func, args, kwargs)
            return await func(*args, **kwargs)

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        _log_access(func, args, kwargs)
        return func(*args, **kwargs)

    return wrapper
