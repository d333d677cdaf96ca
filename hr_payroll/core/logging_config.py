"""
Logging for the payroll service.

Console output is colour coded by level; an optional rotating file keeps the
delivery audit trail. ``DeliveryOperationLogger`` writes one summary line per
salary delivery attempt.
"""

import logging
import logging.handlers
import os
import time
from typing import Optional

DELIVERY_LOGGER = "hr_payroll.payrolls.delivery"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class PayrollLogFormatter(logging.Formatter):
    """Console formatter with colour-coded levels"""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        plain = record.levelname
        record.levelname = f"{self.COLORS.get(plain, '')}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # the record is shared with the file handler
            record.levelname = plain


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None, enable_console: bool = True):
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if enable_console:
        console = logging.StreamHandler()
        console.setFormatter(PayrollLogFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)

    return root_logger


def log_delivery_operation(
    operation: str,
    employee_id: Optional[int] = None,
    period: Optional[str] = None,
    duration: Optional[float] = None,
    success: bool = True,
    details: Optional[dict] = None,
    logger: Optional[logging.Logger] = None
):
    """Write one ``SALARY DELIVERY`` line; rejected deliveries are logged as warnings."""
    logger = logger or logging.getLogger(DELIVERY_LOGGER)

    parts = [f"SALARY DELIVERY - {operation.upper().replace('_', ' ')} [{'OK' if success else 'REJECTED'}]"]
    if employee_id is not None:
        parts.append(f"Employee: {employee_id}")
    if period:
        parts.append(f"Period: {period}")
    if duration is not None:
        parts.append(f"Duration: {duration:.3f}s")
    parts.extend(f"{key}: {value}" for key, value in (details or {}).items())

    (logger.info if success else logger.warning)(" | ".join(parts))


class DeliveryOperationLogger:
    """Context manager logging the outcome and duration of one delivery"""

    def __init__(
        self,
        operation: str,
        employee_id: Optional[int] = None,
        period: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.operation = operation
        self.employee_id = employee_id
        self.period = period
        self.logger = logger or logging.getLogger(DELIVERY_LOGGER)
        self.started = None
        self.success = False
        self.details = {}

    def __enter__(self):
        self.started = time.perf_counter()
        self.logger.debug(f"Delivering salary for employee {self.employee_id} ({self.period})")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.success = False
            self.details['error'] = str(exc_val)

        log_delivery_operation(
            self.operation,
            self.employee_id,
            self.period,
            time.perf_counter() - self.started,
            self.success,
            self.details,
            self.logger
        )

    def add_detail(self, key: str, value):
        self.details[key] = value

    def set_success(self, success: bool):
        self.success = success


def init_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    setup_logging(log_level=log_level, log_file=log_file)
