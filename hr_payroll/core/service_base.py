"""
Shared plumbing for the domain services: commits, lookups and audit logging.
"""

import logging
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session, Query
from sqlalchemy.exc import SQLAlchemyError, IntegrityError

from hr_payroll.core.exceptions import (
    DatabaseError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    ValidationError
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 1000


class BaseService:
    """Every service owns the request's session and reports failures as API errors."""

    def __init__(self, db: Session):
        self.db = db

    def safe_commit(self, error_message: str = "Database operation failed") -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error during commit: {e.orig}")
            raise ResourceAlreadyExistsError(
                resource_type="Record",
                error_data={"original_error": str(e.orig)}
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{error_message}: {e}")
            raise DatabaseError(detail=error_message, error_data={"original_error": str(e)})

    def safe_rollback(self) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Rollback failed: {e}")

    def get_or_404(self, model_class, resource_id: Any, resource_type: Optional[str] = None):
        label = resource_type or model_class.__name__
        try:
            resource = self.db.get(model_class, resource_id)
        except SQLAlchemyError as e:
            logger.error(f"Loading {label} {resource_id} failed: {e}")
            raise DatabaseError(detail=f"Error retrieving {label}", operation="get")

        if resource is None:
            raise ResourceNotFoundError(resource_type=label, resource_id=resource_id)
        return resource

    def check_unique_constraint(
        self,
        model_class,
        field_name: str,
        field_value: Any,
        resource_type: Optional[str] = None,
        exclude_id: Any = None
    ) -> None:
        """Raise a 409 when another row already uses ``field_value``."""
        column = getattr(model_class, field_name)
        query = self.db.query(model_class.id).filter(column == field_value)
        if exclude_id is not None:
            query = query.filter(model_class.id != exclude_id)

        if query.first() is not None:
            raise ResourceAlreadyExistsError(
                resource_type=resource_type or model_class.__name__,
                field=field_name,
                value=str(field_value)
            )

    def paginate_query(self, query: Query, skip: int = 0, limit: int = 100) -> Query:
        if skip < 0:
            raise ValidationError(detail="skip cannot be negative", field="skip", value=skip)
        if not 0 < limit <= MAX_PAGE_SIZE:
            raise ValidationError(
                detail=f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit", value=limit
            )
        return query.offset(skip).limit(limit)

    def log_service_action(
        self,
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Any = None,
        extra_data: Optional[Dict[str, Any]] = None
    ) -> None:
        log_data = {"action": action, "service": self.__class__.__name__}
        if resource_type:
            log_data["resource_type"] = resource_type
        if resource_id is not None:
            log_data["resource_id"] = resource_id
        if extra_data:
            log_data.update(extra_data)

        logger.info(f"{self.__class__.__name__}.{action} {resource_type or ''} {resource_id or ''}".rstrip(),
                    extra=log_data)
