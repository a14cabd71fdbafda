# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the Planner backend.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException, status

from .constants import (
    ERROR_INVALID_TIME_RANGE,
    ERROR_TIME_BLOCK_CONFLICT,
    ERROR_TIME_BLOCK_NOT_FOUND,
)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying the structured detail."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class InvalidTimeRangeException(ValidationException):
    """Raised when a time block does not end strictly after it starts."""

    def __init__(self, start_time: datetime, end_time: datetime):
        super().__init__(
            message=ERROR_INVALID_TIME_RANGE,
            code="INVALID_TIME_RANGE",
            details={
                "start_time": start_time.isoformat(),
                "end_time": end_time.isoformat(),
            },
        )


class UnsupportedViewTypeException(ValidationException):
    """Raised for calendar view types other than day/week/month."""

    def __init__(self, view_type: Any):
        super().__init__(
            message=f"Unsupported view type: {view_type}",
            code="UNSUPPORTED_VIEW_TYPE",
            details={"view_type": str(view_type)},
        )


class TimeBlockNotFoundException(NotFoundException):
    """
    Raised when a time block is missing or owned by someone else.

    Both cases produce the same error so block ids do not leak across owners.
    """

    def __init__(self, time_block_id: str):
        super().__init__(
            message=ERROR_TIME_BLOCK_NOT_FOUND,
            code="TIME_BLOCK_NOT_FOUND",
            details={"time_block_id": time_block_id},
        )


class TimeBlockConflictException(ConflictException):
    """Raised when a time block overlaps existing blocks of the same owner."""

    def __init__(self, conflicts: Iterable[Any]):
        self.conflicts: List[Dict[str, Any]] = [_conflict_summary(c) for c in conflicts]
        super().__init__(
            message=ERROR_TIME_BLOCK_CONFLICT,
            code="TIME_BLOCK_CONFLICT",
            details={"conflicts": self.conflicts},
        )


def _conflict_summary(conflict: Any) -> Dict[str, Any]:
    if isinstance(conflict, dict):
        return {
            "id": conflict.get("id"),
            "title": conflict.get("title"),
            "start_time": conflict.get("start_time"),
            "end_time": conflict.get("end_time"),
        }
    return {
        "id": conflict.id,
        "title": conflict.title,
        "start_time": conflict.start_time.isoformat(),
        "end_time": conflict.end_time.isoformat(),
    }


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


class OverlapConstraintViolation(RepositoryException):
    """The database rejected a write that overlaps another block of the same owner."""
