# backend/clubreserve/core/exceptions.py
"""
Domain-specific exceptions for the reservation backend.

These exceptions carry business-focused error messages and codes that the
HTTP layer can translate without knowing anything about scheduling.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


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

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


class ValidationException(DomainException):
    """Raised when input is malformed or breaks a booking constraint."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested entity is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when the caller's scope does not cover the target."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message or "An error occurred processing your request",
            "code": self.code,
            "details": self.details if self.details else {},
        }


# Specific business exceptions


class InvalidTimeFormatException(ValidationException):
    """Raised when a local time string is not a valid HH:mm value."""

    def __init__(self, value: Any):
        super().__init__(
            message=f"Invalid time format: {value!r} (expected HH:mm)",
            code="INVALID_TIME_FORMAT",
            details={"value": str(value)},
        )


class NonexistentLocalTimeException(ValidationException):
    """Raised when a local wall-clock time falls in a DST spring-forward gap."""

    def __init__(self, local_date: Any, local_time: str, timezone_name: str):
        super().__init__(
            message=(
                f"The time {local_time} does not exist on {local_date} in {timezone_name} "
                "due to Daylight Saving Time"
            ),
            code="NONEXISTENT_LOCAL_TIME",
            details={"date": str(local_date), "time": local_time, "timezone": timezone_name},
        )


class ResourceNotFoundException(NotFoundException):
    def __init__(self, court_id: str):
        super().__init__(
            message="Court not found",
            code="RESOURCE_NOT_FOUND",
            details={"court_id": court_id},
        )


class ActivityNotFoundException(NotFoundException):
    def __init__(self, activity_id: str):
        super().__init__(
            message="Activity not found",
            code="ACTIVITY_NOT_FOUND",
            details={"activity_id": activity_id},
        )


class ReservationNotFoundException(NotFoundException):
    def __init__(self, reservation_id: str):
        super().__init__(
            message="Reservation not found",
            code="RESERVATION_NOT_FOUND",
            details={"reservation_id": reservation_id},
        )


class SeriesNotFoundException(NotFoundException):
    def __init__(self, series_id: str):
        super().__init__(
            message="Recurring series not found",
            code="SERIES_NOT_FOUND",
            details={"series_id": series_id},
        )


class SlotConflictException(ConflictException):
    """Raised when a reservation would overlap an active one on the same court."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot conflicts with an existing reservation",
            code="SLOT_CONFLICT",
            details=details or {},
        )


class SeriesConflictException(ConflictException):
    """Raised when a recurring series overlaps an active series on the same court and weekday."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "A recurring reservation already holds this time on this day",
            code="SERIES_CONFLICT",
            details=details or {},
        )


class ConfigurationException(ServiceException):
    """Raised when deployment configuration cannot resolve a required value."""


class TransientStorageException(ServiceException):
    """Raised when the database is unavailable or a lock could not be obtained in time."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Storage temporarily unavailable. Please retry.",
            code="TRANSIENT_STORAGE_ERROR",
            details=details or {},
        )

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail=self.to_dict(),
            headers={"Retry-After": "2"},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as query failures or constraint violations.
    """
