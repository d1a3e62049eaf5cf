# backend/tutorbook/core/exceptions.py
"""
Domain-specific exceptions for the session lifecycle and payroll engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every precondition failure is raised before anything is flushed,
so callers can rely on "no partial state change" when one surfaces.
"""

from datetime import date
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

    def to_http_exception(self) -> HTTPException:
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


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when the actor lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


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


class SlotUnavailableException(ConflictException):
    """Raised when no open slot matches a reservation (race lost or slot withdrawn)."""

    def __init__(self, teacher_id: str, slot_date: date, slot_time: str):
        super().__init__(
            message="Selected slot is no longer available or not open for booking",
            code="SLOT_UNAVAILABLE",
            details={
                "teacher_id": teacher_id,
                "date": slot_date.isoformat(),
                "time": slot_time,
            },
        )


class DuplicateBookingException(ConflictException):
    """Raised when the (teacher, date, time) tuple already has an active booking."""

    def __init__(self, teacher_id: str, slot_date: date, slot_time: str):
        super().__init__(
            message="Selected slot is already booked",
            code="DUPLICATE_BOOKING",
            details={
                "teacher_id": teacher_id,
                "date": slot_date.isoformat(),
                "time": slot_time,
            },
        )


class TeacherNotPresentException(BusinessRuleException):
    """Raised when an action needs the teacher to have entered the classroom first."""

    def __init__(self, booking_id: str, action: str = "mark the class as finished"):
        super().__init__(
            message=f"Teacher must enter the classroom before being able to {action}",
            code="TEACHER_NOT_PRESENT",
            details={"booking_id": booking_id},
        )


class DurationRequirementNotMetException(BusinessRuleException):
    """Raised when a class is finished outside the completion window."""

    def __init__(self, duration_minutes: float, min_minutes: int, max_minutes: int):
        super().__init__(
            message=(
                f"Class cannot be marked as finished. Duration must be {min_minutes}-{max_minutes} "
                f"minutes. Current duration: {duration_minutes:.2f} minutes."
            ),
            code="DURATION_REQUIREMENT_NOT_MET",
            details={
                "duration_minutes": round(duration_minutes, 2),
                "min_minutes": min_minutes,
                "max_minutes": max_minutes,
            },
        )


class AlreadyResolvedException(ConflictException):
    """Raised when a transition is attempted on something already resolved."""

    def __init__(self, message: str, *, current_status: Optional[str] = None):
        details: Dict[str, Any] = {}
        if current_status is not None:
            details["current_status"] = current_status
        super().__init__(message=message, code="ALREADY_RESOLVED", details=details)


class NotAuthorizedException(ForbiddenException):
    """Raised when an actor acts on a booking or slot they do not own."""

    def __init__(self, message: str = "Access denied. This resource does not belong to you."):
        super().__init__(message=message, code="NOT_AUTHORIZED")


class InvalidRangeException(ValidationException):
    """Raised for malformed or inverted payroll date ranges."""

    def __init__(self, start_date: date, end_date: date, reason: str):
        super().__init__(
            message=f"Invalid date range {start_date.isoformat()} to {end_date.isoformat()}: {reason}",
            code="INVALID_RANGE",
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )


class AlreadyDisbursedException(ConflictException):
    """Raised when a period has already been disbursed to a teacher."""

    def __init__(self, teacher_id: str, period_label: str):
        super().__init__(
            message=f"Salary for {period_label} has already been disbursed",
            code="ALREADY_DISBURSED",
            details={"teacher_id": teacher_id, "period": period_label},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
