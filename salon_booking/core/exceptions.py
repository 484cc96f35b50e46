"""
Domain exceptions for the booking engine.

Services raise these; the API layer turns them into the JSON error envelope
`{"success": false, "error": {"code", "message", "details"}}`.
"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for all expected business outcomes."""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(DomainException):
    """Malformed or missing field. The caller may fix it and resubmit."""

    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        details = {"field": field} if field else None
        super().__init__(message, details=details)
        self.field = field


class NotFoundException(DomainException):
    """Booking or tenant id does not resolve."""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(self, resource: str = "Booking") -> None:
        super().__init__(f"{resource} not found")


class ForbiddenException(DomainException):
    """The authenticated tenant does not own the target booking."""

    status_code = 403
    default_code = "FORBIDDEN"

    def __init__(self, message: str = "Access to this booking is denied") -> None:
        super().__init__(message)


class ConflictException(DomainException):
    """The requested window is taken. Carries the conflicting booking summary."""

    status_code = 409
    default_code = "CONFLICT_ERROR"

    def __init__(
        self,
        message: str = "The selected time is already booked",
        conflict: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details={"conflict": conflict} if conflict else None)
        self.conflict = conflict


class InternalException(DomainException):
    """Storage failure, reported without storage details."""

    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
