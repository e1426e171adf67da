"""
Domain exceptions raised by the service layer.

Services raise these instead of HTTP errors; the error handling middleware
maps each one to a status code and a stable error code.
"""

from typing import Any


class TrackerError(Exception):
    """Base class for all job tracker errors."""

    code = "TRACKER_ERROR"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(TrackerError):
    """Raised when input is malformed. Detected before any write."""

    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidSalaryRangeError(ValidationError):
    """Raised when salary_min is greater than salary_max."""

    code = "INVALID_SALARY_RANGE"


class NotFoundError(TrackerError):
    """Raised when an entity is absent or not owned by the caller."""

    code = "NOT_FOUND"
    status_code = 404


class CompanyNotFoundError(NotFoundError):
    """Raised when an application references an unknown company."""

    code = "COMPANY_NOT_FOUND"


class ConflictError(TrackerError):
    """Raised on unique constraint violations."""

    code = "CONFLICT"
    status_code = 409


class StorageError(TrackerError):
    """Raised when the underlying persistence layer fails."""

    code = "STORAGE_ERROR"
    status_code = 500
