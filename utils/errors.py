"""
utils/errors.py
---------------
Error taxonomy shared by the services.

Errors are *returned* inside a ServiceResult rather than raised across the
service boundary. Internally they are ordinary exceptions so that model
validation can raise them and the service entry points can collect them.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """
    Base class for every error a service can hand back to its caller.

    Attributes:
        message: Human-readable description.
        code: Machine-readable error code.
        original: The underlying exception, if any.
    """
    default_code = "UNKNOWN_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, original: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.original = original

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(ServiceError):
    """Input rejected before any computation ran."""
    default_code = "VALIDATION_ERROR"


class NotFoundError(ServiceError):
    """A referenced budget, report or recurring definition does not exist."""
    default_code = "NOT_FOUND"


class UnsupportedReportType(ServiceError):
    default_code = "UNSUPPORTED_REPORT_TYPE"

    def __init__(self, report_type: Any):
        super().__init__(f"Unsupported report type: {report_type!r}")
        self.report_type = report_type


class StoreError(ServiceError):
    """Failure reported by the database driver while fetching or writing records."""
    default_code = "STORE_ERROR"

    @classmethod
    def from_exception(cls, exc: Exception, action: str) -> "StoreError":
        """
        Wrap a driver exception, keeping its code and message.

        Args:
            exc: The exception raised by the repository (usually psycopg2.Error).
            action: Short description of what was being attempted.
        """
        code = getattr(exc, "pgcode", None) or type(exc).__name__
        return cls(f"Failed to {action}: {exc}", code=code, original=exc)
