"""
Custom exceptions for the EASY schedule core.

Every exception carries a human-readable message, an error code and
optional details, so interactive callers can map a failure to a
localized banner while background callers only log it.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent error reporting."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Formula errors
    FORMULA_NOT_FOUND = "FORMULA_NOT_FOUND"

    # Notification errors
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOTIFICATION_SCHEDULING_FAILED = "NOTIFICATION_SCHEDULING_FAILED"

    # Persistence errors
    STORE_FAILURE = "STORE_FAILURE"


class EasyScheduleError(Exception):
    """
    Base exception for all EASY schedule errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for error reporting."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class ValidationError(EasyScheduleError):
    """Raised when schedule input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            details=error_details,
        )


class FormulaNotFoundError(EasyScheduleError):
    """Raised when a formula cannot be found or resolved for a profile."""

    def __init__(self, formula_id: Optional[str] = None, message: Optional[str] = None) -> None:
        super().__init__(
            message=message or f"Formula rule with ID '{formula_id}' not found",
            code=ErrorCode.FORMULA_NOT_FOUND,
            details={"formula_id": formula_id} if formula_id else None,
        )


class PermissionDeniedError(EasyScheduleError):
    """Raised when notification permission has not been granted."""

    def __init__(self, message: str = "Notification permission not granted") -> None:
        super().__init__(message=message, code=ErrorCode.PERMISSION_DENIED)


class NotificationSchedulingError(EasyScheduleError):
    """Raised when the notification service rejects a schedule or cancel request."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.NOTIFICATION_SCHEDULING_FAILED,
            details=details,
        )


class StoreError(EasyScheduleError):
    """Raised when a persistence read or write fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        super().__init__(
            message=message,
            code=ErrorCode.STORE_FAILURE,
            details=error_details,
        )
