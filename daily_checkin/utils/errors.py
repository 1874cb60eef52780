"""Custom exception classes for check-in and distribution errors.

Domain outcomes such as "already checked in" or "code pending" are result
variants, not exceptions. Everything here is either a request problem, an
admin-facing inventory problem, or an infrastructure failure.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"

    # Authentication errors
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    AUTH_USER_NOT_FOUND = "AUTH_USER_NOT_FOUND"
    AUTH_ACCOUNT_INACTIVE = "AUTH_ACCOUNT_INACTIVE"

    # User errors
    USER_NOT_FOUND = "USER_NOT_FOUND"
    MALFORMED_USER_STATE = "MALFORMED_USER_STATE"

    # Check-in errors
    CHECKIN_RETRYABLE = "CHECKIN_RETRYABLE"

    # Inventory / distribution errors
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    INVALID_CODES = "INVALID_CODES"
    CODE_NOT_FOUND = "CODE_NOT_FOUND"

    # Level table errors
    INVALID_LEVEL_TABLE = "INVALID_LEVEL_TABLE"


class CheckinAppError(Exception):
    """Base exception for application errors.

    Attributes:
        code: Error code for programmatic handling
        message: User-friendly error message
        details: Additional error details
        status_code: HTTP status the API layer should use
        headers: Extra response headers for the API layer
    """

    status_code = 400
    headers: dict[str, str] | None = None

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidRequestError(CheckinAppError):
    """Raised when request parameters are out of range."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(ErrorCode.INVALID_REQUEST, message, details)


class UserNotFoundError(CheckinAppError):
    """Raised when the authenticated user id has no user row."""

    status_code = 404

    def __init__(self, user_id: str):
        super().__init__(
            ErrorCode.USER_NOT_FOUND,
            f"User not found: {user_id}",
            {"userId": user_id},
        )


class MalformedUserStateError(CheckinAppError):
    """Raised when stored counters violate their invariants (fatal)."""

    status_code = 500

    def __init__(self, user_id: str, field: str, value: Any):
        super().__init__(
            ErrorCode.MALFORMED_USER_STATE,
            f"User {user_id} has invalid {field}: {value}",
            {"userId": user_id, "field": field, "value": str(value)},
        )


class CheckinRetryableError(CheckinAppError):
    """Raised when a check-in kept failing on transient persistence errors.

    Nothing was committed; the caller may retry with the same request.
    """

    status_code = 503
    headers = {"Retry-After": "1"}

    def __init__(self, attempts: int, reason: str):
        super().__init__(
            ErrorCode.CHECKIN_RETRYABLE,
            "Check-in temporarily unavailable, please retry",
            {"attempts": attempts, "reason": reason},
        )


class InventoryError(CheckinAppError):
    """Raised for admin distribution requests the stock cannot satisfy."""

    def __init__(self, required: int, available: int, amount: Any = None):
        message = f"Insufficient inventory: required {required}, available {available}"
        if amount is not None:
            message += f" (amount {amount})"
        super().__init__(
            ErrorCode.INSUFFICIENT_INVENTORY,
            message,
            {
                "required": required,
                "available": available,
                "amount": str(amount) if amount is not None else None,
            },
        )


class InvalidCodesError(CheckinAppError):
    """Raised when an upload contains no usable codes."""

    def __init__(self, message: str = "No valid redemption codes found"):
        super().__init__(ErrorCode.INVALID_CODES, message)


class CodeNotFoundError(CheckinAppError):
    """Raised when a code does not exist or belongs to someone else."""

    status_code = 404

    def __init__(self, code_id: int):
        super().__init__(
            ErrorCode.CODE_NOT_FOUND,
            "Redemption code not found",
            {"codeId": code_id},
        )


class InvalidLevelTableError(CheckinAppError):
    """Raised when an admin submits an inconsistent level table."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.INVALID_LEVEL_TABLE, message)


class AuthenticationError(CheckinAppError):
    """Raised when a request has no usable bearer token."""

    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(code, message)


class AccountInactiveError(CheckinAppError):
    """Raised when a valid token belongs to a suspended or banned account."""

    status_code = 403

    def __init__(self, user_id: str, account_status: str):
        super().__init__(
            ErrorCode.AUTH_ACCOUNT_INACTIVE,
            f"Account is {account_status}",
            {"userId": user_id},
        )


class AdminAuthError(CheckinAppError):
    """Raised when an admin request carries a missing or wrong API key."""

    status_code = 401

    def __init__(self):
        super().__init__(ErrorCode.UNAUTHORIZED, "Invalid API key")
