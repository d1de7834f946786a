"""
Domain exceptions for the Tourbook API.

Services raise these; ``tourbook.error_handlers`` turns them into HTTP
responses. Every error carries a stable ``code`` next to its message.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TourbookError(Exception):
    """Base exception for all domain errors."""

    status_code = 500
    default_code = "server_error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "status": "fail" if self.status_code < 500 else "error",
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(TourbookError):
    """Input validation failed (bad shape, mismatched confirmation)."""

    status_code = 400
    default_code = "validation_error"


class AuthenticationError(TourbookError):
    """Wrong credentials or unusable session."""

    status_code = 401
    default_code = "invalid_credentials"


class NotAuthenticatedError(AuthenticationError):
    """No bearer token was supplied at all."""

    default_code = "not_authenticated"

    def __init__(self, message: str = "You are not logged in! Please log in to get access."):
        super().__init__(message)


class SessionInvalidError(AuthenticationError):
    """
    A token was supplied but cannot be honoured.

    ``reason`` records which check failed (invalid_token, user_missing,
    password_changed). It is for logs and tests only; the response message
    is the same for all of them.
    """

    default_code = "authentication_failed"

    def __init__(self, reason: str):
        super().__init__("Your session is no longer valid. Please log in again.")
        self.reason = reason


class AuthorizationError(TourbookError):
    """Authenticated, but the role is not allowed on this route."""

    status_code = 403
    default_code = "forbidden"

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message)


class NotFoundError(TourbookError):
    status_code = 404
    default_code = "not_found"


class ConflictError(TourbookError):
    """Unique constraint violated (duplicate email)."""

    status_code = 409
    default_code = "conflict"


class PayloadTooLargeError(TourbookError):
    status_code = 413
    default_code = "payload_too_large"


class RateLimitError(TourbookError):
    """Too many requests from one client inside the current window."""

    status_code = 429
    default_code = "too_many_requests"

    def __init__(self, retry_after: int):
        super().__init__("Too many requests from this IP, please try again later.")
        self.retry_after = retry_after


class InternalError(TourbookError):
    """Store or notification failure. Detail is logged, never returned."""

    status_code = 500
    default_code = "server_error"
