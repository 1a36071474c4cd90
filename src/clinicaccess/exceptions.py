"""
Exception classes for the ClinicAccess SDK.
"""

from __future__ import annotations

from typing import Any


class ClinicAccessError(Exception):
    """Base exception for ClinicAccess SDK errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Any | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.status_code = status_code


class ValidationError(ClinicAccessError):
    """Raised when input fails local validation, before any request is sent."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", details)


class InvalidTransitionError(ClinicAccessError):
    """Raised when a workflow step is requested from a state that forbids it."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message, "INVALID_TRANSITION", details)


class VerificationFailure(ClinicAccessError):
    """Raised when an MFA code is rejected.

    The message is deliberately the same whatever the server-side cause.
    """

    def __init__(
        self,
        message: str = "Invalid verification code. Please try again.",
        details: Any | None = None,
    ) -> None:
        super().__init__(message, "VERIFICATION_FAILED", details)


class DenialError(ClinicAccessError):
    """Raised when the server explicitly refuses a well-formed request."""

    def __init__(
        self,
        message: str,
        code: str = "DENIED",
        details: Any | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, code, details, status_code)


class BadRequestError(DenialError):
    """Raised when the server rejects a request with a structured 400."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message, "BAD_REQUEST", details, 400)


class AuthenticationError(DenialError):
    """Raised when authentication fails."""

    def __init__(
        self, message: str = "Authentication failed", details: Any | None = None
    ) -> None:
        super().__init__(message, "AUTHENTICATION_ERROR", details, 401)


class AuthorizationError(DenialError):
    """Raised when authorization fails."""

    def __init__(
        self, message: str = "Insufficient permissions", details: Any | None = None
    ) -> None:
        super().__init__(message, "AUTHORIZATION_ERROR", details, 403)


class NotFoundError(DenialError):
    """Raised when a resource is not found."""

    def __init__(
        self, message: str = "Resource not found", details: Any | None = None
    ) -> None:
        super().__init__(message, "NOT_FOUND_ERROR", details, 404)


class ConflictError(DenialError):
    """Raised when a resource conflict occurs."""

    def __init__(
        self, message: str = "Resource conflict", details: Any | None = None
    ) -> None:
        super().__init__(message, "CONFLICT_ERROR", details, 409)


class RateLimitError(DenialError):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message, "RATE_LIMIT_ERROR", details, 429)
        self.retry_after = retry_after


class TransportError(ClinicAccessError):
    """Raised when the service cannot be reached or gives no usable answer."""

    def __init__(
        self,
        message: str = "Service unavailable",
        code: str = "TRANSPORT_ERROR",
        details: Any | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, code, details, status_code)


class ServerError(TransportError):
    """Raised when a server error occurs."""

    def __init__(
        self,
        message: str = "Internal server error",
        details: Any | None = None,
        status_code: int = 500,
    ) -> None:
        super().__init__(message, "SERVER_ERROR", details, status_code)


class NetworkError(TransportError):
    """Raised when a network error occurs."""

    def __init__(
        self, message: str = "Network error", details: Any | None = None
    ) -> None:
        super().__init__(message, "NETWORK_ERROR", details)


class TimeoutError(TransportError):  # noqa: A001
    """Raised when a request times out."""

    def __init__(
        self, message: str = "Request timeout", details: Any | None = None
    ) -> None:
        super().__init__(message, "TIMEOUT_ERROR", details)


def create_error_from_response(
    status_code: int,
    error_response: dict[str, Any | None] | None = None,
    *,
    structured: bool = True,
    default_message: str | None = None,
) -> ClinicAccessError:
    """Create an appropriate error instance based on HTTP status code and error response.

    A 4xx only counts as a denial when the body carried a message the server
    meant for us; anything else is a transport problem.
    """
    message = (error_response or {}).get(
        "message", default_message or "An error occurred"
    )
    code = (error_response or {}).get("code", "UNKNOWN_ERROR")
    details = (error_response or {}).get("details")

    message_str = str(message) if message is not None else "An error occurred"
    code_str = str(code) if code is not None else "UNKNOWN_ERROR"

    if status_code >= 500:
        return ServerError(message_str, details, status_code)
    if not structured:
        return TransportError(message_str, "UNSTRUCTURED_RESPONSE", details, status_code)

    if status_code == 400:
        return BadRequestError(message_str, details)
    elif status_code == 401:
        return AuthenticationError(message_str, details)
    elif status_code == 403:
        return AuthorizationError(message_str, details)
    elif status_code == 404:
        return NotFoundError(message_str, details)
    elif status_code == 409:
        return ConflictError(message_str, details)
    elif status_code == 429:
        retry_after = (error_response or {}).get("retry_after")
        return RateLimitError(message_str, retry_after, details)
    else:
        return DenialError(message_str, code_str, details, status_code)


def is_retryable_error(error: Exception) -> bool:
    """Check if an error is retryable (network errors, timeouts and 5xx server errors)."""
    if isinstance(error, (NetworkError, TimeoutError, ServerError)):
        return True

    if isinstance(error, ClinicAccessError) and error.status_code:
        return error.status_code >= 500

    return False
