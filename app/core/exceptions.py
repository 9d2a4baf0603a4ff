"""
Base exception classes and the error taxonomy shared by every surface.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across REST and realtime surfaces
- Machine-readable error codes for client handling
- A single mapping from error code to HTTP status

Exception Hierarchy:
    BaseApplicationError (base, 500)
    ├── AuthenticationError - Missing/invalid/expired/revoked credential (401)
    ├── ValidationError - Malformed input, exclusivity violations (400)
    ├── PermissionDeniedError - Authenticated but not authorized (403)
    ├── NotFoundError - Referenced room/message/user absent (404)
    └── ConflictError - Duplicate membership or unique resource (409)

Usage:
    from core.exceptions import ErrorCode, NotFoundError

    # Raise with message only
    raise NotFoundError("Message not found")

    # Use the taxonomy codes with ServiceResult
    return ServiceResult.failure("Group chat not found", error_code=ErrorCode.NOT_FOUND)

Note:
    Services return ServiceResult for expected failures and use the same
    ErrorCode values, so views can map either form to a status code.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework import status

if TYPE_CHECKING:
    from typing import Any

    from rest_framework.response import Response

logger = logging.getLogger(__name__)


class ErrorCode:
    """Machine-readable error codes of the error taxonomy."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_STATUS_CODES: dict[str, int] = {
    ErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
        status_code: HTTP status used when rendered by the API

    Example:
        try:
            user = authenticate_token(raw_token)
        except AuthenticationError as e:
            logger.warning(f"Rejected credential: {e.error_code}")
    """

    default_error_code: str = ErrorCode.INTERNAL_ERROR
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Message not found",
                "error_code": "NOT_FOUND",
                "details": {"message_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class AuthenticationError(BaseApplicationError):
    """
    Raised when a bearer credential cannot be resolved to an active user.

    Covers a missing token, a bad signature, an expired token, an unknown
    or inactive user, and a credential-version mismatch.

    Note:
        Terminal for the current operation. On the realtime surface it only
        closes the connection when raised during the handshake.
    """

    default_error_code: str = ErrorCode.UNAUTHENTICATED
    status_code: int = status.HTTP_401_UNAUTHORIZED


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Missing required fields
    - Room reference exclusivity violations
    - Empty message payloads

    Note:
        For DRF serializer validation, use DRF's built-in validation.
        Use this for service-layer validation logic.
    """

    default_error_code: str = ErrorCode.INVALID_INPUT
    status_code: int = status.HTTP_400_BAD_REQUEST


class NotFoundError(BaseApplicationError):
    """Raised when a requested resource is not found."""

    default_error_code: str = ErrorCode.NOT_FOUND
    status_code: int = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when user lacks permission for an operation.

    Note:
        For authentication failures (missing/invalid token), use
        AuthenticationError. Use this for authorization failures.
    """

    default_error_code: str = ErrorCode.FORBIDDEN
    status_code: int = status.HTTP_403_FORBIDDEN


class ConflictError(BaseApplicationError):
    """
    Raised when operation conflicts with current resource state.

    Use for:
    - Duplicate membership
    - Unique constraint violations

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = ErrorCode.CONFLICT
    status_code: int = status.HTTP_409_CONFLICT


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    """
    DRF exception handler.

    DRF's own exceptions keep their default rendering. Application errors
    are rendered with their status code. Anything else is logged with a
    traceback and answered with a generic 500 that leaks no detail.
    """
    # Imported here: rest_framework.views loads the authentication classes,
    # which import this module.
    from rest_framework.response import Response
    from rest_framework.views import exception_handler

    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, BaseApplicationError):
        return Response(exc.to_dict(), status=exc.status_code)

    view = context.get("view")
    logger.error(
        f"Unhandled exception in {view.__class__.__name__ if view else 'unknown view'}",
        exc_info=exc,
    )
    return Response(
        {"error": "Internal server error", "error_code": ErrorCode.INTERNAL_ERROR},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
