"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the service
- Machine-readable error codes for processor and operator tooling
- A single place that maps domain failures onto HTTP status codes

Exception Hierarchy:
    BaseApplicationError (base, 500)
    ├── ValidationError - Input validation failures (400)
    ├── AuthenticationError - Caller could not be authenticated (401)
    └── NotFoundError - Resource not found (404)

Usage:
    from core.exceptions import ValidationError, NotFoundError

    raise ValidationError("Invalid amount", error_code="INVALID_AMOUNT")

    raise ValidationError(
        "Validation failed",
        details={"reasons": ["merchant mismatch"]},
    )

    # Convert to dict for API response
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, reasons, etc.)
        http_status: Status code used when the error reaches an API view
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Order not found",
                "error_code": "RECORD_NOT_FOUND",
                "details": {"number": "2025010100000001"}
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


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for missing or malformed fields and for business rule violations
    detected in the service layer. DRF serializers still handle pure shape
    validation; their errors are wrapped into this type by the caller.
    """

    default_error_code: str = "VALIDATION_ERROR"
    http_status: int = 400


class AuthenticationError(BaseApplicationError):
    """
    Raised when a machine caller fails authentication.

    Use for shared-secret and bearer-token checks on endpoints that do not go
    through DRF's authentication classes.
    """

    default_error_code: str = "AUTHENTICATION_FAILED"
    http_status: int = 401


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        record = Order.objects.filter(number=number).first()
        if record is None:
            raise NotFoundError(
                f"Order {number} not found",
                details={"number": number},
            )
    """

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404
