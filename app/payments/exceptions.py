"""
Payment-specific exceptions for the record lifecycle.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentValidationError - Payload or terms failed validation (400)
    │   ├── WebhookValidationError - Notification inconsistent with record
    │   └── UnknownWebhookEventError - Event type has no target status
    ├── WebhookAuthenticationError - Processor shared secret rejected (401)
    ├── PaymentNotFoundError - No order or deposit matches (404)
    ├── WebhookConfigurationError - Webhook secret not configured (500)
    ├── RecordStorageError - Database failed during a transition (500)
    └── NotificationDeliveryError - Notifier reported a failure

Stale and duplicate notifications are not errors. They come back from the
transition authority as TransitionOutcome values and are acknowledged.

Usage:
    from payments.exceptions import WebhookValidationError

    raise WebhookValidationError(
        "Notification does not match order 2025010100000001",
        details={"reasons": ["merchant_id mismatch"]},
    )

    try:
        authority.try_transition(ref, PaymentStatus.COMPLETED, fields)
    except RecordStorageError as e:
        return Response(e.to_dict(), status=e.http_status)
"""

from __future__ import annotations

from core.exceptions import (
    AuthenticationError,
    BaseApplicationError,
    NotFoundError,
    ValidationError,
)


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment lifecycle operations.

    Subclasses combine this with a core exception to pick up its HTTP status.
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentValidationError(PaymentError, ValidationError):
    """Raised when payment data fails validation."""

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class PaymentNotFoundError(PaymentError, NotFoundError):
    """
    Raised when no order or deposit matches a correlation number or id.

    Example:
        raise PaymentNotFoundError(
            f"No order or deposit with number {number}",
            details={"number": number},
        )
    """

    default_error_code: str = "RECORD_NOT_FOUND"


class RecordStorageError(PaymentError):
    """
    Raised when the database fails while reading or writing a record.

    The conditional update either ran completely or not at all, so callers
    only have to decide whether to retry.
    """

    default_error_code: str = "RECORD_STORAGE_ERROR"


class NotificationDeliveryError(PaymentError):
    """
    Raised inside the notification task so Celery retries the delivery.

    Never propagates to a webhook response or a sweep.
    """

    default_error_code: str = "NOTIFICATION_DELIVERY_FAILED"


# =============================================================================
# Webhook Exceptions
# =============================================================================


class WebhookAuthenticationError(PaymentError, AuthenticationError):
    """Raised when the processor's shared secret is missing or wrong."""

    default_error_code: str = "WEBHOOK_UNAUTHORIZED"


class WebhookConfigurationError(PaymentError):
    """Raised when the webhook secret is not configured on this server."""

    default_error_code: str = "WEBHOOK_NOT_CONFIGURED"


class WebhookValidationError(PaymentValidationError):
    """
    Raised when a notification is malformed or contradicts the stored record.

    details["reasons"] lists every failed check, not just the first.
    """

    default_error_code: str = "WEBHOOK_VALIDATION_FAILED"


class UnknownWebhookEventError(PaymentValidationError):
    """Raised for event types that do not map to a status."""

    default_error_code: str = "UNKNOWN_EVENT_TYPE"


__all__ = [
    "PaymentError",
    "PaymentValidationError",
    "PaymentNotFoundError",
    "RecordStorageError",
    "NotificationDeliveryError",
    "WebhookAuthenticationError",
    "WebhookConfigurationError",
    "WebhookValidationError",
    "UnknownWebhookEventError",
]
