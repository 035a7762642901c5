"""
Scheduling of merchant notifications.

Notifications leave the process only after the database transaction that
produced them commits, and only through the notify_merchant Celery task.
No row lock or transaction is ever held while a notifier runs.

Usage:
    from payments.notifications import (
        build_record_summary,
        dispatch_merchant_notification,
    )

    dispatch_merchant_notification(
        order.merchant_id,
        "payment_completed",
        build_record_summary(order, PaymentStatus.COMPLETED),
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction

from payments.state_machines import PaymentStatus

if TYPE_CHECKING:
    import uuid
    from typing import Any

    from payments.models import PaymentRecord

logger = logging.getLogger(__name__)


STATUS_MESSAGES = {
    PaymentStatus.COMPLETED: "Payment completed",
    PaymentStatus.FAILED: "Payment refunded",
    PaymentStatus.DISCREPANCY: "Payment bounced",
    PaymentStatus.EXPIRED: "Payment expired",
}


def build_record_summary(record: PaymentRecord, status: str) -> dict[str, Any]:
    """
    Summarize a record for its merchant.

    Example (order):
        {
            "message": "Payment completed",
            "order_id": "7d0f...",
            "number": "2025010100000001",
            "status": "COMPLETED",
            "display_amount": "25.00",
            "display_currency": "USD",
        }
    """
    return {
        "message": STATUS_MESSAGES.get(status, f"Payment {str(status).lower()}"),
        f"{str(record.record_type)}_id": str(record.pk),
        "number": record.number,
        "status": str(status),
        "display_amount": str(record.display_amount),
        "display_currency": record.display_currency,
    }


def build_expiry_summary(record_type: str, numbers: list[str]) -> dict[str, Any]:
    """Summarize every record of one merchant expired by a sweep."""
    record_type = str(record_type)
    noun = record_type if len(numbers) == 1 else f"{record_type}s"
    return {
        "message": f"{len(numbers)} {noun} expired",
        "count": len(numbers),
        "numbers": list(numbers),
    }


def dispatch_merchant_notification(
    merchant_id: uuid.UUID | str,
    event_name: str,
    payload: dict[str, Any],
) -> None:
    """
    Queue a notification for delivery once the current transaction commits.

    Outside a transaction the task is queued immediately. Failing to queue is
    logged and dropped; it never propagates to the caller.
    """
    merchant_id = str(merchant_id)

    def enqueue() -> None:
        # Import here to avoid circular imports
        from payments.tasks import notify_merchant

        try:
            notify_merchant.delay(merchant_id, event_name, payload)
        except Exception:
            logger.exception(
                "Could not queue merchant notification",
                extra={"merchant_id": merchant_id, "event_name": event_name},
            )

    transaction.on_commit(enqueue)


__all__ = [
    "STATUS_MESSAGES",
    "build_expiry_summary",
    "build_record_summary",
    "dispatch_merchant_notification",
]
