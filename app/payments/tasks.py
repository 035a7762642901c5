"""
Celery tasks for the payment record lifecycle.

This module provides async tasks for:
- Delivering merchant notifications (retried with backoff)
- Running the periodic expiration sweep (scheduled by celery-beat)

Usage:
    from payments.tasks import expire_stale_records, notify_merchant

    # Normally queued by payments.notifications after commit
    notify_merchant.delay(str(merchant_id), "payment_completed", payload)

    # Normally scheduled by celery-beat (see migration 0002)
    expire_stale_records.delay()
"""

from __future__ import annotations

import logging
from typing import Any

from celery import shared_task

from payments.exceptions import NotificationDeliveryError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MAX_NOTIFICATION_RETRIES = 3


# =============================================================================
# Notification Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(NotificationDeliveryError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_NOTIFICATION_RETRIES},
    acks_late=True,
)
def notify_merchant(
    self, merchant_id: str, event_name: str, payload: dict[str, Any]
) -> dict:
    """
    Deliver one merchant notification through the configured notifier.

    Args:
        merchant_id: Merchant to notify
        event_name: Event name, e.g. "payment_completed" or "orders_expired"
        payload: Event body

    Returns:
        Dict with delivery status

    Raises:
        NotificationDeliveryError: Re-raised to trigger Celery retry mechanism
    """
    # Import here to avoid circular imports
    from payments.notifiers import get_notifier

    result = get_notifier().notify(merchant_id, event_name, payload)

    if not result.success:
        logger.warning(
            "Merchant notification failed",
            extra={
                "merchant_id": merchant_id,
                "event_name": event_name,
                "error": result.error,
                "retries": self.request.retries,
            },
        )
        raise NotificationDeliveryError(
            result.error or "Notifier reported failure",
            details={"merchant_id": merchant_id, "event_name": event_name},
        )

    logger.info(
        "Merchant notification delivered",
        extra={"merchant_id": merchant_id, "event_name": event_name},
    )
    return {"status": "delivered", "merchant_id": merchant_id, "event": event_name}


# =============================================================================
# Expiration Tasks
# =============================================================================


@shared_task(bind=True, acks_late=True)
def expire_stale_records(self) -> dict:
    """
    Run one expiration sweep over orders and deposits.

    Scheduled every minute by celery-beat. Storage errors are counted in
    the result and retried by the next scheduled run.

    Returns:
        Dict with sweep statistics (totalExpired, updatedOrders, ...)
    """
    # Import here to avoid circular imports
    from payments.services.sweeper import ExpirationSweeper

    stats = ExpirationSweeper().run()
    return stats.to_dict()


__all__ = [
    "MAX_NOTIFICATION_RETRIES",
    "expire_stale_records",
    "notify_merchant",
]
