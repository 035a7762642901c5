"""
Merchant notifier backends.

A notifier pushes a short event to a merchant's live dashboard. Delivery is
best effort: callers schedule it through payments.notifications, and
failures are retried by Celery without ever affecting the operation that
produced the event.

Available Backends:
    ChannelLayerNotifier: Publishes to the merchant's Channels group (default)
    LoggingNotifier: Writes the event to the log only (local development)

The backend is chosen by settings.PAYMENT_NOTIFIER_BACKEND and created per
use by get_notifier(); nothing here is a module-level singleton.

Usage:
    from payments.notifiers import get_notifier

    result = get_notifier().notify(
        merchant_id, "payment_completed", {"order_id": "...", "message": "..."}
    )
    if not result.success:
        logger.warning(result.error)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from asgiref.sync import async_to_sync
from channels.layers import DEFAULT_CHANNEL_LAYER, get_channel_layer
from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotifyResult:
    """Outcome of one delivery attempt."""

    success: bool
    error: str | None = None


@runtime_checkable
class MerchantNotifier(Protocol):
    """
    Protocol for merchant notification backends.

    Implementations report failures through NotifyResult instead of raising,
    so a broken backend can never fail the caller.
    """

    def notify(
        self, merchant_id: str, event_name: str, payload: dict[str, Any]
    ) -> NotifyResult: ...


def merchant_group_name(merchant_id: str) -> str:
    """Channels group a merchant's dashboard connections subscribe to."""
    return f"merchant.{merchant_id}"


class ChannelLayerNotifier:
    """
    Publish notifications to the merchant's group on a Channels layer.

    Message shape received by group members:
        {
            "type": "merchant.notification",
            "event": "payment_completed",
            "payload": {..., "timestamp": "2025-01-01T00:00:00+00:00"},
        }
    """

    message_type = "merchant.notification"

    def __init__(
        self,
        channel_layer=None,
        alias: str = DEFAULT_CHANNEL_LAYER,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self._channel_layer = channel_layer
        self._alias = alias
        self._clock = clock

    def notify(
        self, merchant_id: str, event_name: str, payload: dict[str, Any]
    ) -> NotifyResult:
        channel_layer = self._channel_layer or get_channel_layer(self._alias)
        if channel_layer is None:
            return NotifyResult(
                success=False,
                error=f"No channel layer configured for alias {self._alias!r}",
            )

        message = {
            "type": self.message_type,
            "event": event_name,
            "payload": {**payload, "timestamp": self._clock().isoformat()},
        }

        try:
            async_to_sync(channel_layer.group_send)(
                merchant_group_name(str(merchant_id)), message
            )
        except Exception as exc:
            # Redis and layer errors share no base class; report, don't raise
            logger.exception(
                "Channel layer rejected merchant notification",
                extra={"merchant_id": str(merchant_id), "event_name": event_name},
            )
            return NotifyResult(success=False, error=str(exc) or exc.__class__.__name__)

        return NotifyResult(success=True)


class LoggingNotifier:
    """Log notifications instead of delivering them."""

    def notify(
        self, merchant_id: str, event_name: str, payload: dict[str, Any]
    ) -> NotifyResult:
        logger.info(
            f"Merchant notification: {event_name}",
            extra={
                "merchant_id": str(merchant_id),
                "event_name": event_name,
                "payload": payload,
            },
        )
        return NotifyResult(success=True)


def get_notifier() -> MerchantNotifier:
    """Instantiate the backend named by settings.PAYMENT_NOTIFIER_BACKEND."""
    backend_class = import_string(settings.PAYMENT_NOTIFIER_BACKEND)
    return backend_class()


__all__ = [
    "ChannelLayerNotifier",
    "LoggingNotifier",
    "MerchantNotifier",
    "NotifyResult",
    "get_notifier",
    "merchant_group_name",
]
