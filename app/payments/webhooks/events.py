"""
Processor event types and the status each one requests.

The processor has sent both "payment_completed" and "payment.completed"
spellings; both normalize to "payment_completed".

Usage:
    from payments.webhooks.events import resolve_target_status

    resolve_target_status("payment.started")  # PaymentStatus.PROCESSING
"""

from __future__ import annotations

from payments.exceptions import UnknownWebhookEventError
from payments.state_machines import PaymentStatus

EVENT_PREFIX = "payment_"

EVENT_TARGET_STATUS: dict[str, PaymentStatus] = {
    "payment_started": PaymentStatus.PROCESSING,
    "payment_completed": PaymentStatus.COMPLETED,
    "payment_bounced": PaymentStatus.DISCREPANCY,
    "payment_refunded": PaymentStatus.FAILED,
}


def normalize_event_name(raw: str) -> str:
    """Return the canonical "payment_<kind>" spelling of an event type."""
    name = raw.strip().lower().replace(".", "_")
    if not name.startswith(EVENT_PREFIX):
        name = f"{EVENT_PREFIX}{name}"
    return name


def resolve_target_status(raw: str) -> PaymentStatus:
    """
    Map an event type to the status it requests.

    Raises:
        UnknownWebhookEventError: The event type has no mapping
    """
    name = normalize_event_name(raw)
    try:
        return EVENT_TARGET_STATUS[name]
    except KeyError:
        raise UnknownWebhookEventError(
            f"Unsupported event type: {raw}",
            details={
                "event": raw,
                "supported": sorted(EVENT_TARGET_STATUS),
            },
        ) from None
