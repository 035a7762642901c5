"""
Webhook handling for payment processor notifications.

Deliveries are authenticated, validated against the stored record and
applied synchronously through the transition authority. Only merchant
notifications are deferred to Celery.

Usage:
    # In urls.py
    from payments.webhooks.views import ProcessorWebhookView

    urlpatterns = [
        path(
            "webhooks/processor/",
            ProcessorWebhookView.as_view(),
            name="processor_webhook",
        ),
    ]
"""

from payments.webhooks.events import (
    EVENT_TARGET_STATUS,
    normalize_event_name,
    resolve_target_status,
)
from payments.webhooks.ingestor import WebhookIngestor, WebhookResult

__all__ = [
    "EVENT_TARGET_STATUS",
    "WebhookIngestor",
    "WebhookResult",
    "normalize_event_name",
    "resolve_target_status",
]
