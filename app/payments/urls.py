"""
URL configuration for the payments app.

Routes:
    - POST /webhooks/processor/ - Payment processor webhook
    - POST /sweeper/ - Run one expiration sweep
    - POST /sweeper/trigger/ - Manual expiration sweep
    - GET /sweeper/health/ - Sweeper liveness

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.views import SweeperHealthView, SweepView
from payments.webhooks.views import ProcessorWebhookView

app_name = "payments"

urlpatterns = [
    # Webhook endpoints
    path(
        "webhooks/processor/",
        ProcessorWebhookView.as_view(),
        name="processor_webhook",
    ),
    # Expiration sweeper
    path("sweeper/", SweepView.as_view(), name="sweeper"),
    path("sweeper/trigger/", SweepView.as_view(), name="sweeper_trigger"),
    path("sweeper/health/", SweeperHealthView.as_view(), name="sweeper_health"),
]
