"""
Payments app configuration.

This app owns the order/deposit lifecycle:
- Order and Deposit records
- Processor webhook ingestion
- Expiration sweeps and merchant notifications
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
