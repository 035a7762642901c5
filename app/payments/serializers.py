"""
DRF serializers for the sweeper endpoints.

Response-only serializers; they exist so drf-spectacular can describe the
payloads. Webhook payload serializers live in payments.webhooks.serializers.
"""

from __future__ import annotations

from rest_framework import serializers


class SweepResultSerializer(serializers.Serializer):
    """Statistics for one expiration sweep."""

    success = serializers.BooleanField()
    message = serializers.CharField()
    totalExpired = serializers.IntegerField()  # noqa: N815
    updatedOrders = serializers.IntegerField()  # noqa: N815
    updatedDeposits = serializers.IntegerField()  # noqa: N815
    errors = serializers.IntegerField(help_text="Tables that failed this run")
    processingTimeMs = serializers.IntegerField()  # noqa: N815
    expiredNumbers = serializers.ListField(child=serializers.CharField())  # noqa: N815


class SweeperHealthSerializer(serializers.Serializer):
    """Liveness response for the sweeper."""

    success = serializers.BooleanField()
    message = serializers.CharField()
    timestamp = serializers.DateTimeField()
