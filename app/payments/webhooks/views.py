"""
Processor webhook endpoint.

POST /api/v1/payments/webhooks/processor/

Response codes:
    200: Applied, duplicate, stale, or ignored test event
    400: Malformed payload, unknown event, or payload/record mismatch
    401: Missing or invalid shared secret
    404: No order or deposit with the correlation number
    500: Webhook secret not configured, or storage failure
"""

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError

from payments.webhooks.ingestor import WebhookIngestor
from payments.webhooks.serializers import (
    ProcessorWebhookSerializer,
    WebhookAcknowledgementSerializer,
    WebhookErrorSerializer,
)

logger = logging.getLogger(__name__)


class ProcessorWebhookView(APIView):
    """
    Payment processor status callback.

    Authenticated by the shared secret in the Authorization header, not by
    DRF authentication classes.
    """

    permission_classes = [AllowAny]
    authentication_classes = []  # Shared-secret validation in the ingestor
    throttle_classes = []  # The processor retries; throttling would drop updates

    def get_ingestor(self) -> WebhookIngestor:
        return WebhookIngestor()

    @extend_schema(
        operation_id="processor_payment_webhook",
        summary="Payment processor callback",
        description=(
            "Receives payment status notifications from the processor and applies "
            "them to the matching order or deposit. Requires "
            "'Authorization: Basic <webhook secret>'. Duplicate and out-of-order "
            "deliveries are acknowledged with 200 and change nothing."
        ),
        request=ProcessorWebhookSerializer,
        responses={
            200: WebhookAcknowledgementSerializer,
            400: OpenApiResponse(
                response=WebhookErrorSerializer,
                description="Invalid payload, unknown event, or record mismatch",
            ),
            401: OpenApiResponse(
                response=WebhookErrorSerializer,
                description="Missing or invalid webhook secret",
            ),
            404: OpenApiResponse(
                response=WebhookErrorSerializer,
                description="No order or deposit with this number",
            ),
            500: OpenApiResponse(
                response=WebhookErrorSerializer,
                description="Server configuration or storage error",
            ),
        },
        tags=["Payments - Webhooks"],
    )
    def post(self, request):
        """Handle one processor notification."""
        ingestor = self.get_ingestor()
        try:
            ingestor.authenticate(request.headers.get("Authorization"))
            result = ingestor.ingest(request.data)
        except BaseApplicationError as exc:
            return Response(exc.to_dict(), status=exc.http_status)

        return Response(result.to_response(), status=status.HTTP_200_OK)
