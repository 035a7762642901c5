"""
DRF views for the expiration sweeper.

Endpoints:
    POST /api/v1/payments/sweeper/ - Run one sweep
    POST /api/v1/payments/sweeper/trigger/ - Manual sweep, same contract
    GET /api/v1/payments/sweeper/health/ - Liveness only, never mutates

Security:
    - Sweep endpoints require the sweeper bearer token when configured
    - The health endpoint is public
"""

from __future__ import annotations

import logging

from django.utils import timezone
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.permissions import IsSweeperCaller, SweeperTokenAuthentication
from payments.serializers import SweeperHealthSerializer, SweepResultSerializer
from payments.services.sweeper import ExpirationSweeper

logger = logging.getLogger(__name__)


class SweepView(APIView):
    """
    Run one expiration sweep.

    Safe to call at any time and any number of times: a second call right
    after the first expires nothing.
    """

    authentication_classes = [SweeperTokenAuthentication]
    permission_classes = [IsSweeperCaller]
    throttle_classes = []

    def get_sweeper(self) -> ExpirationSweeper:
        return ExpirationSweeper()

    @extend_schema(
        operation_id="run_expiration_sweep",
        summary="Run expiration sweep",
        description=(
            "Moves PENDING orders and deposits past their deadline to EXPIRED and "
            "notifies their merchants. Returns 500 when a table could not be swept; "
            "the next run retries it."
        ),
        request=None,
        responses={
            200: SweepResultSerializer,
            401: OpenApiResponse(description="Missing or invalid sweeper token"),
            500: OpenApiResponse(
                response=SweepResultSerializer,
                description="At least one table failed to sweep",
            ),
        },
        tags=["Payments - Sweeper"],
    )
    def post(self, request):
        """Run the sweep and report what it did."""
        stats = self.get_sweeper().run()
        succeeded = stats.errors == 0

        if not succeeded:
            logger.error(
                "Manual sweep finished with storage errors",
                extra={"errors": stats.errors},
            )

        body = {
            "success": succeeded,
            "message": (
                "Expired records processed"
                if succeeded
                else "Expiration sweep finished with errors"
            ),
            **stats.to_dict(),
        }
        return Response(
            body,
            status=status.HTTP_200_OK
            if succeeded
            else status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class SweeperHealthView(APIView):
    """Liveness probe for the sweeper. Touches no records."""

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = []

    @extend_schema(
        operation_id="expiration_sweeper_health",
        summary="Sweeper liveness",
        responses={200: SweeperHealthSerializer},
        tags=["Payments - Sweeper"],
    )
    def get(self, request):
        return Response(
            {
                "success": True,
                "message": "Expiration sweeper is running",
                "timestamp": timezone.now().isoformat(),
            }
        )
