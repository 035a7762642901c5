"""
Pytest fixtures for payment tests.

Fixtures provide records in each lifecycle status and helpers to build and
send processor webhook deliveries.

Usage:
    def test_completes(post_webhook, pending_order):
        response = post_webhook(webhook_payload(pending_order, "payment_completed"))
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from payments.state_machines import PaymentStatus
from payments.tests.factories import DepositFactory, OrderFactory

WEBHOOK_URL = "/api/v1/payments/webhooks/processor/"
WEBHOOK_SECRET = "test-webhook-secret"


def webhook_payload(record, event, **overrides):
    """
    Build a processor delivery that matches ``record``.

    Keyword overrides replace top-level keys; pass payment=... to replace the
    whole payment object.
    """
    payload = {
        "type": event,
        "paymentId": record.payment_id,
        "isTestEvent": False,
        "payment": {
            "id": record.payment_id,
            "externalId": record.number,
            "metadata": {
                "number": record.number,
                "merchantId": str(record.merchant_id),
                "destinationAddress": record.merchant_address,
            },
            "source": {
                "txHash": "0x5f1d3c9e7b2a4c6d8e0f1a3b5c7d9e1f3a5b7c9d1e3f5a7b9c1d3e5f7a9b1c3d",
                "chainId": 1,
                "tokenAddress": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
                "amountUnits": "25.000000",
            },
            "destination": {
                "destinationAddress": record.merchant_address,
                "chainId": int(record.merchant_chain_id),
                "tokenAddress": record.required_token,
                "amountUnits": str(record.required_amount_usd),
            },
        },
    }
    payload.update(overrides)
    return payload


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def post_webhook(api_client):
    """Send a delivery to the webhook endpoint with the shared secret."""

    def _post(payload, authorization=f"Basic {WEBHOOK_SECRET}"):
        headers = {"HTTP_AUTHORIZATION": authorization} if authorization else {}
        return api_client.post(WEBHOOK_URL, payload, format="json", **headers)

    return _post


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def pending_order(db):
    """Create a PENDING order that has not expired."""
    return OrderFactory(number="2025010100000001")


@pytest.fixture
def processing_order(db):
    """Create an order the processor reported as started."""
    return OrderFactory(status=PaymentStatus.PROCESSING)


@pytest.fixture
def completed_order(db):
    """Create an order that reached COMPLETED."""
    return OrderFactory(status=PaymentStatus.COMPLETED)


@pytest.fixture
def expired_order(db):
    """Create an order the sweeper expired."""
    return OrderFactory(status=PaymentStatus.EXPIRED)


@pytest.fixture
def pending_deposit(db):
    """Create a PENDING deposit that has not expired."""
    return DepositFactory()
