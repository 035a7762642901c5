"""
Integration tests for the processor webhook endpoint.

Requests go through the full DRF stack. Notification tasks are patched and
on_commit callbacks captured so the tests can assert what would have been
queued after commit.
"""

from unittest.mock import MagicMock, patch

import pytest
from django.db import OperationalError

from payments.exceptions import RecordStorageError
from payments.state_machines import PaymentStatus
from payments.tests.conftest import webhook_payload
from payments.tests.factories import DepositFactory
from payments.webhooks.ingestor import WebhookIngestor


@pytest.fixture
def notify_task():
    with patch("payments.tasks.notify_merchant") as task:
        yield task


# =============================================================================
# Lifecycle Scenarios
# =============================================================================


class TestOrderLifecycleScenario:
    """Started, completed, then a late started for one order."""

    def test_full_lifecycle(
        self,
        post_webhook,
        pending_order,
        notify_task,
        django_capture_on_commit_callbacks,
    ):
        """Order moves PENDING → PROCESSING → COMPLETED and ignores the late event."""
        assert pending_order.number == "2025010100000001"

        with django_capture_on_commit_callbacks(execute=True):
            response = post_webhook(webhook_payload(pending_order, "payment_started"))

        assert response.status_code == 200
        assert response.data["outcome"] == "applied"
        assert response.data["status"] == "PROCESSING"
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.PROCESSING
        assert pending_order.source_txn_hash is not None
        notify_task.delay.assert_not_called()

        with django_capture_on_commit_callbacks(execute=True):
            response = post_webhook(webhook_payload(pending_order, "payment.completed"))

        assert response.status_code == 200
        assert response.data["outcome"] == "applied"
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.COMPLETED

        notify_task.delay.assert_called_once()
        merchant_id, event_name, payload = notify_task.delay.call_args.args
        assert merchant_id == str(pending_order.merchant_id)
        assert event_name == "payment_completed"
        assert payload["order_id"] == str(pending_order.pk)
        assert payload["display_amount"] == "25.00"
        assert payload["display_currency"] == "USD"

        with django_capture_on_commit_callbacks(execute=True):
            response = post_webhook(webhook_payload(pending_order, "payment_started"))

        assert response.status_code == 200
        assert response.data["outcome"] == "ignored_stale"
        assert response.data["status"] == "COMPLETED"
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.COMPLETED
        assert notify_task.delay.call_count == 1

    def test_repeated_deliveries_notify_once(
        self,
        post_webhook,
        pending_order,
        notify_task,
        django_capture_on_commit_callbacks,
    ):
        """N identical deliveries yield one applied outcome and one notification."""
        payload = webhook_payload(pending_order, "payment_completed")

        with django_capture_on_commit_callbacks(execute=True):
            outcomes = [post_webhook(payload).data["outcome"] for _ in range(5)]

        assert outcomes.count("applied") == 1
        assert outcomes.count("ignored_duplicate") == 4
        assert notify_task.delay.call_count == 1

    def test_deposit_bounce_then_refund(
        self,
        post_webhook,
        db,
        notify_task,
        django_capture_on_commit_callbacks,
    ):
        """Each terminal status reached is announced."""
        deposit = DepositFactory(status=PaymentStatus.PROCESSING)

        with django_capture_on_commit_callbacks(execute=True):
            post_webhook(webhook_payload(deposit, "payment_bounced"))
            post_webhook(webhook_payload(deposit, "payment_refunded"))

        deposit.refresh_from_db()
        assert deposit.status == PaymentStatus.FAILED
        events = [call.args[1] for call in notify_task.delay.call_args_list]
        assert events == ["payment_bounced", "payment_refunded"]
        assert "deposit_id" in notify_task.delay.call_args.args[2]

    def test_queue_failure_does_not_fail_webhook(
        self,
        post_webhook,
        pending_order,
        notify_task,
        django_capture_on_commit_callbacks,
    ):
        """A broker outage is logged, and the delivery is still acknowledged."""
        notify_task.delay.side_effect = ConnectionError("broker unreachable")

        with django_capture_on_commit_callbacks(execute=True):
            response = post_webhook(webhook_payload(pending_order, "payment_completed"))

        assert response.status_code == 200
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.COMPLETED


# =============================================================================
# Error Response Tests
# =============================================================================


class TestWebhookErrors:
    """Tests for rejected deliveries. None of them may change a record."""

    def test_missing_authorization(self, post_webhook, pending_order):
        response = post_webhook(
            webhook_payload(pending_order, "payment_completed"), authorization=None
        )

        assert response.status_code == 401
        assert response.data["error_code"] == "WEBHOOK_UNAUTHORIZED"
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.PENDING

    def test_wrong_secret(self, post_webhook, pending_order):
        response = post_webhook(
            webhook_payload(pending_order, "payment_completed"),
            authorization="Basic not-the-secret",
        )

        assert response.status_code == 401
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.PENDING

    def test_unconfigured_secret(self, post_webhook, pending_order, settings):
        settings.PAYMENT_WEBHOOK_SECRET = ""

        response = post_webhook(webhook_payload(pending_order, "payment_completed"))

        assert response.status_code == 500
        assert response.data["error"] == "Server configuration error"

    def test_missing_correlation_number(self, post_webhook, pending_order):
        payload = webhook_payload(pending_order, "payment_completed")
        payload["payment"]["metadata"].pop("number")
        payload["payment"].pop("externalId")

        response = post_webhook(payload)

        assert response.status_code == 400
        assert response.data["error_code"] == "WEBHOOK_VALIDATION_FAILED"
        assert "payment.metadata.number" in response.data["details"]["fields"]

    def test_missing_event(self, post_webhook, pending_order):
        payload = webhook_payload(pending_order, "payment_completed")
        payload.pop("type")

        response = post_webhook(payload)

        assert response.status_code == 400

    def test_unknown_event(self, post_webhook, pending_order):
        response = post_webhook(webhook_payload(pending_order, "payment_disputed"))

        assert response.status_code == 400
        assert response.data["error_code"] == "UNKNOWN_EVENT_TYPE"

    def test_destination_mismatch(self, post_webhook, pending_order):
        payload = webhook_payload(pending_order, "payment_completed")
        payload["payment"]["metadata"]["destinationAddress"] = "0xdeadbeef"

        response = post_webhook(payload)

        assert response.status_code == 400
        assert response.data["details"]["reasons"]
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.PENDING

    def test_unknown_number(self, post_webhook, pending_order):
        payload = webhook_payload(pending_order, "payment_completed")
        payload["payment"]["metadata"]["number"] = "2099123100000000"

        response = post_webhook(payload)

        assert response.status_code == 404
        assert response.data["error_code"] == "RECORD_NOT_FOUND"

    def test_storage_failure(self, post_webhook, pending_order):
        with patch(
            "payments.services.transitions.TransitionAuthority.try_transition",
            side_effect=RecordStorageError("Could not transition order"),
        ):
            response = post_webhook(webhook_payload(pending_order, "payment_completed"))

        assert response.status_code == 500
        assert response.data["error_code"] == "RECORD_STORAGE_ERROR"

    def test_lookup_failure_returns_json_500(self, post_webhook, pending_order):
        """A database error while finding the record keeps the JSON error body."""
        ingestor = WebhookIngestor(
            find_record=MagicMock(side_effect=OperationalError("connection lost"))
        )
        with patch(
            "payments.webhooks.views.ProcessorWebhookView.get_ingestor",
            return_value=ingestor,
        ):
            response = post_webhook(webhook_payload(pending_order, "payment_completed"))

        assert response.status_code == 500
        assert response.data["error_code"] == "RECORD_STORAGE_ERROR"
        assert response.data["details"] == {"number": pending_order.number}

    def test_test_event_acknowledged(self, post_webhook, pending_order):
        payload = webhook_payload(pending_order, "payment_completed", isTestEvent=True)

        response = post_webhook(payload)

        assert response.status_code == 200
        assert response.data["outcome"] == "ignored_test_event"
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.PENDING

    def test_malformed_amount(self, post_webhook, pending_order):
        payload = webhook_payload(pending_order, "payment_completed")
        payload["payment"]["source"]["amountUnits"] = "twenty-five"

        response = post_webhook(payload)

        assert response.status_code == 400
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.PENDING

    def test_get_not_allowed(self, api_client, db):
        response = api_client.get("/api/v1/payments/webhooks/processor/")

        assert response.status_code == 405
