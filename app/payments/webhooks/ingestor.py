"""
Webhook ingestor for processor payment notifications.

Turns one authenticated delivery into at most one status transition:

    1. Authenticate the shared secret
    2. Validate the payload shape
    3. Skip processor test events (when configured)
    4. Map the event type to a target status
    5. Find the order or deposit by correlation number
    6. Check the payload agrees with the stored record
    7. Ask the transition authority to apply the move
    8. Notify the merchant when a terminal status was newly reached

Every failure before step 7 raises without touching the database. Stale and
duplicate deliveries are answered like successes so the processor stops
retrying them.

Usage:
    ingestor = WebhookIngestor()
    ingestor.authenticate(request.headers.get("Authorization"))
    result = ingestor.ingest(request.data)
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError

from payments.exceptions import (
    PaymentNotFoundError,
    RecordStorageError,
    WebhookAuthenticationError,
    WebhookConfigurationError,
    WebhookValidationError,
)
from payments.notifications import build_record_summary, dispatch_merchant_notification
from payments.services.records import PaymentRecordService
from payments.services.transitions import RecordRef, TransitionAuthority
from payments.state_machines import TransitionOutcome, is_terminal
from payments.webhooks.events import normalize_event_name, resolve_target_status
from payments.webhooks.serializers import ProcessorWebhookSerializer

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

    from payments.models import PaymentRecord

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

IGNORED_TEST_EVENT = "ignored_test_event"

CENT = Decimal("0.01")

# payment.source key -> record field
SOURCE_FIELDS = {
    "txHash": "source_txn_hash",
    "chainId": "source_chain_name",
    "tokenAddress": "source_token_address",
    "amountUnits": "source_token_amount",
}


@dataclass(frozen=True)
class WebhookResult:
    """What an accepted delivery did."""

    outcome: str
    status: str | None = None
    number: str | None = None
    record_type: str | None = None

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "outcome": str(self.outcome),
            "status": str(self.status) if self.status else None,
            "number": self.number,
        }


class WebhookIngestor:
    """
    Apply processor notifications to orders and deposits.

    Collaborators and settings are injected so one delivery never depends on
    state left behind by another.

    Args:
        authority: Writer for status transitions
        dispatch: Schedules merchant notifications
        find_record: Resolves a correlation number to a record
        secret: Shared webhook secret (default: PAYMENT_WEBHOOK_SECRET)
        strict: Also check chain, token and amount
            (default: PAYMENT_WEBHOOK_STRICT_VALIDATION)
        ignore_test_events: Acknowledge test deliveries without processing
            (default: PAYMENT_WEBHOOK_IGNORE_TEST_EVENTS)
    """

    def __init__(
        self,
        authority: TransitionAuthority | None = None,
        dispatch: Callable[..., None] = dispatch_merchant_notification,
        find_record: Callable[[str], PaymentRecord | None] = (
            PaymentRecordService.find_by_number
        ),
        *,
        secret: str | None = None,
        strict: bool | None = None,
        ignore_test_events: bool | None = None,
    ):
        self._authority = authority or TransitionAuthority()
        self._dispatch = dispatch
        self._find_record = find_record
        self._secret = settings.PAYMENT_WEBHOOK_SECRET if secret is None else secret
        self._strict = (
            settings.PAYMENT_WEBHOOK_STRICT_VALIDATION if strict is None else strict
        )
        self._ignore_test_events = (
            settings.PAYMENT_WEBHOOK_IGNORE_TEST_EVENTS
            if ignore_test_events is None
            else ignore_test_events
        )

    # =========================================================================
    # Authentication
    # =========================================================================

    def authenticate(self, authorization: str | None) -> None:
        """
        Check the "Authorization: Basic <secret>" header.

        Raises:
            WebhookConfigurationError: No secret is configured
            WebhookAuthenticationError: Header missing or wrong
        """
        if not self._secret:
            logger.error("Webhook secret is not configured")
            raise WebhookConfigurationError("Server configuration error")

        if not authorization:
            logger.warning("Webhook delivery without Authorization header")
            raise WebhookAuthenticationError("Missing authorization header")

        expected = f"Basic {self._secret}"
        if not hmac.compare_digest(authorization.encode(), expected.encode()):
            logger.warning("Webhook delivery with invalid credentials")
            raise WebhookAuthenticationError("Invalid authorization")

    # =========================================================================
    # Processing
    # =========================================================================

    def ingest(self, payload: Any) -> WebhookResult:
        """
        Process one already-authenticated delivery.

        Returns:
            WebhookResult for applied, duplicate, stale and test deliveries

        Raises:
            WebhookValidationError: Payload malformed or inconsistent
            UnknownWebhookEventError: Event type has no target status
            PaymentNotFoundError: No order or deposit matches
            RecordStorageError: The database failed during lookup or transition
        """
        data = self._parse(payload)
        number = data["number"]
        event_name = normalize_event_name(data["event_type"])

        if data["isTestEvent"] and self._ignore_test_events:
            logger.info(
                "Ignoring processor test event",
                extra={"event_name": event_name, "number": number},
            )
            return WebhookResult(outcome=IGNORED_TEST_EVENT, number=number)

        target_status = resolve_target_status(data["event_type"])

        record = self._lookup(number)
        if record is None:
            logger.warning(
                "Webhook for unknown record",
                extra={"event_name": event_name, "number": number},
            )
            raise PaymentNotFoundError(
                f"No order or deposit with number {number}",
                details={"number": number},
            )

        reasons = self._consistency_errors(record, data)
        if reasons:
            logger.warning(
                "Webhook does not match stored record",
                extra={"number": number, "reasons": reasons},
            )
            raise WebhookValidationError(
                f"Notification does not match {str(record.record_type)} {number}",
                details={"number": number, "reasons": reasons},
            )

        result = self._authority.try_transition(
            RecordRef.of(record),
            target_status,
            self._merge_fields(data, payload),
        )

        if result.outcome == TransitionOutcome.NOT_FOUND:
            raise PaymentNotFoundError(
                f"{str(record.record_type).capitalize()} {number} no longer exists",
                details={"number": number},
            )

        if result.applied and is_terminal(target_status):
            self._dispatch(
                record.merchant_id,
                event_name,
                build_record_summary(record, target_status),
            )

        logger.info(
            "Webhook processed",
            extra={
                "event_name": event_name,
                "number": number,
                "outcome": result.outcome,
                "status": result.current_status,
            },
        )
        return WebhookResult(
            outcome=result.outcome,
            status=result.current_status,
            number=number,
            record_type=str(record.record_type),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _lookup(self, number: str) -> PaymentRecord | None:
        try:
            return self._find_record(number)
        except DatabaseError as exc:
            logger.exception("Record lookup failed in storage", extra={"number": number})
            raise RecordStorageError(
                f"Could not look up record {number}",
                details={"number": number},
            ) from exc

    @staticmethod
    def _parse(payload: Any) -> dict[str, Any]:
        serializer = ProcessorWebhookSerializer(data=payload)
        if not serializer.is_valid():
            raise WebhookValidationError(
                "Invalid webhook payload",
                details={"fields": serializer.errors},
            )
        return serializer.validated_data

    def _consistency_errors(
        self, record: PaymentRecord, data: dict[str, Any]
    ) -> list[str]:
        """Return every way the notification disagrees with the record."""
        payment = data["payment"]
        metadata = payment.get("metadata") or {}
        destination = payment.get("destination") or {}
        reasons = []

        if data["payment_id"] != record.payment_id:
            reasons.append(
                f"payment id {data['payment_id']} does not match {record.payment_id}"
            )

        merchant_id = metadata.get("merchantId")
        if merchant_id and merchant_id.lower() != str(record.merchant_id).lower():
            reasons.append(f"merchant {merchant_id} does not own this record")

        address = metadata.get("destinationAddress") or destination.get(
            "destinationAddress"
        )
        if address:
            if address.lower() != record.merchant_address.lower():
                reasons.append(
                    f"destination address {address} does not match merchant address"
                )
        elif self._strict:
            reasons.append("destination address is missing")

        if self._strict:
            reasons.extend(self._strict_errors(record, destination))

        return reasons

    @staticmethod
    def _strict_errors(record: PaymentRecord, destination: dict[str, Any]) -> list[str]:
        reasons = []

        chain_id = destination.get("chainId")
        if not chain_id:
            reasons.append("destination chain is missing")
        elif chain_id != record.merchant_chain_id:
            reasons.append(
                f"destination chain {chain_id} does not match {record.merchant_chain_id}"
            )

        token = destination.get("tokenAddress")
        if not token:
            reasons.append("destination token is missing")
        elif token.lower() != record.required_token.lower():
            reasons.append(f"destination token {token} does not match required token")

        amount = destination.get("amountUnits")
        if amount is None:
            reasons.append("destination amount is missing")
        else:
            received = amount.quantize(CENT, rounding=ROUND_HALF_UP)
            required = record.required_amount_usd.quantize(CENT, rounding=ROUND_HALF_UP)
            if received != required:
                reasons.append(
                    f"destination amount {received} does not match required {required}"
                )

        return reasons

    @staticmethod
    def _merge_fields(data: dict[str, Any], payload: Any) -> dict[str, Any]:
        """Collect the record fields this delivery supplies."""
        fields = {"callback_payload": payload}
        source = data["payment"].get("source") or {}
        for key, field_name in SOURCE_FIELDS.items():
            value = source.get(key)
            if value not in (None, ""):
                fields[field_name] = value
        return fields


__all__ = ["IGNORED_TEST_EVENT", "WebhookIngestor", "WebhookResult"]
