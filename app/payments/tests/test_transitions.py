"""
Tests for TransitionAuthority.

Covers the conditional update for single transitions and the bulk expiry
used by the sweeper, including storage failures.
"""

import uuid
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.utils import timezone

from payments.exceptions import RecordStorageError
from payments.models import Deposit, Order
from payments.services.transitions import RecordRef, TransitionAuthority
from payments.state_machines import PaymentStatus, RecordType, TransitionOutcome
from payments.tests.factories import DepositFactory, OrderFactory

GRACE = timedelta(minutes=10)


@pytest.fixture
def authority():
    return TransitionAuthority()


# =============================================================================
# Single Transition Tests
# =============================================================================


class TestTryTransition:
    """Tests for TransitionAuthority.try_transition()."""

    def test_forward_transition_applies(self, authority, pending_order):
        """A higher-rank request updates status and fields."""
        result = authority.try_transition(
            RecordRef.of(pending_order),
            PaymentStatus.PROCESSING,
            {"source_txn_hash": "0xabc", "source_chain_name": "1"},
        )

        assert result.outcome == TransitionOutcome.APPLIED
        assert result.applied
        assert result.current_status == PaymentStatus.PROCESSING

        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.PROCESSING
        assert pending_order.source_txn_hash == "0xabc"
        assert pending_order.source_chain_name == "1"

    def test_stamps_updated_at_from_clock(self, pending_order):
        """updated_at comes from the injected clock."""
        stamp = timezone.now() + timedelta(hours=1)
        authority = TransitionAuthority(clock=lambda: stamp)

        authority.try_transition(RecordRef.of(pending_order), PaymentStatus.PROCESSING)

        pending_order.refresh_from_db()
        assert pending_order.updated_at == stamp

    def test_reapplying_is_duplicate_and_keeps_fields(self, authority, pending_order):
        """The same request twice is applied once."""
        ref = RecordRef.of(pending_order)
        authority.try_transition(
            ref, PaymentStatus.PROCESSING, {"source_txn_hash": "0xfirst"}
        )
        pending_order.refresh_from_db()
        updated_at = pending_order.updated_at

        result = authority.try_transition(
            ref, PaymentStatus.PROCESSING, {"source_txn_hash": "0xsecond"}
        )

        assert result.outcome == TransitionOutcome.IGNORED_DUPLICATE
        assert not result.applied
        pending_order.refresh_from_db()
        assert pending_order.source_txn_hash == "0xfirst"
        assert pending_order.updated_at == updated_at

    def test_lower_rank_is_stale(self, authority, completed_order):
        """A lower-rank request never changes the record."""
        result = authority.try_transition(
            RecordRef.of(completed_order),
            PaymentStatus.PROCESSING,
            {"source_txn_hash": "0xlate"},
        )

        assert result.outcome == TransitionOutcome.IGNORED_STALE
        assert result.current_status == PaymentStatus.COMPLETED
        completed_order.refresh_from_db()
        assert completed_order.status == PaymentStatus.COMPLETED
        assert completed_order.source_txn_hash is None

    def test_completed_is_final(self, authority, completed_order):
        """COMPLETED is never reclassified."""
        result = authority.try_transition(
            RecordRef.of(completed_order), PaymentStatus.DISCREPANCY
        )

        assert result.outcome == TransitionOutcome.IGNORED_STALE
        completed_order.refresh_from_db()
        assert completed_order.status == PaymentStatus.COMPLETED

    def test_late_completion_overrides_expiry(self, authority, expired_order):
        """A processor completion after expiry is applied."""
        result = authority.try_transition(
            RecordRef.of(expired_order), PaymentStatus.COMPLETED
        )

        assert result.applied
        expired_order.refresh_from_db()
        assert expired_order.status == PaymentStatus.COMPLETED

    def test_refund_after_bounce_applies(self, authority, db):
        """DISCREPANCY may move to FAILED."""
        order = OrderFactory(status=PaymentStatus.DISCREPANCY)

        result = authority.try_transition(RecordRef.of(order), PaymentStatus.FAILED)

        assert result.applied

    def test_pending_straight_to_terminal(self, authority, pending_order):
        """Skipping PROCESSING is allowed."""
        result = authority.try_transition(
            RecordRef.of(pending_order), PaymentStatus.COMPLETED
        )

        assert result.applied

    def test_missing_record_is_not_found(self, authority, db):
        """A ref to a missing row reports NOT_FOUND without raising."""
        ref = RecordRef(record_type=RecordType.ORDER, record_id=uuid.uuid4())

        result = authority.try_transition(ref, PaymentStatus.COMPLETED)

        assert result.outcome == TransitionOutcome.NOT_FOUND
        assert result.current_status is None

    def test_deposit_table(self, authority, pending_deposit):
        """Deposits share the lifecycle but live in their own table."""
        result = authority.try_transition(
            RecordRef.of(pending_deposit), PaymentStatus.PROCESSING
        )

        assert result.applied
        assert result.ref.model is Deposit
        assert Deposit.objects.get(pk=pending_deposit.pk).status == (
            PaymentStatus.PROCESSING
        )

    def test_deposit_id_does_not_touch_orders(self, authority, pending_order):
        """The record type selects the table."""
        ref = RecordRef(record_type=RecordType.DEPOSIT, record_id=pending_order.pk)

        result = authority.try_transition(ref, PaymentStatus.PROCESSING)

        assert result.outcome == TransitionOutcome.NOT_FOUND
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.PENDING

    def test_merges_payload_and_amount(self, authority, pending_order):
        """Raw payload and source amount are written with the status."""
        payload = {"type": "payment_completed", "payment": {"id": "pay_1"}}

        authority.try_transition(
            RecordRef.of(pending_order),
            PaymentStatus.COMPLETED,
            {
                "callback_payload": payload,
                "source_token_amount": Decimal("25.123456"),
            },
        )

        pending_order.refresh_from_db()
        assert pending_order.callback_payload == payload
        assert pending_order.source_token_amount == Decimal("25.123456")

    def test_rejects_unknown_status(self, authority, pending_order):
        with pytest.raises(ValueError):
            authority.try_transition(RecordRef.of(pending_order), "REFUNDED")

    def test_rejects_immutable_fields(self, authority, pending_order):
        """Payment terms can not be rewritten by a transition."""
        with pytest.raises(ValueError, match="merchant_address"):
            authority.try_transition(
                RecordRef.of(pending_order),
                PaymentStatus.PROCESSING,
                {"merchant_address": "0xattacker"},
            )

        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.PENDING

    def test_storage_failure_raises(self, authority, pending_order):
        """Database errors surface as RecordStorageError."""
        with patch.object(
            Order.objects, "filter", side_effect=DatabaseError("connection lost")
        ):
            with pytest.raises(RecordStorageError) as exc_info:
                authority.try_transition(
                    RecordRef.of(pending_order), PaymentStatus.PROCESSING
                )

        assert exc_info.value.http_status == 500
        assert exc_info.value.details["record_type"] == "order"
        pending_order.refresh_from_db()
        assert pending_order.status == PaymentStatus.PENDING


# =============================================================================
# Bulk Expiry Tests
# =============================================================================


class TestExpirePending:
    """Tests for TransitionAuthority.expire_pending()."""

    def test_expires_overdue_pending(self, authority, db):
        """Only PENDING records past their deadline are expired."""
        now = timezone.now()
        overdue = OrderFactory(expired_at=now - timedelta(seconds=1))
        future = OrderFactory(expired_at=now + timedelta(hours=1))

        result = authority.expire_pending(RecordType.ORDER, now, GRACE)

        assert result.record_type == "order"
        assert result.count == 1
        assert result.expired[0].number == overdue.number
        assert result.expired[0].merchant_id == overdue.merchant_id
        overdue.refresh_from_db()
        future.refresh_from_db()
        assert overdue.status == PaymentStatus.EXPIRED
        assert overdue.updated_at == now
        assert future.status == PaymentStatus.PENDING

    def test_skips_non_pending(self, authority, db):
        """Processing and terminal records are never expired."""
        now = timezone.now()
        past = now - timedelta(minutes=5)
        processing = OrderFactory(status=PaymentStatus.PROCESSING, expired_at=past)
        completed = OrderFactory(status=PaymentStatus.COMPLETED, expired_at=past)

        result = authority.expire_pending(RecordType.ORDER, now, GRACE)

        assert result.count == 0
        processing.refresh_from_db()
        completed.refresh_from_db()
        assert processing.status == PaymentStatus.PROCESSING
        assert completed.status == PaymentStatus.COMPLETED

    def test_legacy_record_uses_grace_period(self, authority, db):
        """Records without expired_at expire once older than the grace period."""
        now = timezone.now()
        old = DepositFactory(expired_at=None)
        young = DepositFactory(expired_at=None)
        Deposit.objects.filter(pk=old.pk).update(created_at=now - timedelta(minutes=11))
        Deposit.objects.filter(pk=young.pk).update(
            created_at=now - timedelta(minutes=9)
        )

        result = authority.expire_pending(RecordType.DEPOSIT, now, GRACE)

        assert [expired.record_id for expired in result.expired] == [old.pk]
        young.refresh_from_db()
        assert young.status == PaymentStatus.PENDING

    def test_second_run_expires_nothing(self, authority, db):
        """Bulk expiry is idempotent."""
        now = timezone.now()
        OrderFactory(expired_at=now - timedelta(minutes=1))

        first = authority.expire_pending(RecordType.ORDER, now, GRACE)
        second = authority.expire_pending(RecordType.ORDER, now, GRACE)

        assert first.count == 1
        assert second.count == 0

    def test_only_touches_selected_table(self, authority, db):
        """Expiring orders leaves overdue deposits for their own pass."""
        now = timezone.now()
        deposit = DepositFactory(expired_at=now - timedelta(minutes=1))

        authority.expire_pending(RecordType.ORDER, now, GRACE)

        deposit.refresh_from_db()
        assert deposit.status == PaymentStatus.PENDING

    def test_storage_failure_raises(self, authority, db):
        now = timezone.now()
        with patch.object(
            Order.objects, "select_for_update", side_effect=DatabaseError("timeout")
        ):
            with pytest.raises(RecordStorageError):
                authority.expire_pending(RecordType.ORDER, now, GRACE)
