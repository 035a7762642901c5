"""
Lifecycle transition authority for orders and deposits.

Every status change goes through TransitionAuthority. A change is a single
conditional UPDATE whose WHERE clause carries the ordering rule:

    UPDATE payments_order
       SET status = 'COMPLETED', updated_at = now, source_txn_hash = ...
     WHERE id = ? AND status IN ('PENDING', 'PROCESSING', 'EXPIRED')

The database row lock taken by the UPDATE is the only arbiter between
concurrent callers (redelivered webhooks, a webhook racing the sweeper).
Of two callers asking for the same move, exactly one matches the WHERE
clause; the other updates zero rows. A follow-up read then explains the
zero (record gone, duplicate, or stale) without ever writing.

Usage:
    from payments.services.transitions import RecordRef, TransitionAuthority

    authority = TransitionAuthority()
    result = authority.try_transition(
        RecordRef.of(order),
        PaymentStatus.PROCESSING,
        {"source_txn_hash": "0xabc"},
    )
    if result.applied:
        ...
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils import timezone

from payments.exceptions import RecordStorageError
from payments.models import get_record_model
from payments.state_machines import (
    PaymentStatus,
    TransitionOutcome,
    allowed_sources,
    classify_refusal,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime, timedelta

    from payments.models import PaymentRecord

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Processor-reported fields a transition may write alongside the status
MERGEABLE_FIELDS = frozenset(
    {
        "callback_payload",
        "source_txn_hash",
        "source_chain_name",
        "source_token_address",
        "source_token_amount",
    }
)


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class RecordRef:
    """Points at one order or deposit without loading it."""

    record_type: str
    record_id: uuid.UUID

    @classmethod
    def of(cls, record: PaymentRecord) -> RecordRef:
        return cls(record_type=str(record.record_type), record_id=record.pk)

    @property
    def model(self) -> type[PaymentRecord]:
        return get_record_model(self.record_type)


@dataclass(frozen=True)
class TransitionResult:
    """
    Outcome of one try_transition() call.

    Attributes:
        outcome: What happened (see TransitionOutcome)
        ref: The record that was addressed
        requested_status: Status the caller asked for
        current_status: Status the record holds after the call
            (None when the record does not exist)
    """

    outcome: TransitionOutcome
    ref: RecordRef
    requested_status: str
    current_status: str | None

    @property
    def applied(self) -> bool:
        return self.outcome == TransitionOutcome.APPLIED


@dataclass(frozen=True)
class ExpiredRecord:
    """Identifiers of one record moved to EXPIRED by a sweep."""

    record_id: uuid.UUID
    number: str
    merchant_id: uuid.UUID


@dataclass
class BulkExpiryResult:
    """Records of one type expired by a single expire_pending() call."""

    record_type: str
    expired: list[ExpiredRecord] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.expired)


# =============================================================================
# Transition Authority
# =============================================================================


class TransitionAuthority:
    """
    The only writer of PaymentRecord.status.

    Stateless apart from the injected clock, so one instance can be shared by
    any number of concurrent callers.

    Args:
        clock: Returns the current time; stamped into updated_at
    """

    def __init__(self, clock: Callable[[], datetime] = timezone.now):
        self._clock = clock

    def try_transition(
        self,
        ref: RecordRef,
        requested_status: str,
        fields: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """
        Move a record to ``requested_status`` if the ordering rules allow it.

        On success the supplied fields are written in the same statement.
        Refusals (stale, duplicate) are returned, never raised, and leave the
        row untouched.

        Args:
            ref: Record to transition
            requested_status: Target PaymentStatus
            fields: Processor-reported values to merge (see MERGEABLE_FIELDS)

        Returns:
            TransitionResult describing the outcome

        Raises:
            ValueError: Unknown status or a field outside MERGEABLE_FIELDS
            RecordStorageError: The database failed; nothing was written
        """
        requested_status = PaymentStatus(requested_status)
        updates = self._clean_fields(fields)
        model = ref.model

        try:
            with transaction.atomic():
                rows = model.objects.filter(
                    pk=ref.record_id,
                    status__in=allowed_sources(requested_status),
                ).update(status=requested_status, updated_at=self._clock(), **updates)

                current_status = None
                if not rows:
                    current_status = (
                        model.objects.filter(pk=ref.record_id)
                        .values_list("status", flat=True)
                        .first()
                    )
        except DatabaseError as exc:
            logger.exception(
                "Status transition failed in storage",
                extra={
                    "record_type": ref.record_type,
                    "record_id": str(ref.record_id),
                    "requested_status": requested_status,
                },
            )
            raise RecordStorageError(
                f"Could not transition {ref.record_type} {ref.record_id}",
                details={
                    "record_type": ref.record_type,
                    "record_id": str(ref.record_id),
                },
            ) from exc

        if rows:
            outcome = TransitionOutcome.APPLIED
            current_status = requested_status
        elif current_status is None:
            outcome = TransitionOutcome.NOT_FOUND
        else:
            outcome = classify_refusal(current_status, requested_status)

        log = logger.warning if outcome == TransitionOutcome.NOT_FOUND else logger.info
        log(
            f"Transition {outcome.label.lower()}",
            extra={
                "record_type": ref.record_type,
                "record_id": str(ref.record_id),
                "requested_status": requested_status,
                "current_status": current_status,
                "outcome": outcome,
            },
        )

        return TransitionResult(
            outcome=outcome,
            ref=ref,
            requested_status=requested_status,
            current_status=current_status,
        )

    def expire_pending(
        self,
        record_type: str,
        now: datetime,
        grace_period: timedelta,
    ) -> BulkExpiryResult:
        """
        Move every overdue PENDING record of one type to EXPIRED.

        A record is overdue when its expired_at has passed, or, for records
        created without a deadline, when it is older than ``grace_period``.
        Candidate rows are locked (skipping rows another transaction holds)
        and then moved by one UPDATE that repeats the PENDING guard, so a
        record a webhook moved first is left alone.

        Raises:
            RecordStorageError: The database failed; nothing was written
        """
        record_type = str(record_type)
        model = get_record_model(record_type)
        overdue = Q(expired_at__lt=now) | Q(
            expired_at__isnull=True, created_at__lt=now - grace_period
        )

        try:
            with transaction.atomic():
                candidates = list(
                    model.objects.select_for_update(skip_locked=True)
                    .filter(overdue, status=PaymentStatus.PENDING)
                    .values_list("id", "number", "merchant_id")
                )
                if not candidates:
                    return BulkExpiryResult(record_type=record_type)

                ids = [record_id for record_id, _, _ in candidates]
                rows = model.objects.filter(
                    pk__in=ids, status=PaymentStatus.PENDING
                ).update(status=PaymentStatus.EXPIRED, updated_at=now)

                if rows != len(candidates):
                    # Backends without row locks: keep only the rows we wrote
                    written = set(
                        model.objects.filter(
                            pk__in=ids, status=PaymentStatus.EXPIRED, updated_at=now
                        ).values_list("id", flat=True)
                    )
                    candidates = [row for row in candidates if row[0] in written]
        except DatabaseError as exc:
            logger.exception(
                "Bulk expiry failed in storage",
                extra={"record_type": record_type},
            )
            raise RecordStorageError(
                f"Could not expire pending {record_type} records",
                details={"record_type": record_type},
            ) from exc

        return BulkExpiryResult(
            record_type=record_type,
            expired=[
                ExpiredRecord(record_id=record_id, number=number, merchant_id=merchant_id)
                for record_id, number, merchant_id in candidates
            ],
        )

    @staticmethod
    def _clean_fields(fields: dict[str, Any] | None) -> dict[str, Any]:
        """Reject fields a transition is not allowed to write."""
        fields = dict(fields or {})
        unknown = set(fields) - MERGEABLE_FIELDS
        if unknown:
            raise ValueError(
                f"Fields not writable by a transition: {', '.join(sorted(unknown))}"
            )
        return fields


__all__ = [
    "MERGEABLE_FIELDS",
    "RecordRef",
    "TransitionResult",
    "ExpiredRecord",
    "BulkExpiryResult",
    "TransitionAuthority",
]
