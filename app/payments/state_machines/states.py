"""
Status enums and ordering rules for order and deposit records.

Orders and deposits share one lifecycle. Status only ever moves forward:

    PENDING (rank 0)
      → PROCESSING (rank 1)
        → COMPLETED | FAILED | EXPIRED | DISCREPANCY (rank 2, terminal)

A request for a lower rank than the stored status is stale, a request for the
stored status is a duplicate. Moves between two different rank-2 statuses
are refused unless listed in SAME_RANK_TRANSITIONS:

    EXPIRED → COMPLETED | DISCREPANCY | FAILED
        Expiry is a local, clock-driven guess. When the processor later
        reports what actually happened to the money, its report wins.
    DISCREPANCY → FAILED
        A bounced payment that the processor subsequently refunds.

COMPLETED and FAILED are final.
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    """
    Lifecycle status of an order or deposit.

    State Flow:
        PENDING → PROCESSING → COMPLETED
        PENDING → PROCESSING → DISCREPANCY → FAILED
        PENDING → EXPIRED (sweeper)
        EXPIRED → COMPLETED / DISCREPANCY / FAILED (late processor report)
    """

    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"
    EXPIRED = "EXPIRED", "Expired"
    DISCREPANCY = "DISCREPANCY", "Discrepancy"


class RecordType(models.TextChoices):
    """Selects which table a payment record lives in."""

    ORDER = "order", "Order"
    DEPOSIT = "deposit", "Deposit"


class TransitionOutcome(models.TextChoices):
    """
    Result of asking the transition authority for a status change.

    Only APPLIED means the row was written. IGNORED_STALE and
    IGNORED_DUPLICATE are normal answers for redelivered or out-of-order
    notifications and are acknowledged to the processor as success.
    """

    APPLIED = "applied", "Applied"
    IGNORED_STALE = "ignored_stale", "Ignored (stale)"
    IGNORED_DUPLICATE = "ignored_duplicate", "Ignored (duplicate)"
    NOT_FOUND = "not_found", "Not found"


STATUS_RANK: dict[str, int] = {
    PaymentStatus.PENDING: 0,
    PaymentStatus.PROCESSING: 1,
    PaymentStatus.COMPLETED: 2,
    PaymentStatus.FAILED: 2,
    PaymentStatus.EXPIRED: 2,
    PaymentStatus.DISCREPANCY: 2,
}

TERMINAL_STATUSES: frozenset[str] = frozenset(
    status for status, rank in STATUS_RANK.items() if rank == 2
)

SAME_RANK_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    {
        (PaymentStatus.EXPIRED, PaymentStatus.COMPLETED),
        (PaymentStatus.EXPIRED, PaymentStatus.DISCREPANCY),
        (PaymentStatus.EXPIRED, PaymentStatus.FAILED),
        (PaymentStatus.DISCREPANCY, PaymentStatus.FAILED),
    }
)


def rank(status: str) -> int:
    """Return the lifecycle rank of a status."""
    return STATUS_RANK[status]


def is_terminal(status: str) -> bool:
    """Return True if no forward move by rank is left from this status."""
    return status in TERMINAL_STATUSES


def allowed_sources(target: str) -> list[str]:
    """
    Statuses a record may currently hold for a move to ``target`` to apply.

    All lower-rank statuses plus the explicitly allowed same-rank sources.
    The target itself is never included, so a redelivery can not rewrite a
    record that already holds the requested status.
    """
    target_rank = rank(target)
    return [
        status
        for status in PaymentStatus.values
        if rank(status) < target_rank or (status, target) in SAME_RANK_TRANSITIONS
    ]


def classify_refusal(current: str, requested: str) -> TransitionOutcome:
    """Explain why a move from ``current`` to ``requested`` was not applied."""
    if current == requested:
        return TransitionOutcome.IGNORED_DUPLICATE
    return TransitionOutcome.IGNORED_STALE


__all__ = [
    "PaymentStatus",
    "RecordType",
    "TransitionOutcome",
    "STATUS_RANK",
    "TERMINAL_STATUSES",
    "SAME_RANK_TRANSITIONS",
    "rank",
    "is_terminal",
    "allowed_sources",
    "classify_refusal",
]
