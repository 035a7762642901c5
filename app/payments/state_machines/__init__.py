"""
Status enums and ordering helpers for payment records.

The ordering rules here are the only definition of which status moves are
legal; the transition authority turns them into guarded UPDATE statements.
"""

from payments.state_machines.states import (
    SAME_RANK_TRANSITIONS,
    STATUS_RANK,
    TERMINAL_STATUSES,
    PaymentStatus,
    RecordType,
    TransitionOutcome,
    allowed_sources,
    classify_refusal,
    is_terminal,
    rank,
)

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
