"""
Payment services for the order and deposit lifecycle.

This module provides:
- TransitionAuthority: The only writer of record status
- ExpirationSweeper: Expires overdue PENDING records
- PaymentRecordService: Creates records and resolves correlation numbers

Usage:
    from payments.services import ExpirationSweeper

    stats = ExpirationSweeper().run()
"""

from payments.services.records import PaymentRecordService, generate_record_number
from payments.services.sweeper import ExpirationSweeper, SweepStats
from payments.services.transitions import (
    MERGEABLE_FIELDS,
    BulkExpiryResult,
    ExpiredRecord,
    RecordRef,
    TransitionAuthority,
    TransitionResult,
)

__all__ = [
    "BulkExpiryResult",
    "ExpirationSweeper",
    "ExpiredRecord",
    "MERGEABLE_FIELDS",
    "PaymentRecordService",
    "RecordRef",
    "SweepStats",
    "TransitionAuthority",
    "TransitionResult",
    "generate_record_number",
]
