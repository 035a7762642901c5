"""
Expiration sweeper for orders and deposits.

One sweep moves every overdue PENDING record to EXPIRED, table by table,
through TransitionAuthority.expire_pending(). Re-running a sweep changes
nothing because expired rows no longer match status=PENDING.

Drivers:
    - payments.tasks.expire_stale_records (celery-beat, every minute)
    - POST /api/v1/payments/sweeper/ and .../sweeper/trigger/

Usage:
    from payments.services.sweeper import ExpirationSweeper

    stats = ExpirationSweeper().run()
    stats.to_dict()
    # {"totalExpired": 3, "updatedOrders": 2, "updatedDeposits": 1, ...}
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from payments.exceptions import RecordStorageError
from payments.notifications import build_expiry_summary, dispatch_merchant_notification
from payments.services.transitions import TransitionAuthority
from payments.state_machines import RecordType

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from typing import Any

    from payments.services.transitions import BulkExpiryResult

logger = logging.getLogger(__name__)


@dataclass
class SweepStats:
    """Counters for one sweep."""

    updated_orders: int = 0
    updated_deposits: int = 0
    errors: int = 0
    processing_time_ms: int = 0
    expired_numbers: list[str] = field(default_factory=list)

    @property
    def total_expired(self) -> int:
        return self.updated_orders + self.updated_deposits

    def record(self, result: BulkExpiryResult) -> None:
        if result.record_type == RecordType.ORDER:
            self.updated_orders += result.count
        else:
            self.updated_deposits += result.count
        self.expired_numbers.extend(expired.number for expired in result.expired)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalExpired": self.total_expired,
            "updatedOrders": self.updated_orders,
            "updatedDeposits": self.updated_deposits,
            "errors": self.errors,
            "processingTimeMs": self.processing_time_ms,
            "expiredNumbers": self.expired_numbers,
        }


class ExpirationSweeper:
    """
    Expire overdue PENDING orders and deposits.

    A storage failure on one table is logged and counted; the other table is
    still swept and the next scheduled run retries the failed one.

    Args:
        authority: Writer used for the bulk update
        grace_period: Age after which a record without expired_at is
            overdue (default: PAYMENT_EXPIRY_GRACE_MINUTES)
        clock: Returns the current time
        dispatch: Schedules merchant notifications
    """

    def __init__(
        self,
        authority: TransitionAuthority | None = None,
        grace_period: timedelta | None = None,
        clock: Callable[[], datetime] = timezone.now,
        dispatch: Callable[..., None] = dispatch_merchant_notification,
    ):
        self._authority = authority or TransitionAuthority(clock=clock)
        if grace_period is None:
            grace_period = timedelta(minutes=settings.PAYMENT_EXPIRY_GRACE_MINUTES)
        self._grace_period = grace_period
        self._clock = clock
        self._dispatch = dispatch

    def run(self) -> SweepStats:
        """Run one sweep over every record table."""
        started = time.monotonic()
        now = self._clock()
        stats = SweepStats()

        for record_type in RecordType:
            try:
                result = self._authority.expire_pending(
                    record_type, now, self._grace_period
                )
            except RecordStorageError as exc:
                stats.errors += 1
                logger.warning(
                    "Sweep skipped a table after a storage error",
                    extra={"record_type": str(record_type), "error": exc.message},
                )
                continue

            stats.record(result)
            if result.expired:
                logger.info(
                    f"Expired {result.count} {result.record_type} record(s)",
                    extra={
                        "record_type": str(record_type),
                        "numbers": [expired.number for expired in result.expired],
                    },
                )
                self._notify_merchants(result)

        stats.processing_time_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Expiration sweep finished",
            extra=stats.to_dict(),
        )
        return stats

    def _notify_merchants(self, result: BulkExpiryResult) -> None:
        """Send each merchant one notification listing its expired records."""
        numbers_by_merchant: dict[str, list[str]] = defaultdict(list)
        for expired in result.expired:
            numbers_by_merchant[str(expired.merchant_id)].append(expired.number)

        event_name = f"{result.record_type}s_expired"
        for merchant_id, numbers in numbers_by_merchant.items():
            self._dispatch(
                merchant_id,
                event_name,
                build_expiry_summary(result.record_type, numbers),
            )


__all__ = ["ExpirationSweeper", "SweepStats"]
