"""
Record store glue: creating orders/deposits and finding them by number.

Creation is the only place a record's number, payment id and expiry deadline
are assigned. After that the lifecycle engine never touches them.

Usage:
    from payments.services.records import PaymentRecordService

    result = PaymentRecordService.create_record(
        RecordType.ORDER,
        merchant_id=merchant_id,
        payment_id="pay_123",
        required_amount_usd=Decimal("25.00"),
        display_amount=Decimal("25.00"),
        display_currency="USD",
        required_token="0xa0b8...",
        merchant_chain_id="8453",
        merchant_address="0x1234...",
    )
    if result.success:
        order = result.data
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError
from django.utils import timezone

from core.services import BaseService, ServiceResult

from payments.models import RECORD_MODELS, get_record_model
from payments.state_machines import PaymentStatus

if TYPE_CHECKING:
    import uuid
    from datetime import datetime
    from decimal import Decimal

    from payments.models import PaymentRecord


# =============================================================================
# Constants
# =============================================================================

NUMBER_SUFFIX_DIGITS = 8
MAX_NUMBER_ATTEMPTS = 5


def generate_record_number(now: datetime | None = None) -> str:
    """
    Build a correlation number: UTC date (YYYYMMDD) plus 8 random digits.

    Example: 2025010104821937
    """
    now = now or timezone.now()
    suffix = secrets.randbelow(10**NUMBER_SUFFIX_DIGITS)
    return f"{now:%Y%m%d}{suffix:0{NUMBER_SUFFIX_DIGITS}d}"


class PaymentRecordService(BaseService):
    """
    Creates records and resolves correlation numbers.

    All methods are class methods - no instance state is maintained.
    """

    @classmethod
    def create_record(
        cls,
        record_type: str,
        *,
        merchant_id: uuid.UUID,
        payment_id: str,
        required_amount_usd: Decimal,
        display_amount: Decimal,
        display_currency: str,
        required_token: str,
        merchant_chain_id: str,
        merchant_address: str,
        expires_in: timedelta | None = None,
    ) -> ServiceResult[PaymentRecord]:
        """
        Create a PENDING order or deposit with a fresh number and deadline.

        The number is regenerated if it collides with an existing one.

        Args:
            record_type: RecordType.ORDER or RecordType.DEPOSIT
            expires_in: Lifetime before expiry
                (default: PAYMENT_RECORD_TTL_MINUTES)

        Returns:
            ServiceResult with the created record, or a failure with
            DUPLICATE_PAYMENT_ID / NUMBER_GENERATION_FAILED
        """
        record_type = str(record_type)
        model = get_record_model(record_type)
        logger = cls.get_logger()

        if model.objects.filter(payment_id=payment_id).exists():
            return ServiceResult.failure(
                f"A {record_type} already exists for payment {payment_id}",
                error_code="DUPLICATE_PAYMENT_ID",
            )

        now = timezone.now()
        if expires_in is None:
            expires_in = timedelta(minutes=settings.PAYMENT_RECORD_TTL_MINUTES)

        for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
            number = generate_record_number(now)
            if cls._number_taken(number):
                continue
            try:
                with cls.atomic():
                    record = model.objects.create(
                        number=number,
                        payment_id=payment_id,
                        merchant_id=merchant_id,
                        status=PaymentStatus.PENDING,
                        required_amount_usd=required_amount_usd,
                        display_amount=display_amount,
                        display_currency=display_currency,
                        required_token=required_token,
                        merchant_chain_id=merchant_chain_id,
                        merchant_address=merchant_address,
                        expired_at=now + expires_in,
                    )
            except IntegrityError:
                if model.objects.filter(payment_id=payment_id).exists():
                    return ServiceResult.failure(
                        f"A {record_type} already exists for payment {payment_id}",
                        error_code="DUPLICATE_PAYMENT_ID",
                    )
                logger.warning(
                    "Record number collided, retrying",
                    extra={"number": number, "attempt": attempt},
                )
                continue

            logger.info(
                f"Created {record_type}",
                extra={
                    "record_id": str(record.pk),
                    "number": record.number,
                    "merchant_id": str(merchant_id),
                    "expired_at": record.expired_at.isoformat(),
                },
            )
            return ServiceResult.success(record)

        logger.error(
            "Could not generate a unique record number",
            extra={"record_type": record_type, "attempts": MAX_NUMBER_ATTEMPTS},
        )
        return ServiceResult.failure(
            "Could not generate a unique record number",
            error_code="NUMBER_GENERATION_FAILED",
        )

    @classmethod
    def find_by_number(cls, number: str) -> PaymentRecord | None:
        """Look a number up in orders first, then deposits."""
        for model in RECORD_MODELS.values():
            record = model.objects.filter(number=number).first()
            if record is not None:
                return record
        return None

    @classmethod
    def _number_taken(cls, number: str) -> bool:
        # Numbers must be unique across both tables, not just within one
        return any(
            model.objects.filter(number=number).exists()
            for model in RECORD_MODELS.values()
        )


__all__ = [
    "MAX_NUMBER_ATTEMPTS",
    "PaymentRecordService",
    "generate_record_number",
]
