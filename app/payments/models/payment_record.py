"""
Order and Deposit models.

Orders and deposits are the same record with the same lifecycle, stored in
two tables. Both inherit every field from the abstract PaymentRecord; code
that has to pick a table goes through RecordType and get_record_model().

Usage:
    from payments.models import Order, get_record_model
    from payments.state_machines import RecordType

    order = Order.objects.get(number="2025010100000001")
    model = get_record_model(RecordType.DEPOSIT)

Note:
    Status is written only by payments.services.transitions. Saving a
    changed status through the ORM would skip the ordering guard.
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import PaymentStatus, RecordType


class PaymentRecord(UUIDPrimaryKeyMixin, BaseModel):
    """
    A merchant's request to be paid, tracked against the external processor.

    Fields:
        number: Human-readable correlation number shared with the processor
        payment_id: The processor's payment id
        merchant_id: Owner of the record
        status: Lifecycle status (see payments.state_machines)
        required_amount_usd .. merchant_address: Payment terms fixed at creation
        expired_at: Deadline after which a PENDING record is expired
        callback_payload: Last raw notification received from the processor
        source_*: Settlement details reported by the processor
    """

    record_type: RecordType

    # ==========================================================================
    # Identity
    # ==========================================================================

    number = models.CharField(
        max_length=32,
        unique=True,
        help_text="Correlation number shared with the payment processor",
    )

    payment_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Payment id assigned by the processor",
    )

    merchant_id = models.UUIDField(
        db_index=True,
        help_text="Merchant that owns this record",
    )

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
        help_text="Lifecycle status, written only by the transition authority",
    )

    expired_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Deadline after which a pending record is expired",
    )

    # ==========================================================================
    # Payment Terms
    # ==========================================================================

    required_amount_usd = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        help_text="Amount the merchant must receive, in USD",
    )

    display_amount = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        help_text="Amount shown to the payer in display_currency",
    )

    display_currency = models.CharField(
        max_length=10,
        default="USD",
        help_text="Currency code shown to the payer",
    )

    required_token = models.CharField(
        max_length=255,
        help_text="Token contract address the merchant receives",
    )

    merchant_chain_id = models.CharField(
        max_length=64,
        help_text="Chain the merchant receives funds on",
    )

    merchant_address = models.CharField(
        max_length=255,
        help_text="Wallet address the merchant receives funds at",
    )

    # ==========================================================================
    # Processor Report
    # ==========================================================================

    callback_payload = models.JSONField(
        null=True,
        blank=True,
        help_text="Last raw notification received from the processor",
    )

    source_txn_hash = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Transaction hash of the payer's transfer",
    )

    source_chain_name = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Chain the payer paid from",
    )

    source_token_address = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Token the payer paid with",
    )

    source_token_amount = models.DecimalField(
        max_digits=38,
        decimal_places=18,
        null=True,
        blank=True,
        help_text="Amount the payer sent, in token units",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        """Return string representation with number and status."""
        return f"{self.__class__.__name__}({self.number}, {self.status})"


class Order(PaymentRecord):
    """A one-off payment for goods or services."""

    record_type = RecordType.ORDER

    class Meta(PaymentRecord.Meta):
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        indexes = [
            models.Index(fields=["status", "expired_at"], name="order_status_expiry_idx"),
        ]


class Deposit(PaymentRecord):
    """A top-up of the merchant's balance."""

    record_type = RecordType.DEPOSIT

    class Meta(PaymentRecord.Meta):
        verbose_name = "Deposit"
        verbose_name_plural = "Deposits"
        indexes = [
            models.Index(
                fields=["status", "expired_at"], name="deposit_status_expiry_idx"
            ),
        ]


RECORD_MODELS: dict[str, type[PaymentRecord]] = {
    RecordType.ORDER: Order,
    RecordType.DEPOSIT: Deposit,
}


def get_record_model(record_type: str) -> type[PaymentRecord]:
    """Return the model class backing a record type."""
    try:
        return RECORD_MODELS[record_type]
    except KeyError:
        raise ValueError(f"Unknown record type: {record_type!r}") from None
