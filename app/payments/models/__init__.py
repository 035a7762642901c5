"""
Payment domain models.

- Order: One-off merchant payment tracked against the processor
- Deposit: Merchant balance top-up with the same lifecycle
- PaymentRecord: Abstract base shared by both
"""

from payments.models.payment_record import (
    RECORD_MODELS,
    Deposit,
    Order,
    PaymentRecord,
    get_record_model,
)

__all__ = [
    "Deposit",
    "Order",
    "PaymentRecord",
    "RECORD_MODELS",
    "get_record_model",
]
