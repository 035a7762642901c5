"""
Payment admin configuration.

Orders and deposits are read-only in the admin: status belongs to the
transition authority and records are never deleted.
"""

from django.contrib import admin

from payments.models import Deposit, Order

__all__ = ["OrderAdmin", "DepositAdmin"]


class PaymentRecordAdmin(admin.ModelAdmin):
    """Shared read-only configuration for orders and deposits."""

    list_display = [
        "number",
        "status",
        "merchant_id",
        "display_amount",
        "display_currency",
        "expired_at",
        "created_at",
    ]
    list_filter = ["status", "display_currency"]
    search_fields = ["number", "payment_id", "merchant_id", "source_txn_hash"]
    ordering = ["-created_at"]
    date_hierarchy = "created_at"

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "number", "payment_id", "merchant_id", "status"),
            },
        ),
        (
            "Payment Terms",
            {
                "fields": (
                    "required_amount_usd",
                    "display_amount",
                    "display_currency",
                    "required_token",
                    "merchant_chain_id",
                    "merchant_address",
                ),
            },
        ),
        (
            "Processor Report",
            {
                "fields": (
                    "source_txn_hash",
                    "source_chain_name",
                    "source_token_address",
                    "source_token_amount",
                    "callback_payload",
                ),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("expired_at", "created_at", "updated_at"),
            },
        ),
    )

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(PaymentRecordAdmin):
    """Admin configuration for Order."""


@admin.register(Deposit)
class DepositAdmin(PaymentRecordAdmin):
    """Admin configuration for Deposit."""
