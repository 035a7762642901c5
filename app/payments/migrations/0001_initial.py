import uuid

from django.db import migrations, models


def record_fields():
    return [
        (
            "id",
            models.UUIDField(
                default=uuid.uuid4,
                editable=False,
                help_text="Unique identifier for this record",
                primary_key=True,
                serialize=False,
            ),
        ),
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
        (
            "number",
            models.CharField(
                help_text="Correlation number shared with the payment processor",
                max_length=32,
                unique=True,
            ),
        ),
        (
            "payment_id",
            models.CharField(
                help_text="Payment id assigned by the processor",
                max_length=255,
                unique=True,
            ),
        ),
        (
            "merchant_id",
            models.UUIDField(
                db_index=True,
                help_text="Merchant that owns this record",
            ),
        ),
        (
            "status",
            models.CharField(
                choices=[
                    ("PENDING", "Pending"),
                    ("PROCESSING", "Processing"),
                    ("COMPLETED", "Completed"),
                    ("FAILED", "Failed"),
                    ("EXPIRED", "Expired"),
                    ("DISCREPANCY", "Discrepancy"),
                ],
                db_index=True,
                default="PENDING",
                help_text="Lifecycle status, written only by the transition authority",
                max_length=20,
            ),
        ),
        (
            "expired_at",
            models.DateTimeField(
                blank=True,
                db_index=True,
                help_text="Deadline after which a pending record is expired",
                null=True,
            ),
        ),
        (
            "required_amount_usd",
            models.DecimalField(
                decimal_places=2,
                help_text="Amount the merchant must receive, in USD",
                max_digits=20,
            ),
        ),
        (
            "display_amount",
            models.DecimalField(
                decimal_places=2,
                help_text="Amount shown to the payer in display_currency",
                max_digits=20,
            ),
        ),
        (
            "display_currency",
            models.CharField(
                default="USD",
                help_text="Currency code shown to the payer",
                max_length=10,
            ),
        ),
        (
            "required_token",
            models.CharField(
                help_text="Token contract address the merchant receives",
                max_length=255,
            ),
        ),
        (
            "merchant_chain_id",
            models.CharField(
                help_text="Chain the merchant receives funds on",
                max_length=64,
            ),
        ),
        (
            "merchant_address",
            models.CharField(
                help_text="Wallet address the merchant receives funds at",
                max_length=255,
            ),
        ),
        (
            "callback_payload",
            models.JSONField(
                blank=True,
                help_text="Last raw notification received from the processor",
                null=True,
            ),
        ),
        (
            "source_txn_hash",
            models.CharField(
                blank=True,
                help_text="Transaction hash of the payer's transfer",
                max_length=255,
                null=True,
            ),
        ),
        (
            "source_chain_name",
            models.CharField(
                blank=True,
                help_text="Chain the payer paid from",
                max_length=64,
                null=True,
            ),
        ),
        (
            "source_token_address",
            models.CharField(
                blank=True,
                help_text="Token the payer paid with",
                max_length=255,
                null=True,
            ),
        ),
        (
            "source_token_amount",
            models.DecimalField(
                blank=True,
                decimal_places=18,
                help_text="Amount the payer sent, in token units",
                max_digits=38,
                null=True,
            ),
        ),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=record_fields(),
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(
                        fields=["status", "expired_at"],
                        name="order_status_expiry_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Deposit",
            fields=record_fields(),
            options={
                "verbose_name": "Deposit",
                "verbose_name_plural": "Deposits",
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(
                        fields=["status", "expired_at"],
                        name="deposit_status_expiry_idx",
                    )
                ],
            },
        ),
    ]
