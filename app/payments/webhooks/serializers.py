"""
Serializers for processor webhook payloads.

Only the parts of the payload the lifecycle engine reads are declared; any
other keys are ignored here and kept verbatim in callback_payload. Field
names follow the processor's camelCase keys.

Expected shape:
    {
        "type": "payment_completed",            # or "event"
        "paymentId": "pay_123",                 # or payment.id
        "isTestEvent": false,
        "payment": {
            "id": "pay_123",
            "externalId": "2025010100000001",
            "metadata": {
                "number": "2025010100000001",   # or orderNumber
                "merchantId": "7d0f...",
                "destinationAddress": "0x1234..."
            },
            "source": {"txHash": "0x..", "chainId": 1, "tokenAddress": "0x..",
                       "amountUnits": "25.00"},
            "destination": {"destinationAddress": "0x..", "chainId": 8453,
                            "tokenAddress": "0x..", "amountUnits": "25.00"}
        }
    }
"""

from rest_framework import serializers

AMOUNT_FIELD_OPTIONS = {
    "max_digits": 38,
    "decimal_places": 18,
    "required": False,
    "allow_null": True,
}


def optional_char(**kwargs):
    """CharField that may be absent, null or blank."""
    return serializers.CharField(
        required=False, allow_null=True, allow_blank=True, **kwargs
    )


class PaymentMetadataSerializer(serializers.Serializer):
    """Merchant-side metadata attached when the payment link was created."""

    number = optional_char(max_length=32)
    orderNumber = optional_char(max_length=32)  # noqa: N815
    merchantId = optional_char(max_length=64)  # noqa: N815
    destinationAddress = optional_char(max_length=255)  # noqa: N815


class PaymentSourceSerializer(serializers.Serializer):
    """How the payer paid."""

    txHash = optional_char(max_length=255)  # noqa: N815
    chainId = optional_char(max_length=64)  # noqa: N815
    tokenAddress = optional_char(max_length=255)  # noqa: N815
    amountUnits = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)  # noqa: N815


class PaymentDestinationSerializer(serializers.Serializer):
    """Where the processor delivered the funds."""

    destinationAddress = optional_char(max_length=255)  # noqa: N815
    chainId = optional_char(max_length=64)  # noqa: N815
    tokenAddress = optional_char(max_length=255)  # noqa: N815
    amountUnits = serializers.DecimalField(**AMOUNT_FIELD_OPTIONS)  # noqa: N815


class PaymentSerializer(serializers.Serializer):
    """The processor's payment object."""

    id = optional_char(max_length=255)
    externalId = optional_char(max_length=255)  # noqa: N815
    metadata = PaymentMetadataSerializer(required=False, allow_null=True)
    source = PaymentSourceSerializer(required=False, allow_null=True)
    destination = PaymentDestinationSerializer(required=False, allow_null=True)


class ProcessorWebhookSerializer(serializers.Serializer):
    """
    Top-level webhook body.

    validate() resolves the three required values into flat keys:
        event_type: from "event" or "type"
        payment_id: from payment.id or "paymentId"
        number: from payment.metadata.number / orderNumber or payment.externalId
    """

    event = optional_char(max_length=64)
    type = optional_char(max_length=64)
    paymentId = optional_char(max_length=255)  # noqa: N815
    isTestEvent = serializers.BooleanField(required=False, default=False)  # noqa: N815
    payment = PaymentSerializer()

    def validate(self, attrs):
        payment = attrs["payment"]
        metadata = payment.get("metadata") or {}
        errors = {}

        event_type = attrs.get("event") or attrs.get("type")
        if not event_type:
            errors["event"] = ["Event type is required."]

        payment_id = payment.get("id") or attrs.get("paymentId")
        if not payment_id:
            errors["payment.id"] = ["Processor payment id is required."]

        number = (
            metadata.get("number")
            or metadata.get("orderNumber")
            or payment.get("externalId")
        )
        if not number:
            errors["payment.metadata.number"] = ["Correlation number is required."]

        if errors:
            raise serializers.ValidationError(errors)

        attrs["event_type"] = event_type
        attrs["payment_id"] = payment_id
        attrs["number"] = number
        return attrs


class WebhookAcknowledgementSerializer(serializers.Serializer):
    """Response body for an accepted delivery."""

    success = serializers.BooleanField()
    outcome = serializers.CharField()
    status = serializers.CharField(allow_null=True)
    number = serializers.CharField(allow_null=True)


class WebhookErrorSerializer(serializers.Serializer):
    """Response body for a rejected delivery."""

    error = serializers.CharField()
    error_code = serializers.CharField()
    details = serializers.DictField(required=False)
