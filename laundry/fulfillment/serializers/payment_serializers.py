"""
Payment serializers for Laundry Fulfillment.
"""

from rest_framework import serializers


class PaymentWebhookSerializer(serializers.Serializer):
    """Notification body sent by the payment provider."""

    order_id = serializers.UUIDField()
    paid = serializers.BooleanField()
    paid_at = serializers.DateTimeField(required=False, allow_null=True)
