"""
Transport job serializers for Laundry Fulfillment.
"""

from rest_framework import serializers

from ..models import TransportJob


class TransportJobSerializer(serializers.ModelSerializer):
    """Serializer for TransportJob model."""

    order_number = serializers.CharField(source='order.order_number', read_only=True)
    order_status = serializers.CharField(source='order.status', read_only=True)
    customer_name = serializers.CharField(source='order.customer.get_full_name', read_only=True)
    address_line = serializers.CharField(source='order.address_line', read_only=True)
    latitude = serializers.DecimalField(source='order.latitude', max_digits=9, decimal_places=6, read_only=True)
    longitude = serializers.DecimalField(source='order.longitude', max_digits=9, decimal_places=6, read_only=True)

    class Meta:
        model = TransportJob
        fields = [
            'id', 'order', 'order_number', 'order_status', 'customer_name',
            'address_line', 'latitude', 'longitude', 'kind', 'status', 'driver',
            'claimed_at', 'started_at', 'completed_at', 'photo_url', 'notes', 'created_at'
        ]
        read_only_fields = fields


class CompleteJobSerializer(serializers.Serializer):
    """Proof of a finished pickup or delivery."""

    photo_url = serializers.URLField(max_length=500)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    total_weight = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
