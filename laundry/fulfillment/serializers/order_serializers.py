"""
Order serializers for Laundry Fulfillment.
"""

from rest_framework import serializers

from ..models import Order, OrderItem, TransportJob, WorkStage


class OrderItemSerializer(serializers.ModelSerializer):
    """Serializer for OrderItem model."""

    item_name = serializers.CharField(source='laundry_item.name', read_only=True)
    pricing_type = serializers.CharField(source='laundry_item.pricing_type', read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'laundry_item', 'item_name', 'pricing_type', 'quantity',
            'weight', 'unit_price', 'line_price', 'created_at'
        ]
        read_only_fields = fields


class OrderStageSerializer(serializers.ModelSerializer):
    worker_name = serializers.CharField(source='worker.user.get_full_name', read_only=True, default=None)

    class Meta:
        model = WorkStage
        fields = ['id', 'stage', 'sequence', 'worker', 'worker_name', 'started_at', 'completed_at', 'bypass']
        read_only_fields = fields


class OrderJobSerializer(serializers.ModelSerializer):
    class Meta:
        model = TransportJob
        fields = ['id', 'kind', 'status', 'driver', 'claimed_at', 'started_at', 'completed_at', 'photo_url']
        read_only_fields = fields


class PickupRequestSerializer(serializers.Serializer):
    """Input for a customer's pickup request."""

    address_line = serializers.CharField(max_length=255)
    district = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    city = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    province = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    postal_code = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    latitude = serializers.DecimalField(max_digits=12, decimal_places=8, min_value=-90, max_value=90)
    longitude = serializers.DecimalField(max_digits=12, decimal_places=8, min_value=-180, max_value=180)
    outlet_id = serializers.UUIDField(required=False, allow_null=True)
    scheduled_pickup_at = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class OrderListSerializer(serializers.ModelSerializer):
    """Serializer for order listing."""

    customer_name = serializers.CharField(source='customer.username', read_only=True)
    outlet_name = serializers.CharField(source='outlet.name', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer_name', 'outlet_name', 'status',
            'payment_status', 'total_price', 'delivery_fee', 'created_at', 'updated_at'
        ]


class OrderDetailSerializer(serializers.ModelSerializer):
    """Serializer for order details."""

    customer_name = serializers.CharField(source='customer.username', read_only=True)
    outlet_name = serializers.CharField(source='outlet.name', read_only=True)
    amount_due = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    items = OrderItemSerializer(many=True, read_only=True)
    stages = OrderStageSerializer(many=True, read_only=True)
    transport_jobs = OrderJobSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer_name', 'outlet', 'outlet_name',
            'status', 'payment_status', 'payment_reference', 'paid_at',
            'total_weight', 'total_price', 'delivery_fee', 'amount_due',
            'distance_km', 'within_service_radius', 'priced_at',
            'address_line', 'district', 'city', 'province', 'postal_code',
            'latitude', 'longitude',
            'scheduled_pickup_at', 'actual_pickup_at',
            'scheduled_delivery_at', 'actual_delivery_at', 'completed_at',
            'disputed_at', 'dispute_reason', 'notes', 'created_at', 'updated_at',
            'items', 'stages', 'transport_jobs'
        ]
        read_only_fields = fields


class ItemInputSerializer(serializers.Serializer):
    laundry_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    weight = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)


class RecordItemsSerializer(serializers.Serializer):
    """Items recorded by an outlet admin."""

    items = ItemInputSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value


class DisputeSerializer(serializers.Serializer):
    reason = serializers.CharField()


class InvoiceSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=100)
