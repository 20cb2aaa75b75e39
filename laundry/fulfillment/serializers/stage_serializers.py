"""
Station and bypass serializers for Laundry Fulfillment.
"""

from rest_framework import serializers

from ..models import BypassRequest, WorkStage
from ..services.bypass_service import ADMIN_NOTE_MAX_LENGTH


class WorkStageSerializer(serializers.ModelSerializer):
    """Serializer for WorkStage model."""

    order_number = serializers.CharField(source='order.order_number', read_only=True)
    order_status = serializers.CharField(source='order.status', read_only=True)

    class Meta:
        model = WorkStage
        fields = [
            'id', 'order', 'order_number', 'order_status', 'stage', 'sequence',
            'worker', 'bypass', 'started_at', 'completed_at', 'notes'
        ]
        read_only_fields = fields


class CountedItemSerializer(serializers.Serializer):
    laundry_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=0)


class StartStageSerializer(serializers.Serializer):
    """The worker's item count, compared with the order before the stage starts."""

    counted_items = CountedItemSerializer(many=True)


class CompleteStageSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    corrected_items = CountedItemSerializer(many=True, required=False, allow_empty=False)


class BypassCreateSerializer(serializers.Serializer):
    reason = serializers.CharField()


class BypassResolveSerializer(serializers.Serializer):
    note = serializers.CharField(max_length=ADMIN_NOTE_MAX_LENGTH)


class BypassRequestSerializer(serializers.ModelSerializer):
    """Serializer for BypassRequest model."""

    stage_type = serializers.CharField(source='stage.stage', read_only=True)
    order = serializers.UUIDField(source='stage.order_id', read_only=True)
    order_number = serializers.CharField(source='stage.order.order_number', read_only=True)
    requested_by_name = serializers.CharField(source='requested_by.user.username', read_only=True)
    processed_by_name = serializers.CharField(source='processed_by.user.username', read_only=True, default=None)

    class Meta:
        model = BypassRequest
        fields = [
            'id', 'stage', 'stage_type', 'order', 'order_number', 'requested_by',
            'requested_by_name', 'reason', 'status', 'admin_note', 'processed_by',
            'processed_by_name', 'processed_at', 'created_at'
        ]
        read_only_fields = fields
