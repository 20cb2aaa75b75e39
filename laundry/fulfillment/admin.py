"""
Django admin configuration for Laundry Fulfillment.
"""

from django.contrib import admin
from .models import (
    Outlet, Employee, LaundryItem, Order, OrderItem, WorkStage,
    TransportJob, BypassRequest, AuditLog, Notification
)


@admin.register(Outlet)
class OutletAdmin(admin.ModelAdmin):
    list_display = ['name', 'service_radius_km', 'delivery_base_fee', 'delivery_per_km', 'deleted_at']
    list_filter = ['deleted_at']
    search_fields = ['name', 'address']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ['user', 'outlet', 'role', 'deleted_at']
    list_filter = ['role', 'outlet']
    search_fields = ['user__username', 'outlet__name']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(LaundryItem)
class LaundryItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'base_price', 'pricing_type', 'deleted_at']
    list_filter = ['pricing_type', 'category']
    search_fields = ['name']


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['unit_price', 'line_price']


class WorkStageInline(admin.TabularInline):
    model = WorkStage
    extra = 0
    readonly_fields = ['stage', 'sequence', 'worker', 'started_at', 'completed_at', 'bypass']
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer', 'outlet', 'status', 'payment_status', 'total_price', 'created_at']
    list_filter = ['status', 'payment_status', 'outlet', 'within_service_radius']
    search_fields = ['order_number', 'customer__username', 'address_line']
    # Money and workflow fields only change through the workflow services
    readonly_fields = [
        'id', 'order_number', 'status', 'payment_status', 'total_weight', 'total_price',
        'delivery_fee', 'distance_km', 'priced_at', 'paid_at', 'completed_at',
        'created_at', 'updated_at'
    ]
    inlines = [OrderItemInline, WorkStageInline]


@admin.register(TransportJob)
class TransportJobAdmin(admin.ModelAdmin):
    list_display = ['order', 'kind', 'status', 'driver', 'claimed_at', 'completed_at']
    list_filter = ['kind', 'status']
    search_fields = ['order__order_number', 'driver__user__username']
    readonly_fields = ['id', 'status', 'driver', 'claimed_at', 'started_at', 'completed_at', 'created_at', 'updated_at']


@admin.register(BypassRequest)
class BypassRequestAdmin(admin.ModelAdmin):
    list_display = ['stage', 'requested_by', 'status', 'processed_by', 'created_at']
    list_filter = ['status']
    search_fields = ['stage__order__order_number', 'reason']
    readonly_fields = ['id', 'status', 'processed_by', 'processed_at', 'created_at', 'updated_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['entity_type', 'entity_id', 'action', 'user', 'timestamp']
    list_filter = ['entity_type', 'action', 'timestamp']
    search_fields = ['entity_id', 'user__username']
    readonly_fields = ['id', 'timestamp']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['event', 'order', 'recipient_role', 'created_at']
    list_filter = ['event', 'recipient_role']
    search_fields = ['order__order_number', 'message']
