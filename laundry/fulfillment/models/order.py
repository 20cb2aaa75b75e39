"""
Order models for Laundry Fulfillment.
"""

import uuid
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.utils import timezone


class OrderStatus(models.TextChoices):
    """Order status enumeration, in workflow order."""
    CREATED = 'CREATED', 'Created'
    WAITING_FOR_PICKUP = 'WAITING_FOR_PICKUP', 'Waiting for Pickup'
    PICKUP_EN_ROUTE = 'PICKUP_EN_ROUTE', 'Driver on the Way to Customer'
    PICKUP_ARRIVED = 'PICKUP_ARRIVED', 'Driver Arrived at Customer'
    RETURNING_TO_OUTLET = 'RETURNING_TO_OUTLET', 'Returning to Outlet'
    ARRIVED_AT_OUTLET = 'ARRIVED_AT_OUTLET', 'Arrived at Outlet'
    BEING_WASHED = 'BEING_WASHED', 'Being Washed'
    BEING_IRONED = 'BEING_IRONED', 'Being Ironed'
    BEING_PACKED = 'BEING_PACKED', 'Being Packed'
    WAITING_PAYMENT = 'WAITING_PAYMENT', 'Waiting for Payment'
    READY_FOR_DELIVERY = 'READY_FOR_DELIVERY', 'Ready for Delivery'
    DELIVERY_EN_ROUTE = 'DELIVERY_EN_ROUTE', 'Being Delivered'
    DELIVERED = 'DELIVERED', 'Delivered'
    COMPLETED = 'COMPLETED', 'Completed'


class PaymentStatus(models.TextChoices):
    UNPAID = 'UNPAID', 'Unpaid'
    WAITING = 'WAITING', 'Waiting for Payment'
    PAID = 'PAID', 'Paid'


class Order(models.Model):
    """
    A customer's laundry order.

    Money fields are written once, by the pricing step at the end of packing,
    and never recomputed afterwards.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Unique order identifier (auto-generated)"
    )

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='laundry_orders',
        help_text="Customer who requested the pickup"
    )
    outlet = models.ForeignKey(
        'Outlet',
        on_delete=models.PROTECT,
        related_name='orders',
        help_text="Outlet processing this order"
    )

    status = models.CharField(
        max_length=30,
        choices=OrderStatus.choices,
        default=OrderStatus.CREATED,
        help_text="Current order status in the fulfillment workflow"
    )
    payment_status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID
    )

    # Money and weight, null until the corresponding workflow step
    total_weight = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    delivery_fee = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    distance_km = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    within_service_radius = models.BooleanField(default=True)
    priced_at = models.DateTimeField(null=True, blank=True)

    # Address snapshot taken at pickup request
    address_line = models.CharField(max_length=255)
    district = models.CharField(max_length=100, blank=True)
    city = models.CharField(max_length=100, blank=True)
    province = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=20, blank=True)
    latitude = models.DecimalField(max_digits=9, decimal_places=6)
    longitude = models.DecimalField(max_digits=9, decimal_places=6)

    # Schedule
    scheduled_pickup_at = models.DateTimeField(null=True, blank=True)
    actual_pickup_at = models.DateTimeField(null=True, blank=True)
    scheduled_delivery_at = models.DateTimeField(null=True, blank=True)
    actual_delivery_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    # Payment
    payment_reference = models.CharField(max_length=100, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    # Customer dispute keeps a delivered order out of auto-completion
    disputed_at = models.DateTimeField(null=True, blank=True)
    dispute_reason = models.TextField(blank=True)

    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['outlet', 'status'], name='order_outlet_status_idx'),
            models.Index(fields=['customer', 'status'], name='order_customer_status_idx'),
            models.Index(fields=['status', 'actual_delivery_at'], name='order_status_delivered_idx'),
        ]

    def __str__(self):
        return f"Order {self.order_number} - {self.status}"

    def save(self, *args, **kwargs):
        """Override save to auto-generate order number if not provided."""
        if not self.order_number:
            timestamp = timezone.now().strftime('%Y%m%d%H%M%S')
            self.order_number = f"LND-{timestamp}-{str(self.id)[:8].upper()}"
        super().save(*args, **kwargs)

    @property
    def is_priced(self):
        return self.total_price is not None

    @property
    def amount_due(self):
        """Items plus delivery; None until pricing is frozen."""
        if self.total_price is None:
            return None
        return self.total_price + (self.delivery_fee or Decimal('0.00'))

    @property
    def is_paid(self):
        return self.payment_status == PaymentStatus.PAID


class OrderItem(models.Model):
    """A catalogue item recorded against an order, with its line price."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items'
    )
    laundry_item = models.ForeignKey(
        'LaundryItem',
        on_delete=models.PROTECT,
        related_name='order_items'
    )
    quantity = models.PositiveIntegerField(default=1)
    weight = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Catalogue price at the time the item was recorded"
    )
    line_price = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"{self.quantity} x {self.laundry_item} ({self.order.order_number})"
