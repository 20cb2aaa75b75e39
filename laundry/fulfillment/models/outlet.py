"""
Outlet, employee and catalogue models for Laundry Fulfillment.

These are maintained by the surrounding back office; the workflow only reads
them and filters out tombstoned rows.
"""

import uuid
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.utils import timezone


class ActiveManager(models.Manager):
    """Manager hiding tombstoned rows."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class Outlet(models.Model):
    """A physical laundry branch with its service radius and fee schedule."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    address = models.TextField(blank=True)

    latitude = models.DecimalField(max_digits=9, decimal_places=6)
    longitude = models.DecimalField(max_digits=9, decimal_places=6)

    service_radius_km = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal('10.00'),
        help_text="Radius served by this outlet (km); orders beyond it are flagged"
    )
    delivery_base_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Flat delivery fee"
    )
    delivery_per_km = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Delivery fee per kilometre"
    )
    currency_decimal_places = models.PositiveSmallIntegerField(
        default=0,
        help_text="Minor unit of the outlet's currency; fees are rounded to it"
    )

    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = models.Manager()
    active = ActiveManager()

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def is_deleted(self):
        return self.deleted_at is not None


class EmployeeRole(models.TextChoices):
    """Capability role of a staff account."""
    DRIVER = 'DRIVER', 'Driver'
    WORKER = 'WORKER', 'Station Worker'
    OUTLET_ADMIN = 'OUTLET_ADMIN', 'Outlet Admin'


class Employee(models.Model):
    """
    Staff account scoped to exactly one outlet.

    All job and stage assignment is outlet-scoped through this record.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='employee',
        help_text="Login account of this employee"
    )
    outlet = models.ForeignKey(
        Outlet,
        on_delete=models.PROTECT,
        related_name='employees'
    )
    role = models.CharField(max_length=20, choices=EmployeeRole.choices)

    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = models.Manager()
    active = ActiveManager()

    class Meta:
        indexes = [
            models.Index(fields=['outlet', 'role'], name='employee_outlet_role_idx'),
        ]

    def __str__(self):
        return f"{self.user} ({self.get_role_display()})"

    @property
    def is_assignable(self):
        """Tombstoned employees, or employees of tombstoned outlets, take no work."""
        return self.deleted_at is None and self.outlet.deleted_at is None


class PricingType(models.TextChoices):
    PER_PIECE = 'PER_PIECE', 'Per Piece'
    PER_KG = 'PER_KG', 'Per Kilogram'


class LaundryItem(models.Model):
    """Catalogue entry priced per piece or per kilogram."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    category = models.CharField(max_length=100, blank=True)
    base_price = models.DecimalField(max_digits=12, decimal_places=2)
    pricing_type = models.CharField(
        max_length=10,
        choices=PricingType.choices,
        default=PricingType.PER_PIECE
    )

    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    objects = models.Manager()
    active = ActiveManager()

    class Meta:
        ordering = ['category', 'name']

    def __str__(self):
        return self.name
