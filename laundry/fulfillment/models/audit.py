"""
Audit trail and notification models for Laundry Fulfillment.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from django.db import models
from django.conf import settings
from django.utils import timezone


def _json_safe(value):
    """Make Decimals, datetimes and UUIDs storable in a JSONField."""
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, (Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class AuditLog(models.Model):
    """
    Audit log of workflow changes to orders, jobs, stages and bypass requests.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    entity_type = models.CharField(
        max_length=50,
        help_text="Type of entity (Order, TransportJob, WorkStage, BypassRequest)"
    )
    entity_id = models.UUIDField()
    action = models.CharField(
        max_length=50,
        help_text="Action performed (created, status_changed, claimed, priced, etc.)"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='fulfillment_audit_logs',
        help_text="User who performed the action; empty for system actions"
    )

    old_values = models.JSONField(default=dict, blank=True)
    new_values = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True)
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id', '-timestamp'], name='audit_entity_idx'),
            models.Index(fields=['action', '-timestamp'], name='audit_action_idx'),
        ]

    def __str__(self):
        return f"{self.entity_type} {self.entity_id} - {self.action} at {self.timestamp}"

    @classmethod
    def log_change(cls, entity, action: str, user=None, old_values=None, new_values=None, notes=""):
        """
        Create an audit log entry for an entity change.

        Args:
            entity: The model instance being audited
            action: The action performed
            user: User who performed the action (None for the system)
            old_values: Previous state
            new_values: New state
            notes: Additional notes
        """
        return cls.objects.create(
            entity_type=entity.__class__.__name__,
            entity_id=entity.id,
            action=action,
            user=user,
            old_values=_json_safe(old_values or {}),
            new_values=_json_safe(new_values or {}),
            notes=notes,
        )

    @classmethod
    def log_status_change(cls, entity, old_status: str, new_status: str, user=None, notes=""):
        return cls.log_change(
            entity=entity,
            action='status_changed',
            user=user,
            old_values={'status': old_status},
            new_values={'status': new_status},
            notes=notes
        )


class RecipientRole(models.TextChoices):
    CUSTOMER = 'CUSTOMER', 'Customer'
    DRIVER = 'DRIVER', 'Driver'
    WORKER = 'WORKER', 'Station Worker'
    OUTLET_ADMIN = 'OUTLET_ADMIN', 'Outlet Admin'


class Notification(models.Model):
    """A workflow event stored for the in-app notification feed."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.CharField(max_length=50)
    order = models.ForeignKey(
        'Order',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications'
    )
    recipient_role = models.CharField(max_length=20, choices=RecipientRole.choices)
    message = models.TextField()
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient_role', '-created_at'], name='notification_role_idx'),
            models.Index(fields=['order', 'event'], name='notification_order_event_idx'),
        ]

    def __str__(self):
        return f"{self.event} -> {self.recipient_role}"
