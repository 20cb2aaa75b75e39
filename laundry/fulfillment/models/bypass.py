"""
Bypass request model for Laundry Fulfillment.
"""

import uuid
from django.db import models
from django.db.models import Q
from django.utils import timezone


class BypassStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    APPROVED = 'APPROVED', 'Approved'
    REJECTED = 'REJECTED', 'Rejected'


class BypassRequest(models.Model):
    """
    Escalation raised by a station worker on an item discrepancy.

    While PENDING the linked stage cannot be completed.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    stage = models.ForeignKey(
        'WorkStage',
        on_delete=models.CASCADE,
        related_name='bypass_requests'
    )
    requested_by = models.ForeignKey(
        'Employee',
        on_delete=models.PROTECT,
        related_name='bypass_requests'
    )
    reason = models.TextField()
    status = models.CharField(
        max_length=10,
        choices=BypassStatus.choices,
        default=BypassStatus.PENDING
    )

    admin_note = models.TextField(blank=True)
    processed_by = models.ForeignKey(
        'Employee',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='processed_bypass_requests',
        help_text="Outlet admin who approved or rejected the request"
    )
    processed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['stage'],
                condition=Q(status='PENDING'),
                name='uniq_pending_bypass_per_stage'
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'created_at'], name='bypass_status_created_idx'),
        ]

    def __str__(self):
        return f"Bypass {self.status} on {self.stage}"

    @property
    def is_pending(self):
        return self.status == BypassStatus.PENDING
