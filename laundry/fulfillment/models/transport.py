"""
Transport job models for Laundry Fulfillment.
"""

import uuid
from django.db import models
from django.utils import timezone


class TransportJobKind(models.TextChoices):
    PICKUP = 'PICKUP', 'Pickup'
    DELIVERY = 'DELIVERY', 'Delivery'


class TransportJobStatus(models.TextChoices):
    """Transport job status enumeration."""
    UNCLAIMED = 'UNCLAIMED', 'Unclaimed'
    CLAIMED = 'CLAIMED', 'Claimed'
    IN_PROGRESS = 'IN_PROGRESS', 'In Progress'
    COMPLETED = 'COMPLETED', 'Completed'


ACTIVE_JOB_STATUSES = [TransportJobStatus.CLAIMED, TransportJobStatus.IN_PROGRESS]


class TransportJob(models.Model):
    """
    A pickup or delivery task held by at most one driver.

    ``driver`` is null exactly while the job is UNCLAIMED.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        'Order',
        on_delete=models.CASCADE,
        related_name='transport_jobs'
    )
    kind = models.CharField(max_length=10, choices=TransportJobKind.choices)
    status = models.CharField(
        max_length=20,
        choices=TransportJobStatus.choices,
        default=TransportJobStatus.UNCLAIMED
    )
    driver = models.ForeignKey(
        'Employee',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transport_jobs',
        help_text="Driver holding this job"
    )

    claimed_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    photo_url = models.URLField(max_length=500, blank=True, help_text="Proof photo reference")
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['order', 'kind'], name='uniq_job_kind_per_order'),
        ]
        indexes = [
            models.Index(fields=['status', 'kind'], name='job_status_kind_idx'),
            models.Index(fields=['driver', 'status'], name='job_driver_status_idx'),
        ]

    def __str__(self):
        return f"{self.get_kind_display()} job for {self.order.order_number} - {self.status}"

    @property
    def is_pickup(self):
        return self.kind == TransportJobKind.PICKUP

    @property
    def is_claimed(self):
        return self.driver_id is not None
