"""
Station work models for Laundry Fulfillment.
"""

import uuid
from django.db import models
from django.utils import timezone


class StageType(models.TextChoices):
    """Processing stations, in pipeline order."""
    WASHING = 'WASHING', 'Washing'
    IRONING = 'IRONING', 'Ironing'
    PACKING = 'PACKING', 'Packing'


STAGE_SEQUENCE = [StageType.WASHING, StageType.IRONING, StageType.PACKING]


class WorkStage(models.Model):
    """
    One processing stage of an order.

    All three stages are created when the order is taken in; a stage is open
    between ``started_at`` and ``completed_at``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        'Order',
        on_delete=models.CASCADE,
        related_name='stages'
    )
    stage = models.CharField(max_length=10, choices=StageType.choices)
    sequence = models.PositiveSmallIntegerField(help_text="Position in the pipeline, starting at 1")

    worker = models.ForeignKey(
        'Employee',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='work_stages',
        help_text="Station worker who claimed this stage"
    )
    bypass = models.ForeignKey(
        'BypassRequest',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Latest bypass request raised on this stage"
    )

    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order', 'sequence']
        constraints = [
            models.UniqueConstraint(fields=['order', 'stage'], name='uniq_stage_per_order'),
        ]
        indexes = [
            models.Index(fields=['worker', 'completed_at'], name='stage_worker_completed_idx'),
        ]

    def __str__(self):
        return f"{self.get_stage_display()} for {self.order.order_number}"

    @property
    def is_started(self):
        return self.started_at is not None

    @property
    def is_completed(self):
        return self.completed_at is not None

    @property
    def is_open(self):
        return self.is_started and not self.is_completed
