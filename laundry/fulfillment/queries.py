"""
Typed query objects for the workflow's list operations.

Each query is a frozen dataclass holding its filter values; ``queryset()``
turns it into an ORM queryset. Views build these from request parameters
instead of passing filter dicts around.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.db.models import Exists, OuterRef, Q, QuerySet

from .models import (
    BypassRequest, BypassStatus, OrderStatus, PaymentStatus, StageType,
    TransportJob, TransportJobKind, TransportJobStatus, WorkStage
)

# Order statuses in which the washing station may pick an order up
WASHING_READY_STATUSES = [OrderStatus.ARRIVED_AT_OUTLET, OrderStatus.BEING_WASHED]


def _pending_bypass_on_order():
    return BypassRequest.objects.filter(
        stage__order=OuterRef('order'),
        status=BypassStatus.PENDING,
    )


@dataclass(frozen=True)
class AvailableJobsQuery:
    """Unclaimed transport jobs a driver of ``outlet_id`` could claim."""
    outlet_id: UUID
    kind: Optional[str] = None
    search: Optional[str] = None

    def queryset(self) -> QuerySet:
        qs = TransportJob.objects.select_related('order', 'order__customer').filter(
            order__outlet_id=self.outlet_id,
            status=TransportJobStatus.UNCLAIMED,
            driver__isnull=True,
        ).exclude(
            kind=TransportJobKind.DELIVERY,
            order__payment_status__in=[PaymentStatus.UNPAID, PaymentStatus.WAITING],
        )

        if self.kind:
            qs = qs.filter(kind=self.kind)

        if self.search:
            qs = qs.filter(
                Q(order__order_number__icontains=self.search) |
                Q(order__customer__first_name__icontains=self.search) |
                Q(order__customer__last_name__icontains=self.search) |
                Q(order__customer__username__icontains=self.search)
            )

        return qs.order_by('created_at')


@dataclass(frozen=True)
class StationQueueQuery:
    """
    Stages of ``stage`` type at an outlet that are ready to work on or open.

    A stage is ready when the stage before it is cleared (completed or
    bypass-approved); washing is ready once the order is back at the outlet.
    Orders with a pending bypass on any stage are left out. With
    ``worker_id`` set, stages claimed by other workers are left out too.
    """
    outlet_id: UUID
    stage: str
    worker_id: Optional[UUID] = None

    def queryset(self) -> QuerySet:
        approved_bypass = BypassRequest.objects.filter(
            stage=OuterRef('pk'), status=BypassStatus.APPROVED
        )
        previous_cleared = WorkStage.objects.filter(
            order=OuterRef('order'),
            sequence=OuterRef('sequence') - 1,
        ).annotate(
            bypass_approved=Exists(approved_bypass),
        ).filter(
            Q(completed_at__isnull=False) | Q(bypass_approved=True)
        )

        qs = WorkStage.objects.select_related('order', 'worker').annotate(
            previous_cleared=Exists(previous_cleared),
            order_frozen=Exists(_pending_bypass_on_order()),
        ).filter(
            order__outlet_id=self.outlet_id,
            stage=self.stage,
            completed_at__isnull=True,
            order_frozen=False,
        )

        if self.stage == StageType.WASHING:
            qs = qs.filter(order__status__in=WASHING_READY_STATUSES)
        else:
            qs = qs.filter(previous_cleared=True)

        if self.worker_id:
            qs = qs.filter(Q(worker__isnull=True) | Q(worker_id=self.worker_id))

        return qs.order_by('order__created_at')


@dataclass(frozen=True)
class BypassRequestQuery:
    """Bypass requests raised at an outlet, newest first."""
    outlet_id: UUID
    status: Optional[str] = None
    stage: Optional[str] = None

    def queryset(self) -> QuerySet:
        qs = BypassRequest.objects.select_related(
            'stage', 'stage__order', 'requested_by__user', 'processed_by__user'
        ).filter(stage__order__outlet_id=self.outlet_id)

        if self.status:
            qs = qs.filter(status=self.status)
        if self.stage:
            qs = qs.filter(stage__stage=self.stage)

        return qs.order_by('-created_at')
