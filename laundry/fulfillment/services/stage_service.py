"""
Work Process Pipeline for Laundry Fulfillment.

Handles the washing, ironing and packing stations. Stages run strictly in
sequence: a stage may start once the one before it is cleared, meaning
completed or carrying an approved bypass.
"""

import logging
from typing import Any, Dict, List, Optional
from django.db import transaction
from django.utils import timezone

from .. import events
from ..authorization import Capability, get_employee, require_capability
from ..exceptions import (
    InvalidTransitionException, NotFoundException, NotOwnerException,
    StageFrozenException, ValidationException
)
from ..lookups import get_or_not_found
from ..models import (
    AuditLog, BypassRequest, BypassStatus, Employee, Order, OrderStatus,
    RecipientRole, StageType, WorkStage
)
from .order_service import OrderService
from .pricing_service import PricingService
from .workflow import OrderWorkflow, transition_order

logger = logging.getLogger(__name__)

# Order status -> the stage whose completion moves the order on
STATUS_STAGE = {
    OrderStatus.BEING_WASHED: StageType.WASHING,
    OrderStatus.BEING_IRONED: StageType.IRONING,
    OrderStatus.BEING_PACKED: StageType.PACKING,
}


def stage_state(stage: WorkStage) -> str:
    if stage.is_completed:
        return 'COMPLETED'
    if stage.is_started:
        return 'STARTED'
    return 'NOT_STARTED'


def is_cleared(stage: WorkStage) -> bool:
    """A stage is cleared when completed or when a bypass on it was approved."""
    if stage.is_completed:
        return True
    return stage.bypass_requests.filter(status=BypassStatus.APPROVED).exists()


class StageService:
    """Service class for station work."""

    @staticmethod
    def _lock(stage_id):
        order_id = get_or_not_found(WorkStage.objects.only('order_id'), stage_id, "WorkStage").order_id
        order = OrderService.lock(order_id)
        stage = WorkStage.objects.select_for_update().get(id=stage_id)
        stage.order = order
        return order, stage

    @staticmethod
    def start_stage(order_id, stage: str, employee_id, counted_items: List[Dict[str, Any]]) -> WorkStage:
        """
        Claim and start one stage of an order.

        The worker counts the items first. A count that differs from the
        recorded items refuses the start; the worker requests a bypass instead.

        Args:
            order_id: Order UUID
            stage: WASHING, IRONING or PACKING
            employee_id: Employee UUID of the station worker
            counted_items: [{"laundry_item_id", "quantity"}, ...] as counted

        Returns:
            The started WorkStage

        Raises:
            InvalidTransitionException: If the stage already started, the
                stage before it is not cleared, or (for washing) the order
                is not at the outlet
            StageFrozenException: If a bypass is pending on the order
            CapabilityDeniedException: If the worker cannot work for the outlet
            ValidationException: If the count does not match the order
        """
        if stage not in StageType.values:
            raise ValidationException(f"Unknown stage {stage}", {'stage': stage})

        with transaction.atomic():
            order = OrderService.lock(order_id)
            worker = get_employee(employee_id)
            require_capability(worker, Capability.PROCESS_STAGE, order.outlet_id)

            work_stage = WorkStage.objects.select_for_update().filter(order=order, stage=stage).first()
            if work_stage is None:
                raise NotFoundException("WorkStage", f"{order.id}/{stage}")
            work_stage.order = order

            StageService.check_can_begin(order, work_stage)
            OrderService.check_counts(order, counted_items)
            StageService.begin(order, work_stage, worker)
            return work_stage

    @staticmethod
    def check_can_begin(order: Order, work_stage: WorkStage) -> None:
        """Raise unless a locked stage may start now."""
        if work_stage.is_started:
            raise InvalidTransitionException(
                stage_state(work_stage), 'STARTED', entity_type=f"WorkStage {work_stage.stage}"
            )

        pending = BypassRequest.objects.filter(
            stage__order=order, status=BypassStatus.PENDING
        ).first()
        if pending is not None:
            raise StageFrozenException(pending.stage_id, pending.id)

        if work_stage.sequence > 1:
            previous = order.stages.get(sequence=work_stage.sequence - 1)
            if not is_cleared(previous):
                raise InvalidTransitionException(
                    f"{previous.stage} {stage_state(previous)}",
                    f"{work_stage.stage} STARTED",
                    entity_type="WorkStage"
                )

    @staticmethod
    def begin(order: Order, work_stage: WorkStage, worker: Employee) -> WorkStage:
        """
        Start a locked stage for ``worker``. Callers hold the order lock and
        have checked the worker's capability.
        """
        StageService.check_can_begin(order, work_stage)

        if work_stage.stage == StageType.WASHING:
            transition_order(order, OrderStatus.BEING_WASHED, user=worker.user, notes="Washing started")

        work_stage.worker = worker
        work_stage.started_at = timezone.now()
        work_stage.save(update_fields=['worker', 'started_at', 'updated_at'])

        AuditLog.log_change(
            entity=work_stage,
            action='started',
            user=worker.user,
            new_values={'stage': work_stage.stage, 'worker': worker.id},
        )

        events.emit(
            events.STAGE_STARTED,
            order.id,
            RecipientRole.CUSTOMER,
            f"{work_stage.get_stage_display()} started for order {order.order_number}",
            stage=work_stage.stage,
            worker_id=worker.id,
        )

        logger.info(f"Worker {worker.id} started {work_stage.stage} on order {order.order_number}")
        return work_stage

    @staticmethod
    def complete_stage(stage_id, employee_id, notes: str = "",
                       corrected_items: Optional[List[Dict[str, Any]]] = None) -> WorkStage:
        """
        Complete a started stage and move the order on.

        Finishing packing freezes the order's pricing before it enters
        WAITING_PAYMENT. On a stage whose bypass was approved the worker may
        pass ``corrected_items`` to fix the recorded quantities, as long as
        pricing is not frozen yet.

        Raises:
            InvalidTransitionException: If the stage is not open
            NotOwnerException: If the caller is not the stage's worker
            StageFrozenException: If a bypass on the stage is pending
            ValidationException: If quantities are corrected without an
                approved bypass or after pricing is frozen
        """
        with transaction.atomic():
            order, work_stage = StageService._lock(stage_id)
            worker = get_employee(employee_id)
            require_capability(worker, Capability.PROCESS_STAGE, order.outlet_id)

            if not work_stage.is_open:
                raise InvalidTransitionException(
                    stage_state(work_stage), 'COMPLETED', entity_type=f"WorkStage {work_stage.stage}"
                )

            if work_stage.worker_id != worker.id:
                raise NotOwnerException("WorkStage", work_stage.id, worker.id)

            pending = work_stage.bypass_requests.filter(status=BypassStatus.PENDING).first()
            if pending is not None:
                raise StageFrozenException(work_stage.id, pending.id)

            if corrected_items is not None:
                if not work_stage.bypass_requests.filter(status=BypassStatus.APPROVED).exists():
                    raise ValidationException(
                        "Item quantities can only be corrected on a stage with an approved bypass",
                        {'items': 'bypass_not_approved'}
                    )
                OrderService.correct_quantities(order, corrected_items, user=worker.user)

            work_stage.completed_at = timezone.now()
            if notes:
                work_stage.notes = notes
            work_stage.save(update_fields=['completed_at', 'notes', 'updated_at'])

            AuditLog.log_change(
                entity=work_stage,
                action='completed',
                user=worker.user,
                new_values={'stage': work_stage.stage, 'completed_at': work_stage.completed_at},
                notes=notes
            )

            events.emit(
                events.STAGE_COMPLETED,
                order.id,
                RecipientRole.CUSTOMER,
                f"{work_stage.get_stage_display()} finished for order {order.order_number}",
                stage=work_stage.stage,
                worker_id=worker.id,
            )

            logger.info(f"Worker {worker.id} completed {work_stage.stage} on order {order.order_number}")

            StageService.advance_order(order, user=worker.user)
            return work_stage

    @staticmethod
    def advance_order(order: Order, user=None) -> Order:
        """
        Move a locked order past every processing status whose stage is done.

        A stage finished out of turn (after the stage before it was bypassed)
        is picked up here once the earlier stage completes.
        """
        stages: Dict[str, WorkStage] = {stage.stage: stage for stage in order.stages.all()}

        while order.status in STATUS_STAGE:
            if not stages[STATUS_STAGE[order.status]].is_completed:
                break

            if order.status == OrderStatus.BEING_PACKED:
                PricingService.freeze_pricing(order, user=user)

            next_status = OrderWorkflow.ALLOWED_TRANSITIONS[order.status][0]
            transition_order(order, next_status, user=user)

        return order
