"""
Workflow service for Laundry Fulfillment.

Manages allowed state transitions and enforces business rules.
"""

import logging

from ..exceptions import InvalidTransitionException
from ..models import (
    AuditLog, BypassRequest, BypassStatus, Order, OrderStatus,
    TransportJob, TransportJobStatus
)

logger = logging.getLogger(__name__)

ORDER_SEQUENCE = [
    OrderStatus.CREATED,
    OrderStatus.WAITING_FOR_PICKUP,
    OrderStatus.PICKUP_EN_ROUTE,
    OrderStatus.PICKUP_ARRIVED,
    OrderStatus.RETURNING_TO_OUTLET,
    OrderStatus.ARRIVED_AT_OUTLET,
    OrderStatus.BEING_WASHED,
    OrderStatus.BEING_IRONED,
    OrderStatus.BEING_PACKED,
    OrderStatus.WAITING_PAYMENT,
    OrderStatus.READY_FOR_DELIVERY,
    OrderStatus.DELIVERY_EN_ROUTE,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
]


class OrderWorkflow:
    """Workflow rules for Order state transitions."""

    # Each status moves only to the one after it; COMPLETED is final
    ALLOWED_TRANSITIONS = {
        status: ORDER_SEQUENCE[index + 1:index + 2]
        for index, status in enumerate(ORDER_SEQUENCE)
    }

    @classmethod
    def validate_transition(cls, order: Order, new_status: str) -> None:
        """
        Validate if a status transition is allowed.

        Re-entering the current status is not a transition and is rejected.

        Args:
            order: Order instance
            new_status: New status to transition to

        Raises:
            InvalidTransitionException: If transition is not allowed
        """
        current_status = order.status
        allowed_transitions = cls.ALLOWED_TRANSITIONS.get(current_status, [])

        if new_status not in allowed_transitions:
            raise InvalidTransitionException(
                current_status=current_status,
                attempted_status=new_status,
                entity_type="Order"
            )

    @classmethod
    def can_transition_to(cls, order: Order, new_status: str) -> bool:
        try:
            cls.validate_transition(order, new_status)
            return True
        except InvalidTransitionException:
            return False

    @staticmethod
    def is_past(order: Order, status: str) -> bool:
        """True if the order has moved beyond ``status``."""
        return ORDER_SEQUENCE.index(order.status) > ORDER_SEQUENCE.index(status)


class TransportJobWorkflow:
    """Workflow rules for TransportJob state transitions."""

    ALLOWED_TRANSITIONS = {
        TransportJobStatus.UNCLAIMED: [TransportJobStatus.CLAIMED],
        TransportJobStatus.CLAIMED: [TransportJobStatus.IN_PROGRESS],
        TransportJobStatus.IN_PROGRESS: [TransportJobStatus.COMPLETED],
        TransportJobStatus.COMPLETED: [],  # Final state
    }

    @classmethod
    def validate_transition(cls, job: TransportJob, new_status: str) -> None:
        """
        Validate if a status transition is allowed.

        Raises:
            InvalidTransitionException: If transition is not allowed
        """
        if new_status not in cls.ALLOWED_TRANSITIONS.get(job.status, []):
            raise InvalidTransitionException(
                current_status=job.status,
                attempted_status=new_status,
                entity_type="TransportJob"
            )


class BypassWorkflow:
    """Workflow rules for BypassRequest state transitions."""

    ALLOWED_TRANSITIONS = {
        BypassStatus.PENDING: [BypassStatus.APPROVED, BypassStatus.REJECTED],
        BypassStatus.APPROVED: [],  # Final state
        BypassStatus.REJECTED: [],  # Final state
    }

    @classmethod
    def validate_transition(cls, request: BypassRequest, new_status: str) -> None:
        if new_status not in cls.ALLOWED_TRANSITIONS.get(request.status, []):
            raise InvalidTransitionException(
                current_status=request.status,
                attempted_status=new_status,
                entity_type="BypassRequest"
            )


def validate_order_workflow(order: Order, new_status: str) -> None:
    """
    Validate order workflow transition.

    Raises:
        InvalidTransitionException: If transition is not allowed
    """
    OrderWorkflow.validate_transition(order, new_status)


def validate_job_workflow(job: TransportJob, new_status: str) -> None:
    TransportJobWorkflow.validate_transition(job, new_status)


def transition_order(order: Order, new_status: str, user=None, notes: str = "",
                     extra_fields=None) -> Order:
    """
    Move a locked order to ``new_status``, save it and audit the change.

    Args:
        order: Order instance, locked by the caller
        new_status: Status to move to
        user: User responsible (None for system triggers)
        notes: Audit notes
        extra_fields: Other fields the caller changed and wants saved with it

    Raises:
        InvalidTransitionException: If transition is not allowed
    """
    validate_order_workflow(order, new_status)

    old_status = order.status
    order.status = new_status
    order.save(update_fields=['status', 'updated_at'] + list(extra_fields or []))

    AuditLog.log_status_change(
        entity=order,
        old_status=old_status,
        new_status=new_status,
        user=user,
        notes=notes
    )

    logger.info(f"Order {order.order_number} moved from {old_status} to {new_status}")
    return order
