"""
Idle auto-completion for Laundry Fulfillment.

Delivered orders that nobody disputes are completed once they have sat in
DELIVERED for AUTO_COMPLETE_AFTER_HOURS. The sweep is safe to run as often
as a scheduler likes, including concurrently with itself.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID
from django.db import DatabaseError, transaction
from django.utils import timezone

from .. import events
from ..conf import fulfillment_setting
from ..exceptions import BusinessException
from ..models import Order, OrderStatus, RecipientRole
from .workflow import transition_order

logger = logging.getLogger(__name__)


def _is_overdue(order: Order, cutoff: datetime) -> bool:
    return (
        order.status == OrderStatus.DELIVERED
        and order.disputed_at is None
        and order.actual_delivery_at is not None
        and order.actual_delivery_at <= cutoff
    )


def sweep_overdue_orders(now: Optional[datetime] = None) -> List[UUID]:
    """
    Complete every overdue delivered order.

    Each order is completed in its own transaction after re-checking its
    state under a row lock, so an order completed by an earlier or parallel
    run is skipped and OrderCompleted fires once per order. An order that
    fails is logged and left for the next run.

    Args:
        now: Reference time (defaults to the current time)

    Returns:
        Ids of the orders completed by this run
    """
    now = now or timezone.now()
    cutoff = now - timedelta(hours=fulfillment_setting('AUTO_COMPLETE_AFTER_HOURS'))

    candidates = list(
        Order.objects.filter(
            status=OrderStatus.DELIVERED,
            disputed_at__isnull=True,
            actual_delivery_at__lte=cutoff,
        ).values_list('id', flat=True)
    )

    completed = []
    for order_id in candidates:
        try:
            with transaction.atomic():
                order = Order.objects.select_for_update().get(id=order_id)
                if not _is_overdue(order, cutoff):
                    continue

                order.completed_at = now
                transition_order(
                    order, OrderStatus.COMPLETED,
                    notes=f"Auto-completed {fulfillment_setting('AUTO_COMPLETE_AFTER_HOURS')}h after delivery",
                    extra_fields=['completed_at']
                )

                events.emit(
                    events.ORDER_COMPLETED,
                    order.id,
                    RecipientRole.CUSTOMER,
                    f"Order {order.order_number} is complete",
                    completed_at=order.completed_at,
                )

            completed.append(order.id)
        except (BusinessException, DatabaseError):
            logger.exception(f"Auto-completion failed for order {order_id}, will retry on the next sweep")

    logger.info(f"Sweep at {now.isoformat()}: {len(candidates)} candidates, {len(completed)} completed")
    return completed
