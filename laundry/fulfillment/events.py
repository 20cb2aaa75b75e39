"""
Workflow events published to the notification sink.

Events are queued with ``transaction.on_commit`` so nothing is announced for
work that rolls back, and a failing sink is logged without touching the
workflow.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from django.db import transaction

from .adapters.notification_adapter import get_notification_sink

logger = logging.getLogger(__name__)

STAGE_STARTED = 'StageStarted'
STAGE_COMPLETED = 'StageCompleted'
JOB_CLAIMED = 'JobClaimed'
BYPASS_REQUESTED = 'BypassRequested'
BYPASS_RESOLVED = 'BypassResolved'
ORDER_COMPLETED = 'OrderCompleted'


@dataclass(frozen=True)
class WorkflowEvent:
    name: str
    order_id: Optional[Any]
    recipient_role: str
    message: str
    payload: Dict[str, Any] = field(default_factory=dict)


def _deliver(event: WorkflowEvent) -> None:
    try:
        get_notification_sink().publish(event)
    except Exception:
        logger.exception(f"Notification sink failed to publish {event.name} for order {event.order_id}")


def emit(name: str, order_id, recipient_role: str, message: str, **payload) -> WorkflowEvent:
    """Queue an event for delivery once the surrounding transaction commits."""
    event = WorkflowEvent(
        name=name,
        order_id=order_id,
        recipient_role=recipient_role,
        message=message,
        payload={key: str(value) if value is not None else None for key, value in payload.items()},
    )
    transaction.on_commit(lambda: _deliver(event))
    logger.debug(f"Queued {name} for order {order_id}")
    return event
