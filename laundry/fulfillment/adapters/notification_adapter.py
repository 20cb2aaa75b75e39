"""
Notification Adapter for Laundry Fulfillment.

Provides the interface workflow events are published through, with a
database-backed implementation and an in-memory one for tests.
"""

from abc import ABC, abstractmethod
from typing import List

from django.utils.module_loading import import_string

from ..conf import fulfillment_setting


class NotificationSinkInterface(ABC):
    """
    Interface for delivering workflow events to their audience.

    Delivery is fire-and-forget: callers never wait on, or fail because of,
    a sink.
    """

    @abstractmethod
    def publish(self, event) -> None:
        """
        Deliver one workflow event.

        Args:
            event: WorkflowEvent carrying the event name, order id,
                recipient role, message and payload
        """
        pass


class DatabaseNotificationSink(NotificationSinkInterface):
    """Stores events as Notification rows for the in-app feed."""

    def publish(self, event) -> None:
        from ..models import Notification

        Notification.objects.create(
            event=event.name,
            order_id=event.order_id,
            recipient_role=event.recipient_role,
            message=event.message,
            payload=event.payload,
        )


class InMemoryNotificationSink(NotificationSinkInterface):
    """Collects events in a list; used by tests to assert on what was emitted."""

    def __init__(self):
        self.events: List = []

    def publish(self, event) -> None:
        self.events.append(event)

    def named(self, name: str) -> List:
        return [event for event in self.events if event.name == name]

    def clear(self) -> None:
        self.events = []


notification_sink = None


def get_notification_sink() -> NotificationSinkInterface:
    """
    Return the current notification sink.

    The first call builds the sink class named by the NOTIFICATION_SINK
    setting.
    """
    global notification_sink
    if notification_sink is None:
        notification_sink = import_string(fulfillment_setting('NOTIFICATION_SINK'))()
    return notification_sink


def switch_to_memory_sink() -> InMemoryNotificationSink:
    """Switch to a fresh in-memory sink for testing and return it."""
    global notification_sink
    notification_sink = InMemoryNotificationSink()
    return notification_sink


def switch_to_sink(sink: NotificationSinkInterface):
    """
    Switch to another notification sink implementation.

    Args:
        sink: Implementation of NotificationSinkInterface
    """
    global notification_sink
    notification_sink = sink
