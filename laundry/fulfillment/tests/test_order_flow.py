"""
End-to-end test of an order from pickup request to completion.
"""

from datetime import timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone

from .. import events
from ..adapters.notification_adapter import DatabaseNotificationSink, switch_to_sink
from ..exceptions import ValidationException
from ..models import AuditLog, Notification, OrderStatus, PaymentStatus, RecipientRole
from ..services import orchestrator
from ..services.workflow import ORDER_SEQUENCE
from .helpers import FulfillmentTestMixin


class OrderFlowTest(FulfillmentTestMixin, TestCase):

    def setUp(self):
        self.set_up_fulfillment()

    def run_full_flow(self):
        order = self.create_order()
        self.bring_to_payment(order)
        invoiced = orchestrator.open_invoice(order.id, self.customer, 'INV-42')
        self.assertEqual(invoiced.amount_due, Decimal('45500.00'))
        order = self.deliver(order)
        self.assertEqual(order.status, OrderStatus.DELIVERED)
        orchestrator.sweep_overdue_orders(now=timezone.now() + timedelta(hours=49))
        order.refresh_from_db()
        return order

    def test_order_walks_every_status_once(self):
        with self.captureOnCommitCallbacks(execute=True):
            order = self.run_full_flow()

        self.assertEqual(order.status, OrderStatus.COMPLETED)
        self.assertEqual(order.payment_status, PaymentStatus.PAID)
        self.assertEqual(order.total_price, Decimal('34500.00'))
        self.assertEqual(order.delivery_fee, Decimal('11000.00'))

        history = list(
            AuditLog.objects.filter(entity_id=order.id, action='status_changed')
            .values_list('new_values__status', flat=True)
        )
        self.assertCountEqual(history, ORDER_SEQUENCE[1:])

        self.assertEqual([event.name for event in self.sink.events], [
            events.JOB_CLAIMED,
            events.STAGE_STARTED, events.STAGE_COMPLETED,
            events.STAGE_STARTED, events.STAGE_COMPLETED,
            events.STAGE_STARTED, events.STAGE_COMPLETED,
            events.JOB_CLAIMED,
            events.ORDER_COMPLETED,
        ])

    def test_events_are_stored_as_notifications(self):
        switch_to_sink(DatabaseNotificationSink())

        with self.captureOnCommitCallbacks(execute=True):
            order = self.run_full_flow()

        notifications = Notification.objects.filter(order=order)
        self.assertEqual(notifications.count(), 9)
        self.assertEqual(
            notifications.filter(event=events.ORDER_COMPLETED).get().recipient_role,
            RecipientRole.CUSTOMER
        )

    def test_nothing_is_announced_for_rolled_back_work(self):
        order = self.create_order()
        self.bring_to_outlet(order)
        self.run_stage(order, 'WASHING')
        self.run_stage(order, 'IRONING')

        self.sink.clear()
        with self.captureOnCommitCallbacks(execute=True):
            packing = orchestrator.start_stage(order.id, 'PACKING', self.worker.id, self.counts(order))
            # No items recorded, so pricing fails and packing rolls back
            with self.assertRaises(ValidationException):
                orchestrator.complete_stage(packing.id, self.worker.id)

        self.assertEqual([event.name for event in self.sink.events], [events.STAGE_STARTED])
        self.assertEqual(self.sink.named(events.STAGE_COMPLETED), [])
