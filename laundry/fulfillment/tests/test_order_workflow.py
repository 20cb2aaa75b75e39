"""
Tests for the order state machine and order intake.
"""

from decimal import Decimal
from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from ..exceptions import InvalidTransitionException, NotOwnerException, ValidationException
from ..models import (
    AuditLog, Order, OrderStatus, STAGE_SEQUENCE, TransportJobKind, TransportJobStatus
)
from ..services import OrderService, transition_order
from ..services.workflow import ORDER_SEQUENCE, OrderWorkflow
from .helpers import FulfillmentTestMixin


class OrderWorkflowRulesTest(TestCase):
    """Transition table checks, no database needed beyond the model."""

    def test_each_status_moves_only_to_the_next(self):
        for index, status in enumerate(ORDER_SEQUENCE):
            order = Order(status=status)
            for target in ORDER_SEQUENCE:
                allowed = index + 1 < len(ORDER_SEQUENCE) and target == ORDER_SEQUENCE[index + 1]
                self.assertEqual(
                    OrderWorkflow.can_transition_to(order, target), allowed,
                    f"{status} -> {target}"
                )

    def test_reentering_current_status_is_invalid(self):
        order = Order(status=OrderStatus.BEING_WASHED)
        with self.assertRaises(InvalidTransitionException) as ctx:
            OrderWorkflow.validate_transition(order, OrderStatus.BEING_WASHED)

        self.assertEqual(ctx.exception.code, 'INVALID_TRANSITION')
        self.assertEqual(ctx.exception.details['current_status'], OrderStatus.BEING_WASHED)

    def test_completed_is_final(self):
        self.assertEqual(OrderWorkflow.ALLOWED_TRANSITIONS[OrderStatus.COMPLETED], [])


class OrderIntakeTest(FulfillmentTestMixin, TestCase):

    def setUp(self):
        self.set_up_fulfillment()

    def test_pickup_request_creates_job_and_stages(self):
        order = self.create_order()

        self.assertEqual(order.status, OrderStatus.WAITING_FOR_PICKUP)
        self.assertEqual(order.outlet, self.outlet)
        self.assertTrue(order.order_number.startswith('LND-'))
        self.assertEqual(order.distance_km, Decimal('3.00'))
        self.assertTrue(order.within_service_radius)
        self.assertIsNone(order.total_price)
        self.assertIsNone(order.delivery_fee)

        job = order.transport_jobs.get()
        self.assertEqual(job.kind, TransportJobKind.PICKUP)
        self.assertEqual(job.status, TransportJobStatus.UNCLAIMED)
        self.assertIsNone(job.driver)

        stages = list(order.stages.order_by('sequence'))
        self.assertEqual([s.stage for s in stages], STAGE_SEQUENCE)
        self.assertEqual([s.sequence for s in stages], [1, 2, 3])
        self.assertTrue(all(s.started_at is None for s in stages))

        self.assertTrue(AuditLog.objects.filter(
            entity_id=order.id, action='status_changed',
            new_values__status=OrderStatus.WAITING_FOR_PICKUP
        ).exists())

    def test_nearest_active_outlet_is_chosen(self):
        far = self.make_outlet('Outlet Jakarta', latitude=Decimal('-6.200000'), longitude=Decimal('106.816666'))
        closer_but_closed = self.make_outlet(
            'Outlet Closed', latitude=Decimal('-7.737600'), longitude=Decimal('110.382700')
        )
        closer_but_closed.deleted_at = timezone.now()
        closer_but_closed.save()

        order = self.create_order()

        self.assertEqual(order.outlet, self.outlet)
        self.assertNotEqual(order.outlet, far)

    def test_outside_radius_is_flagged(self):
        self.outlet.service_radius_km = Decimal('2.00')
        self.outlet.save()

        order = self.create_order()

        self.assertFalse(order.within_service_radius)
        self.assertEqual(order.status, OrderStatus.WAITING_FOR_PICKUP)

    def test_address_is_required(self):
        with self.assertRaises(ValidationException):
            self.create_order(address_line='')
        with self.assertRaises(ValidationException):
            self.create_order(latitude=None)

        self.assertEqual(Order.objects.count(), 0)

    def test_no_outlet_available(self):
        self.outlet.deleted_at = timezone.now()
        self.outlet.save()

        with self.assertRaises(ValidationException):
            self.create_order()

    def test_transition_order_rejects_skipping(self):
        order = self.create_order()

        with self.assertRaises(InvalidTransitionException):
            transition_order(order, OrderStatus.ARRIVED_AT_OUTLET)

        order.refresh_from_db()
        self.assertEqual(order.status, OrderStatus.WAITING_FOR_PICKUP)


class DisputeTest(FulfillmentTestMixin, TestCase):

    def setUp(self):
        self.set_up_fulfillment()
        self.order = self.create_order()

    def test_dispute_requires_delivered_order(self):
        with self.assertRaises(InvalidTransitionException):
            OrderService.raise_dispute(self.order.id, self.customer, "Missing a shirt")

    def test_only_the_customer_can_dispute(self):
        other = get_user_model().objects.create_user(username='other', password='testpass123')
        Order.objects.filter(id=self.order.id).update(status=OrderStatus.DELIVERED)

        with self.assertRaises(NotOwnerException):
            OrderService.raise_dispute(self.order.id, other, "Not mine")

    def test_dispute_marks_order(self):
        Order.objects.filter(id=self.order.id).update(
            status=OrderStatus.DELIVERED, actual_delivery_at=timezone.now()
        )

        order = OrderService.raise_dispute(self.order.id, self.customer, "Missing a shirt")

        self.assertIsNotNone(order.disputed_at)
        self.assertEqual(order.dispute_reason, "Missing a shirt")
        self.assertEqual(order.status, OrderStatus.DELIVERED)

        with self.assertRaises(ValidationException):
            OrderService.raise_dispute(self.order.id, self.customer, "Again")
