"""
Tests for invoices, payment confirmation and the payment webhook.
"""

from decimal import Decimal
from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from ..exceptions import InvalidTransitionException, NotOwnerException
from ..models import (
    OrderStatus, PaymentStatus, TransportJob, TransportJobKind, TransportJobStatus
)
from ..services import PaymentService
from .helpers import FulfillmentTestMixin


class PaymentServiceTest(FulfillmentTestMixin, TestCase):

    def setUp(self):
        self.set_up_fulfillment()
        self.order = self.bring_to_payment()

    def test_invoice_records_reference(self):
        order = PaymentService.open_invoice(self.order.id, self.customer, 'INV-0001')

        self.assertEqual(order.payment_status, PaymentStatus.WAITING)
        self.assertEqual(order.payment_reference, 'INV-0001')
        self.assertEqual(order.amount_due, Decimal('45500.00'))

    def test_only_the_customer_opens_an_invoice(self):
        other = get_user_model().objects.create_user(username='other', password='testpass123')

        with self.assertRaises(NotOwnerException):
            PaymentService.open_invoice(self.order.id, other, 'INV-0001')

    def test_confirmation_releases_order_for_delivery(self):
        self.assertFalse(self.order.transport_jobs.filter(kind=TransportJobKind.DELIVERY).exists())

        order = PaymentService.on_payment_confirmed(self.order.id)

        self.assertEqual(order.status, OrderStatus.READY_FOR_DELIVERY)
        self.assertEqual(order.payment_status, PaymentStatus.PAID)
        self.assertIsNotNone(order.paid_at)

        delivery = self.job(order, TransportJobKind.DELIVERY)
        self.assertEqual(delivery.status, TransportJobStatus.UNCLAIMED)
        self.assertIsNone(delivery.driver)

    def test_repeated_confirmation_is_ignored(self):
        first = PaymentService.on_payment_confirmed(self.order.id)
        second = PaymentService.on_payment_confirmed(self.order.id)

        self.assertEqual(second.status, OrderStatus.READY_FOR_DELIVERY)
        self.assertEqual(second.paid_at, first.paid_at)
        self.assertEqual(
            TransportJob.objects.filter(order=self.order, kind=TransportJobKind.DELIVERY).count(), 1
        )

    def test_unpaid_notification_marks_payment_waiting(self):
        order = PaymentService.on_payment_confirmed(self.order.id, paid=False)

        self.assertEqual(order.status, OrderStatus.WAITING_PAYMENT)
        self.assertEqual(order.payment_status, PaymentStatus.WAITING)
        self.assertFalse(order.transport_jobs.filter(kind=TransportJobKind.DELIVERY).exists())


class EarlyPaymentTest(FulfillmentTestMixin, TestCase):

    def setUp(self):
        self.set_up_fulfillment()
        self.order = self.create_order()

    def test_payment_before_pricing_is_refused(self):
        with self.assertRaises(InvalidTransitionException):
            PaymentService.on_payment_confirmed(self.order.id)

        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, PaymentStatus.UNPAID)

    def test_invoice_before_pricing_is_refused(self):
        with self.assertRaises(InvalidTransitionException):
            PaymentService.open_invoice(self.order.id, self.customer, 'INV-0001')


@override_settings(FULFILLMENT={'PAYMENT_WEBHOOK_TOKEN': 'webhook-secret'})
class PaymentWebhookTest(FulfillmentTestMixin, APITestCase):

    def setUp(self):
        self.set_up_fulfillment()
        self.order = self.bring_to_payment()
        self.url = reverse('payment-webhook')

    def test_missing_token_is_forbidden(self):
        response = self.client.post(self.url, {'order_id': str(self.order.id), 'paid': True}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.WAITING_PAYMENT)

    def test_wrong_token_is_forbidden(self):
        response = self.client.post(
            self.url, {'order_id': str(self.order.id), 'paid': True}, format='json',
            HTTP_X_WEBHOOK_TOKEN='guess'
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_confirmation_via_webhook(self):
        response = self.client.post(
            self.url, {'order_id': str(self.order.id), 'paid': True}, format='json',
            HTTP_X_WEBHOOK_TOKEN='webhook-secret'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['status'], OrderStatus.READY_FOR_DELIVERY)
        self.assertEqual(response.data['data']['payment_status'], PaymentStatus.PAID)

    def test_unknown_order_is_not_found(self):
        response = self.client.post(
            self.url, {'order_id': '00000000-0000-0000-0000-000000000000', 'paid': True}, format='json',
            HTTP_X_WEBHOOK_TOKEN='webhook-secret'
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')
