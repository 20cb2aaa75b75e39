"""
Payment Service for Laundry Fulfillment.

Handles invoices and payment confirmations from the payment provider.
"""

import logging
from django.db import transaction
from django.utils import timezone

from ..exceptions import InvalidTransitionException, NotOwnerException, ValidationException
from ..models import (
    AuditLog, Order, OrderStatus, PaymentStatus, TransportJob, TransportJobKind
)
from .order_service import OrderService
from .workflow import OrderWorkflow, transition_order

logger = logging.getLogger(__name__)


class PaymentService:
    """Service class for payment operations."""

    @staticmethod
    def open_invoice(order_id, customer, reference: str) -> Order:
        """
        Record the provider reference of an invoice for a priced order.

        Args:
            order_id: Order UUID
            customer: The order's customer
            reference: Payment provider reference

        Returns:
            Updated Order; ``amount_due`` is what the customer owes

        Raises:
            NotOwnerException: If the caller is not the order's customer
            InvalidTransitionException: If the order is not waiting for payment
        """
        if not reference or not reference.strip():
            raise ValidationException("A payment reference is required", {'reference': 'required'})

        with transaction.atomic():
            order = OrderService.lock(order_id)

            if order.customer_id != customer.id:
                raise NotOwnerException("Order", order.id, customer.id)

            if order.status != OrderStatus.WAITING_PAYMENT or order.is_paid:
                raise InvalidTransitionException(order.payment_status, PaymentStatus.WAITING, entity_type="Payment")

            old_status = order.payment_status
            order.payment_status = PaymentStatus.WAITING
            order.payment_reference = reference.strip()
            order.save(update_fields=['payment_status', 'payment_reference', 'updated_at'])

            AuditLog.log_change(
                entity=order,
                action='invoice_opened',
                user=customer,
                old_values={'payment_status': old_status},
                new_values={
                    'payment_status': order.payment_status,
                    'payment_reference': order.payment_reference,
                    'amount_due': order.amount_due,
                },
            )

            logger.info(f"Invoice {order.payment_reference} opened for order {order.order_number}: {order.amount_due}")
            return order

    @staticmethod
    def on_payment_confirmed(order_id, paid: bool = True, paid_at=None) -> Order:
        """
        Apply a payment notification.

        ``paid=False`` only marks the payment as WAITING. A confirmation
        redelivered for an order that is already paid and released is
        ignored.

        Raises:
            InvalidTransitionException: If the order is not waiting for payment
        """
        with transaction.atomic():
            order = OrderService.lock(order_id)

            if order.is_paid and OrderWorkflow.is_past(order, OrderStatus.WAITING_PAYMENT):
                logger.info(f"Ignoring repeated payment notification for order {order.order_number}")
                return order

            if order.status != OrderStatus.WAITING_PAYMENT:
                attempted = OrderStatus.READY_FOR_DELIVERY if paid else PaymentStatus.WAITING
                raise InvalidTransitionException(order.status, attempted, entity_type="Order")

            if not paid:
                old_status = order.payment_status
                order.payment_status = PaymentStatus.WAITING
                order.save(update_fields=['payment_status', 'updated_at'])
                AuditLog.log_change(
                    entity=order,
                    action='payment_pending',
                    old_values={'payment_status': old_status},
                    new_values={'payment_status': order.payment_status},
                )
                logger.info(f"Payment for order {order.order_number} is pending")
                return order

            order.payment_status = PaymentStatus.PAID
            order.paid_at = paid_at or timezone.now()
            logger.info(f"Payment confirmed for order {order.order_number}")
            return PaymentService.release_for_delivery(order, extra_fields=['payment_status', 'paid_at'])

    @staticmethod
    def release_for_delivery(order: Order, user=None, extra_fields=None) -> Order:
        """Move a paid, locked order to READY_FOR_DELIVERY with an unclaimed delivery job."""
        transition_order(
            order, OrderStatus.READY_FOR_DELIVERY, user=user,
            notes="Payment received", extra_fields=extra_fields
        )

        job, created = TransportJob.objects.get_or_create(order=order, kind=TransportJobKind.DELIVERY)
        if created:
            AuditLog.log_change(
                entity=job,
                action='created',
                user=user,
                new_values={'kind': job.kind, 'status': job.status},
            )
            logger.info(f"Delivery job {job.id} opened for order {order.order_number}")
        return order
