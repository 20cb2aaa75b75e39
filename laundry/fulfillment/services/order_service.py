"""
Order Service for Laundry Fulfillment.

Handles order intake, item recording and station counts, and customer disputes.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, List
from django.db import transaction
from django.utils import timezone

from ..authorization import Capability, get_employee, require_capability
from ..exceptions import (
    InvalidTransitionException, NotOwnerException, ValidationException
)
from ..geo import FeeSchedule, GeoPoint, nearest, quote_delivery_fee
from ..lookups import get_or_not_found
from ..models import (
    AuditLog, LaundryItem, Order, OrderItem, OrderStatus, Outlet, PricingType,
    STAGE_SEQUENCE, TransportJob, TransportJobKind, WorkStage
)
from .workflow import OrderWorkflow, transition_order

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
COORDINATE = Decimal('0.000001')


def _coordinate(value, field: str):
    """Coerce a coordinate to the precision it is stored with."""
    if value is None or value == '':
        raise ValidationException("Pickup coordinates are required", {field: 'required'})
    try:
        return Decimal(str(value)).quantize(COORDINATE, rounding=ROUND_HALF_UP)
    except ArithmeticError:
        raise ValidationException(f"Invalid {field}", {field: str(value)})


def _tally(entries) -> Dict[str, int]:
    """Sum quantities per catalogue item, dropping items counted as zero."""
    totals: Dict[str, int] = {}
    for laundry_item_id, quantity in entries:
        quantity = int(quantity)
        if quantity < 0:
            raise ValidationException("Quantity cannot be negative", {'quantity': quantity})
        key = str(laundry_item_id)
        totals[key] = totals.get(key, 0) + quantity
    return {key: total for key, total in totals.items() if total}


class OrderService:
    """Service class for order operations."""

    @staticmethod
    def lock(order_id) -> Order:
        """
        Load and row-lock an order. Must run inside a transaction.

        Raises:
            NotFoundException: If the order does not exist
        """
        return get_or_not_found(
            Order.objects.select_for_update().select_related('outlet'), order_id, "Order"
        )

    @staticmethod
    def create_pickup_order(customer, order_data: Dict[str, Any]) -> Order:
        """
        Take in a pickup request.

        The order goes to the nearest active outlet unless ``outlet_id`` names
        one. Its pickup job and all three work stages are created with it, and
        it leaves intake in WAITING_FOR_PICKUP.

        Args:
            customer: Customer user instance
            order_data: Address snapshot (address_line, district, city,
                province, postal_code, latitude, longitude), optional
                outlet_id, scheduled_pickup_at and notes

        Returns:
            Created Order instance

        Raises:
            ValidationException: If the address is invalid or no outlet serves it
            NotFoundException: If ``outlet_id`` names no active outlet
        """
        if not order_data.get('address_line'):
            raise ValidationException("Pickup address is required", {'address_line': 'required'})

        destination = GeoPoint(
            _coordinate(order_data.get('latitude'), 'latitude'),
            _coordinate(order_data.get('longitude'), 'longitude'),
        )

        with transaction.atomic():
            outlet = OrderService._choose_outlet(destination, order_data.get('outlet_id'))
            quote = quote_delivery_fee(
                GeoPoint(outlet.latitude, outlet.longitude), destination, FeeSchedule.for_outlet(outlet)
            )

            order = Order.objects.create(
                customer=customer,
                outlet=outlet,
                address_line=order_data['address_line'],
                district=order_data.get('district', ''),
                city=order_data.get('city', ''),
                province=order_data.get('province', ''),
                postal_code=order_data.get('postal_code', ''),
                latitude=destination.latitude,
                longitude=destination.longitude,
                distance_km=quote.distance_km,
                within_service_radius=quote.within_service_radius,
                scheduled_pickup_at=order_data.get('scheduled_pickup_at'),
                notes=order_data.get('notes', ''),
            )

            TransportJob.objects.create(order=order, kind=TransportJobKind.PICKUP)
            for sequence, stage in enumerate(STAGE_SEQUENCE, start=1):
                WorkStage.objects.create(order=order, stage=stage, sequence=sequence)

            AuditLog.log_change(
                entity=order,
                action='created',
                user=customer,
                new_values={
                    'status': OrderStatus.CREATED,
                    'outlet': outlet.id,
                    'distance_km': quote.distance_km,
                    'within_service_radius': quote.within_service_radius,
                },
                notes=f"Pickup requested, assigned to outlet {outlet.name}"
            )

            transition_order(order, OrderStatus.WAITING_FOR_PICKUP, user=customer,
                             notes="Pickup job created")

            if not quote.within_service_radius:
                logger.warning(
                    f"Order {order.order_number} is {quote.distance_km} km from outlet {outlet.name}, "
                    f"outside its {outlet.service_radius_km} km service radius"
                )

            logger.info(f"Order {order.order_number} created for customer {customer}")
            return order

    @staticmethod
    def _choose_outlet(destination: GeoPoint, outlet_id=None) -> Outlet:
        if outlet_id:
            return get_or_not_found(Outlet.active.all(), outlet_id, "Outlet")

        outlets = {outlet.id: outlet for outlet in Outlet.active.all()}
        if not outlets:
            raise ValidationException("No outlet is available to serve this address")

        chosen = nearest(destination, (
            (outlet_id, GeoPoint(outlet.latitude, outlet.longitude))
            for outlet_id, outlet in outlets.items()
        ))
        return outlets[chosen]

    @staticmethod
    def record_items(order_id, admin_id, items: List[Dict[str, Any]]) -> List[OrderItem]:
        """
        Record or replace the items of an order.

        Items are priced from the catalogue: PER_KG items by weight, PER_PIECE
        items by quantity. Once the order's pricing is frozen its items can no
        longer change.

        Args:
            order_id: Order UUID
            admin_id: Employee UUID of the outlet admin
            items: [{"laundry_item_id", "quantity", "weight"}, ...]

        Returns:
            The order's new items

        Raises:
            ValidationException: If items are invalid or pricing is frozen
            NotFoundException: If the order or a catalogue item does not exist
            CapabilityDeniedException: If the admin cannot act for the outlet
        """
        if not items:
            raise ValidationException("At least one item is required", {'items': 'required'})

        with transaction.atomic():
            order = OrderService.lock(order_id)
            admin = get_employee(admin_id)
            require_capability(admin, Capability.RECORD_ITEMS, order.outlet_id)

            OrderService._check_not_frozen(order)

            old_items = [
                {'laundry_item': item.laundry_item_id, 'quantity': item.quantity, 'weight': item.weight}
                for item in order.items.all()
            ]
            order.items.all().delete()

            created = [OrderService._create_item(order, data) for data in items]

            AuditLog.log_change(
                entity=order,
                action='items_recorded',
                user=admin.user,
                old_values={'items': old_items},
                new_values={'items': [
                    {'laundry_item': item.laundry_item_id, 'quantity': item.quantity,
                     'weight': item.weight, 'line_price': item.line_price}
                    for item in created
                ]},
            )

            logger.info(f"Recorded {len(created)} items for order {order.order_number}")
            return created

    @staticmethod
    def _create_item(order: Order, data: Dict[str, Any]) -> OrderItem:
        laundry_item = get_or_not_found(LaundryItem.active.all(), data.get('laundry_item_id'), "LaundryItem")

        quantity = int(data.get('quantity', 1))
        if quantity < 1:
            raise ValidationException("Quantity must be at least 1", {'quantity': quantity})

        weight = data.get('weight')
        if weight is not None:
            weight = Decimal(str(weight))
            if weight < 0:
                raise ValidationException("Weight cannot be negative", {'weight': str(weight)})

        if laundry_item.pricing_type == PricingType.PER_KG:
            if not weight:
                raise ValidationException(
                    f"{laundry_item.name} is priced per kilogram and needs a weight",
                    {'weight': 'required'}
                )
            line_price = laundry_item.base_price * weight
        else:
            line_price = laundry_item.base_price * quantity

        return OrderItem.objects.create(
            order=order,
            laundry_item=laundry_item,
            quantity=quantity,
            weight=weight,
            unit_price=laundry_item.base_price,
            line_price=line_price.quantize(CENT, rounding=ROUND_HALF_UP),
        )

    @staticmethod
    def check_counts(order: Order, counted_items: List[Dict[str, Any]]) -> None:
        """
        Compare a station worker's item count with the order's recorded items.

        Args:
            order: Locked order
            counted_items: [{"laundry_item_id", "quantity"}, ...]

        Raises:
            ValidationException: If any quantity differs. The worker has to
                request a bypass to carry on with the order.
        """
        if counted_items is None:
            raise ValidationException("The counted items are required", {'items': 'required'})

        recorded = _tally((item.laundry_item_id, item.quantity) for item in order.items.all())
        counted = _tally((entry.get('laundry_item_id'), entry.get('quantity', 0)) for entry in counted_items)

        if counted != recorded:
            raise ValidationException(
                f"Item quantities do not match order {order.order_number}. Request a bypass to continue.",
                {
                    'items': 'count_mismatch',
                    'action': 'request_bypass',
                    'recorded': recorded,
                    'counted': counted,
                }
            )

    @staticmethod
    def correct_quantities(order: Order, corrections: List[Dict[str, Any]], user=None) -> List[OrderItem]:
        """
        Apply a worker's corrected quantities to a locked order's items.

        PER_PIECE lines are repriced at their recorded unit price; PER_KG lines
        keep their weight-based price.

        Raises:
            ValidationException: If pricing is frozen, or a correction does not
                name exactly one line of the order
        """
        if not corrections:
            raise ValidationException("At least one corrected item is required", {'items': 'required'})
        OrderService._check_not_frozen(order)

        lines: Dict[str, List[OrderItem]] = {}
        for item in order.items.select_related('laundry_item'):
            lines.setdefault(str(item.laundry_item_id), []).append(item)

        old_items, new_items = [], []
        for entry in corrections:
            key = str(entry.get('laundry_item_id'))
            matching = lines.get(key, [])
            if len(matching) != 1:
                raise ValidationException(
                    f"Laundry item {key} is not a single line of order {order.order_number}",
                    {'laundry_item_id': key}
                )

            quantity = int(entry.get('quantity', 0))
            if quantity < 1:
                raise ValidationException("Quantity must be at least 1", {'quantity': quantity})

            item = matching[0]
            old_items.append({'laundry_item': item.laundry_item_id, 'quantity': item.quantity,
                              'line_price': item.line_price})
            item.quantity = quantity
            if item.laundry_item.pricing_type == PricingType.PER_PIECE:
                item.line_price = (item.unit_price * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
            item.save(update_fields=['quantity', 'line_price'])
            new_items.append({'laundry_item': item.laundry_item_id, 'quantity': item.quantity,
                              'line_price': item.line_price})

        AuditLog.log_change(
            entity=order,
            action='items_corrected',
            user=user,
            old_values={'items': old_items},
            new_values={'items': new_items},
        )

        logger.info(f"Corrected {len(new_items)} item quantities on order {order.order_number}")
        return list(order.items.all())

    @staticmethod
    def _check_not_frozen(order: Order) -> None:
        if order.is_priced or OrderWorkflow.is_past(order, OrderStatus.BEING_PACKED):
            raise ValidationException(
                f"Items of order {order.order_number} are frozen once pricing is set",
                {'order': 'pricing_frozen'}
            )

    @staticmethod
    def raise_dispute(order_id, customer, reason: str) -> Order:
        """
        Flag a delivered order as disputed by its customer.

        Disputed orders are never auto-completed.

        Raises:
            NotOwnerException: If the caller is not the order's customer
            InvalidTransitionException: If the order is not DELIVERED
            ValidationException: If the reason is empty or a dispute is already open
        """
        if not reason or not reason.strip():
            raise ValidationException("A dispute reason is required", {'reason': 'required'})

        with transaction.atomic():
            order = OrderService.lock(order_id)

            if order.customer_id != customer.id:
                raise NotOwnerException("Order", order.id, customer.id)

            if order.status != OrderStatus.DELIVERED:
                raise InvalidTransitionException(order.status, "DISPUTED", entity_type="Order")

            if order.disputed_at is not None:
                raise ValidationException(
                    f"Order {order.order_number} is already disputed", {'order': 'already_disputed'}
                )

            order.disputed_at = timezone.now()
            order.dispute_reason = reason.strip()
            order.save(update_fields=['disputed_at', 'dispute_reason', 'updated_at'])

            AuditLog.log_change(
                entity=order,
                action='disputed',
                user=customer,
                new_values={'disputed_at': order.disputed_at},
                notes=order.dispute_reason
            )

            logger.info(f"Customer disputed order {order.order_number}")
            return order
