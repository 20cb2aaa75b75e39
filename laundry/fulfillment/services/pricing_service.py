"""
Pricing Service for Laundry Fulfillment.

Freezes an order's item total and delivery fee at the end of packing.
"""

import logging
from decimal import Decimal
from django.db.models import Sum
from django.utils import timezone

from ..exceptions import ValidationException
from ..geo import FeeQuote, FeeSchedule, GeoPoint, quote_delivery_fee
from ..models import AuditLog, Order

logger = logging.getLogger(__name__)


class PricingService:
    """Service class for order pricing."""

    @staticmethod
    def quote_for_order(order: Order) -> FeeQuote:
        """Delivery fee from the order's outlet to its address snapshot."""
        outlet = order.outlet
        return quote_delivery_fee(
            GeoPoint(outlet.latitude, outlet.longitude),
            GeoPoint(order.latitude, order.longitude),
            FeeSchedule.for_outlet(outlet),
        )

    @staticmethod
    def freeze_pricing(order: Order, user=None) -> bool:
        """
        Set ``total_price`` and ``delivery_fee`` on a locked order.

        Runs at most once per order: an order that already carries a price is
        left untouched.

        Args:
            order: Order instance, locked by the caller
            user: User whose action triggered pricing

        Returns:
            True if the order was priced by this call

        Raises:
            ValidationException: If the order has no items to price
        """
        if order.total_price is not None:
            logger.info(f"Order {order.order_number} already priced at {order.total_price}, skipping")
            return False

        if not order.items.exists():
            raise ValidationException(
                f"Order {order.order_number} has no recorded items to price", {'items': 'required'}
            )

        items_total = order.items.aggregate(total=Sum('line_price'))['total'] or Decimal('0.00')
        quote = PricingService.quote_for_order(order)

        order.total_price = items_total
        order.delivery_fee = quote.fee
        order.distance_km = quote.distance_km
        order.within_service_radius = quote.within_service_radius
        order.priced_at = timezone.now()
        order.save(update_fields=[
            'total_price', 'delivery_fee', 'distance_km', 'within_service_radius', 'priced_at', 'updated_at'
        ])

        AuditLog.log_change(
            entity=order,
            action='priced',
            user=user,
            new_values={
                'total_price': order.total_price,
                'delivery_fee': order.delivery_fee,
                'distance_km': order.distance_km,
            },
        )

        logger.info(
            f"Priced order {order.order_number}: items {order.total_price}, "
            f"delivery {order.delivery_fee} over {order.distance_km} km"
        )
        return True
