"""
Distance and delivery fee calculation.

Everything here is pure: the same inputs always produce the same Decimal
outputs, which is what lets a stored fee be audited against a recomputation.
Trigonometry runs in floats; the result is converted to Decimal through its
shortest repr and rounded half-up before any money arithmetic happens.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple, Any

from .conf import fulfillment_setting
from .exceptions import ValidationException


@dataclass(frozen=True)
class GeoPoint:
    latitude: Decimal
    longitude: Decimal

    def __post_init__(self):
        if self.latitude is None or self.longitude is None:
            raise ValidationException("Coordinates are required", {'coordinates': 'missing'})
        if not -90 <= float(self.latitude) <= 90:
            raise ValidationException("Latitude must be between -90 and 90", {'latitude': str(self.latitude)})
        if not -180 <= float(self.longitude) <= 180:
            raise ValidationException("Longitude must be between -180 and 180", {'longitude': str(self.longitude)})


@dataclass(frozen=True)
class FeeSchedule:
    """An outlet's delivery pricing."""
    base_fee: Decimal
    per_km: Decimal
    service_radius_km: Decimal
    decimal_places: int = 0

    @classmethod
    def for_outlet(cls, outlet) -> 'FeeSchedule':
        return cls(
            base_fee=outlet.delivery_base_fee,
            per_km=outlet.delivery_per_km,
            service_radius_km=outlet.service_radius_km,
            decimal_places=outlet.currency_decimal_places,
        )


@dataclass(frozen=True)
class FeeQuote:
    distance_km: Decimal
    fee: Decimal
    within_service_radius: bool


def _quantum(places: int) -> Decimal:
    return Decimal(1).scaleb(-places)


def haversine_km(origin: GeoPoint, destination: GeoPoint, radius_km: Optional[float] = None) -> float:
    """Great-circle distance between two points, in kilometres."""
    if radius_km is None:
        radius_km = fulfillment_setting('EARTH_RADIUS_KM')

    lat1 = math.radians(float(origin.latitude))
    lat2 = math.radians(float(destination.latitude))
    dlat = lat2 - lat1
    dlon = math.radians(float(destination.longitude) - float(origin.longitude))

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * radius_km * math.asin(min(1.0, math.sqrt(a)))


def rounded_distance_km(origin: GeoPoint, destination: GeoPoint) -> Decimal:
    places = fulfillment_setting('DISTANCE_DECIMAL_PLACES')
    distance = Decimal(repr(haversine_km(origin, destination)))
    return distance.quantize(_quantum(places), rounding=ROUND_HALF_UP)


def quote_delivery_fee(origin: GeoPoint, destination: GeoPoint, schedule: FeeSchedule) -> FeeQuote:
    """
    Compute the delivery fee from an outlet to a destination.

    fee = base_fee + per_km * max(0, distance), rounded half-up to the
    schedule's currency minor unit. Destinations outside the service radius
    are still quoted; the quote only flags them.

    Raises:
        ValidationException: If the schedule carries negative amounts
    """
    if schedule.base_fee < 0 or schedule.per_km < 0:
        raise ValidationException("Delivery fees cannot be negative", {
            'base_fee': str(schedule.base_fee),
            'per_km': str(schedule.per_km),
        })

    distance = rounded_distance_km(origin, destination)
    billable = max(Decimal('0'), distance)
    fee = (Decimal(schedule.base_fee) + Decimal(schedule.per_km) * billable).quantize(
        _quantum(schedule.decimal_places), rounding=ROUND_HALF_UP
    )

    return FeeQuote(
        distance_km=distance,
        fee=fee,
        within_service_radius=distance <= Decimal(schedule.service_radius_km),
    )


def nearest(origin: GeoPoint, candidates: Iterable[Tuple[Any, GeoPoint]]) -> Optional[Any]:
    """Return the key of the candidate closest to ``origin`` (first wins on ties)."""
    best_key, best_distance = None, None
    for key, point in candidates:
        distance = haversine_km(origin, point)
        if best_distance is None or distance < best_distance:
            best_key, best_distance = key, distance
    return best_key
