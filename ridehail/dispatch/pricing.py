"""Fare calculation used when a ride completes."""

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from ridehail.models.common import Location
from ridehail.models.ride_request import RideRequest
from ridehail.models.settings import SystemSettings

EARTH_RADIUS_MILES = 3958.8
CENTS = Decimal("0.01")


class PricingPolicy(Protocol):
    """Computes the final fare for a ride."""

    def __call__(
        self,
        request: RideRequest,
        settings: SystemSettings,
        completed_at: datetime,
        distance_miles: float | None = None,
    ) -> Decimal: ...


def straight_line_miles(origin: Location, destination: Location) -> float:
    """Great-circle distance between two points, in miles."""
    lat1, lng1 = math.radians(origin.lat), math.radians(origin.lng)
    lat2, lng2 = math.radians(destination.lat), math.radians(destination.lng)

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    c = 2 * math.asin(math.sqrt(a))

    return EARTH_RADIUS_MILES * c


class MeteredPricing:
    """base fare + per-mile + per-minute, rounded to cents.

    Distance is what the driver reports; without a report it falls back to
    the straight line between pickup and dropoff coordinates, and to zero
    when those are missing. Duration runs from the trip start (or the
    acceptance, when the trip was never started) to completion.
    """

    def __call__(
        self,
        request: RideRequest,
        settings: SystemSettings,
        completed_at: datetime,
        distance_miles: float | None = None,
    ) -> Decimal:
        miles = Decimal(str(self._distance(request, distance_miles)))
        minutes = Decimal(str(self._minutes(request, completed_at)))

        fare = (
            settings.base_fare
            + settings.price_per_mile * miles
            + settings.price_per_minute * minutes
        )
        return fare.quantize(CENTS, rounding=ROUND_HALF_UP)

    def _distance(self, request: RideRequest, reported: float | None) -> float:
        if reported is not None:
            return max(reported, 0.0)
        if request.pickup and request.dropoff:
            return round(straight_line_miles(request.pickup, request.dropoff), 3)
        return 0.0

    def _minutes(self, request: RideRequest, completed_at: datetime) -> float:
        began = request.started_at or request.accepted_at
        if began is None:
            return 0.0
        return round(max((completed_at - began).total_seconds(), 0.0) / 60, 2)
