"""Distance-tiered fare calculation."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Tuple

from taxigeo.core.errors import FareCalculationError
from taxigeo.core.geometry import distance_km
from taxigeo.core.models import Coordinate, FareQuote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FareSchedule:
    """
    Base price covers the first ``thresholds[0]`` km. Each following band
    ``(thresholds[i-1], thresholds[i]]`` is charged at ``rates[i-1]`` per km,
    and everything beyond the last threshold at ``rates[-1]``.
    """

    base_price: int = 50
    thresholds: Tuple[float, ...] = (5, 10, 15)
    rates: Tuple[float, ...] = (10, 9, 8)
    currency: str = "MXN"

    def __post_init__(self) -> None:
        if len(self.rates) != len(self.thresholds):
            raise ValueError("rates must have one entry per threshold")
        if list(self.thresholds) != sorted(self.thresholds):
            raise ValueError("thresholds must be ascending")


DEFAULT_SCHEDULE = FareSchedule()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_fare(km: float, schedule: FareSchedule = DEFAULT_SCHEDULE) -> int:
    if km is None or not math.isfinite(km) or km < 0:
        logger.error("Fare requested with invalid distance: %s", km)
        return schedule.base_price

    price = float(schedule.base_price)
    bounds = schedule.thresholds + (math.inf,)
    for lower, upper, rate in zip(bounds, bounds[1:], schedule.rates):
        if km <= lower:
            break
        price += (min(km, upper) - lower) * rate

    if not math.isfinite(price):
        logger.error("Fare overflowed for invalid distance: %s", km)
        return schedule.base_price

    return max(schedule.base_price, _round_half_up(price))


def quote_fare(
    origin: Coordinate,
    destination: Coordinate,
    destination_address: str,
    schedule: FareSchedule = DEFAULT_SCHEDULE,
) -> FareQuote:
    try:
        km = round(distance_km(origin, destination), 2)
        amount = compute_fare(km, schedule)
    except (ArithmeticError, ValueError, TypeError) as exc:
        logger.error("Fare calculation failed for trip to '%s': %s", destination_address, exc)
        raise FareCalculationError("Internal error while calculating the trip fare.") from exc

    logger.info(
        "Trip from (%s,%s) to '%s' (%s,%s): %.2f km, %s %s",
        origin.lat, origin.lon, destination_address, destination.lat, destination.lon,
        km, amount, schedule.currency,
    )
    return FareQuote(
        origin=origin,
        destination=destination,
        destination_address=destination_address,
        distance_km=km,
        amount=amount,
    )
