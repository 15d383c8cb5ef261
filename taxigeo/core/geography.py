"""Service-area checks: bounding box, municipality allow-list and exception zones."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Sequence, Tuple

from taxigeo.core.errors import AddressNotFound, OutOfBounds, OutOfServiceArea, ProviderTransportError
from taxigeo.core.geometry import in_bounding_box, is_point_inside_radius
from taxigeo.core.models import BoundingBox, Coordinate, ResolvedLocation, ServiceZone

logger = logging.getLogger(__name__)

MUNICIPALITY_FIELDS = ("city", "town", "county", "village")

DEFAULT_SERVICE_ZONES: Tuple[ServiceZone, ...] = (
    ServiceZone("Playa Las Islitas, San Blas", Coordinate(21.54333, -105.28558), 1.0),
    ServiceZone("Centro de Compostela (Plaza Principal)", Coordinate(21.1685, -104.9168), 0.2),
)

ReverseLookup = Callable[[Coordinate], ResolvedLocation]


def detect_municipality(components: Optional[Mapping[str, str]]) -> str:
    """First non-empty city/town/county/village, lower-cased; empty when unknown."""
    if not components:
        return ""
    for name in MUNICIPALITY_FIELDS:
        value = components.get(name)
        if value and str(value).strip():
            return str(value).strip().lower()
    return ""


@dataclass(frozen=True)
class GateDecision:
    municipality: str
    zone: Optional[ServiceZone]


class GeographyGate:
    def __init__(
        self,
        bounds: BoundingBox,
        allowed_municipalities: Iterable[str],
        zones: Sequence[ServiceZone] = DEFAULT_SERVICE_ZONES,
    ):
        self.bounds = bounds
        self.allowed_municipalities: Tuple[str, ...] = tuple(
            m.strip().lower() for m in allowed_municipalities if m and m.strip()
        )
        self.zones: Tuple[ServiceZone, ...] = tuple(zones)

    def is_in_bounds(self, coordinate: Coordinate) -> bool:
        return in_bounding_box(self.bounds, coordinate)

    def is_allowed_municipality(self, components: Optional[Mapping[str, str]]) -> bool:
        municipality = detect_municipality(components)
        return bool(municipality) and municipality in self.allowed_municipalities

    def matching_zone(self, coordinate: Coordinate) -> Optional[ServiceZone]:
        for zone in self.zones:
            if is_point_inside_radius(zone.center, coordinate, zone.radius_km):
                return zone
        return None

    def is_in_service_zone(self, coordinate: Coordinate) -> bool:
        return self.matching_zone(coordinate) is not None

    def require_in_bounds(
        self, coordinate: Coordinate, what: str = "location", code: Optional[str] = None
    ) -> None:
        if not self.is_in_bounds(coordinate):
            logger.warning("%s (%s, %s) is outside the service bounds", what, coordinate.lat, coordinate.lon)
            raise OutOfBounds(f"The {what} is outside the geographic service area.", code=code)

    def check(
        self,
        location: ResolvedLocation,
        reverse_lookup: Optional[ReverseLookup] = None,
    ) -> GateDecision:
        """
        Accept *location* or raise OutOfBounds / OutOfServiceArea.

        When the location's own components name no municipality, *reverse_lookup*
        is asked for components at the same coordinate. A failing reverse lookup
        leaves the municipality unknown.
        """
        coordinate = location.coordinate
        self.require_in_bounds(coordinate)

        municipality = detect_municipality(location.address_components)
        if not municipality and reverse_lookup is not None:
            try:
                reverse = reverse_lookup(coordinate)
            except (AddressNotFound, ProviderTransportError) as exc:
                logger.warning("Reverse lookup for municipality detection failed: %s", exc)
            else:
                municipality = detect_municipality(reverse.address_components)
                logger.debug("Municipality from reverse lookup: '%s'", municipality)

        if municipality and municipality in self.allowed_municipalities:
            return GateDecision(municipality=municipality, zone=None)

        zone = self.matching_zone(coordinate)
        if zone is not None:
            logger.info("'%s' is inside service zone %s", location.formatted_address, zone.name)
            return GateDecision(municipality=municipality, zone=zone)

        if municipality:
            logger.warning("'%s' is in municipality not served: %s", location.formatted_address, municipality)
            served = ", ".join(m.title() for m in self.allowed_municipalities)
            raise OutOfServiceArea(
                f"We only operate in: {served} and specific points. "
                f"Your address appears to be in {municipality.title()}.",
                municipality=municipality,
            )

        logger.warning("Could not determine municipality for '%s'", location.formatted_address)
        raise OutOfServiceArea(
            "Could not confirm the address is inside a served municipality.",
            municipality=None,
        )
