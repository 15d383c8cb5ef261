"""The resolution-and-fare pipeline behind every dispatch endpoint."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from taxigeo.core.errors import InvalidInput
from taxigeo.core.fare import DEFAULT_SCHEDULE, FareSchedule, quote_fare
from taxigeo.core.geocoder import GeocodeOrchestrator
from taxigeo.core.geography import GateDecision, GeographyGate
from taxigeo.core.links import parse_maps_link
from taxigeo.core.models import (
    Coordinate,
    FareQuote,
    LocationIntent,
    Provenance,
    QualityAssessment,
    ResolvedLocation,
)
from taxigeo.core.quality import QualityGrader
from taxigeo.core.validators import require_address, require_coordinate, require_phone, require_url

logger = logging.getLogger(__name__)

DEFAULT_DESTINATION_LABEL = "Ubicación seleccionada"
LINK_COORDINATE_INPUT = "Link con coordenadas"

_STREET_NUMBER_FIELDS = ("house_number", "street_number")
_NEIGHBOURHOOD_FIELDS = ("suburb", "neighbourhood", "residential", "city_district", "locality")
_POI_CATEGORIES = {"poi", "landmark"}
_NEIGHBOURHOOD_WORDS = re.compile(r"(colonia|fraccionamiento|barrio|residencial)", re.IGNORECASE)
_DIGIT = re.compile(r"\d")


@dataclass(frozen=True)
class LocatedResult:
    location: ResolvedLocation
    quality: QualityAssessment
    decision: Optional[GateDecision] = None
    intent: Optional[LocationIntent] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.location.to_dict()
        data.update(self.quality.to_dict())
        if self.decision is not None and self.decision.zone is not None:
            data["zona_servicio"] = self.decision.zone.name
        if self.intent is not None:
            if self.intent.is_route_origin:
                data["es_origen_de_ruta"] = True
            if self.intent.is_route_destination:
                data["es_destino_de_ruta"] = True
            if self.intent.destination_text:
                data["destino_de_ruta"] = self.intent.destination_text
        return data


@dataclass(frozen=True)
class AddressAnalysis:
    is_known_poi: bool = False
    is_geocoded_poi: bool = False
    has_street_number: bool = False
    has_neighbourhood: bool = False
    has_main_city: bool = False
    suggestions: Sequence[str] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "es_poi_conocido": self.is_known_poi,
            "es_poi_geocodificado": self.is_geocoded_poi,
            "tiene_numero_calle": self.has_street_number,
            "tiene_colonia_barrio": self.has_neighbourhood,
            "tiene_ciudad_principal": self.has_main_city,
            "sugerencias_geocoder": list(self.suggestions),
        }


def analyze_address(location: ResolvedLocation, allowed_municipalities: Sequence[str]) -> AddressAnalysis:
    """Describe how specific a resolved address is, for the address-validation flow."""
    comps = location.address_components
    is_known_poi = location.provenance is Provenance.GAZETTEER
    allowed = {m.lower() for m in allowed_municipalities}

    if comps:
        road = comps.get("road", "")
        has_street_number = any(comps.get(f) for f in _STREET_NUMBER_FIELDS) or bool(_DIGIT.search(road))
        has_neighbourhood = any(comps.get(f) for f in _NEIGHBOURHOOD_FIELDS)
        has_main_city = any(comps.get(f, "").lower() in allowed for f in ("city", "town") if comps.get(f))
        is_geocoded_poi = not is_known_poi and comps.get("category", "") in _POI_CATEGORIES
    else:
        text = location.formatted_address
        has_street_number = bool(_DIGIT.search(text))
        has_neighbourhood = bool(_NEIGHBOURHOOD_WORDS.search(text))
        has_main_city = any(m in text.lower() for m in allowed)
        is_geocoded_poi = False

    return AddressAnalysis(
        is_known_poi=is_known_poi,
        is_geocoded_poi=is_geocoded_poi,
        has_street_number=has_street_number,
        has_neighbourhood=has_neighbourhood,
        has_main_city=has_main_city,
        suggestions=tuple(location.alternative_addresses),
    )


class DispatchService:
    """
    Single process-wide entry point: resolves rider input, grades it, gates it
    against the service area and prices trips.
    """

    def __init__(
        self,
        geocoder: GeocodeOrchestrator,
        gate: GeographyGate,
        grader: Optional[QualityGrader] = None,
        schedule: FareSchedule = DEFAULT_SCHEDULE,
        link_expander: Optional[Callable[[str], str]] = None,
    ):
        self.geocoder = geocoder
        self.gate = gate
        self.grader = grader or QualityGrader()
        self.schedule = schedule
        self.link_expander = link_expander

    def _grade(self, location: ResolvedLocation, original_input: str) -> QualityAssessment:
        return self.grader.grade(
            location.provenance,
            location.raw_confidence,
            location.formatted_address,
            original_input,
        )

    def geocode_text(self, address: Any) -> LocatedResult:
        text = require_address(address)
        location = self.geocoder.resolve_text(text)
        quality = self._grade(location, text)
        decision = self.gate.check(location, self.geocoder.reverse_lookup)
        return LocatedResult(location=location, quality=quality, decision=decision)

    def geocode_link(self, url: Any, expand: bool = True) -> LocatedResult:
        original = require_url(url)
        final_url = original
        if expand and self.link_expander is not None:
            final_url = self.link_expander(original)

        intent = parse_maps_link(final_url)
        logger.debug("Intent parsed from link %s: %s", final_url, intent.to_dict())

        if intent.has_coordinate:
            coordinate = intent.coordinate()
            location = self.geocoder.resolve_coordinate(coordinate.lat, coordinate.lon)
            quality = self._grade(location, LINK_COORDINATE_INPUT)
        elif intent.query_text:
            text = require_address(intent.query_text, code="INVALID_ADDRESS_FROM_LINK")
            location = self.geocoder.resolve_text(text)
            quality = self._grade(location, text)
        else:
            raise InvalidInput(
                "Could not extract location information from the link.",
                code="UNPARSABLE_LINK_CONTENT",
            )

        decision = self.gate.check(location, self.geocoder.reverse_lookup)
        return LocatedResult(location=location, quality=quality, decision=decision, intent=intent)

    def reverse_origin(self, lat: Any, lon: Any) -> LocatedResult:
        coordinate = require_coordinate(lat, lon)
        location = self.geocoder.resolve_coordinate(coordinate.lat, coordinate.lon)
        quality = self._grade(location, f"{coordinate.lat},{coordinate.lon}")
        return LocatedResult(location=location, quality=quality)

    def validate_address(self, address: Any) -> tuple[LocatedResult, AddressAnalysis]:
        text = require_address(address)
        location = self.geocoder.resolve_text(text, use_cache=False)
        quality = self._grade(location, text)
        analysis = analyze_address(location, self.gate.allowed_municipalities)
        return LocatedResult(location=location, quality=quality), analysis

    def _destination(
        self,
        destination_lat: Any,
        destination_lon: Any,
        destination_text: Any,
    ) -> tuple[Coordinate, str]:
        label = destination_text.strip() if isinstance(destination_text, str) else ""
        if label == "undefined":
            label = ""

        if destination_lat is not None and destination_lon is not None:
            try:
                coordinate = Coordinate(destination_lat, destination_lon)
            except InvalidInput:
                logger.debug("Destination coordinates invalid, falling back to text")
            else:
                logger.info("Using direct coordinates for destination: (%s, %s)", coordinate.lat, coordinate.lon)
                return coordinate, label or DEFAULT_DESTINATION_LABEL

        text = require_address(label, code="INVALID_DESTINATION_ADDRESS_TEXT")
        logger.info("Geocoding destination: '%s'", text)
        location = self.geocoder.resolve_text(text)
        return location.coordinate, location.formatted_address

    def quote_fare(
        self,
        origin_lat: Any,
        origin_lon: Any,
        phone: Any,
        destination_lat: Any = None,
        destination_lon: Any = None,
        destination_text: Any = None,
    ) -> FareQuote:
        origin = require_coordinate(origin_lat, origin_lon, code="INVALID_ORIGIN_COORDINATES")
        require_phone(phone)
        destination, address = self._destination(destination_lat, destination_lon, destination_text)
        self.gate.require_in_bounds(destination, what="destination", code="DESTINATION_OUT_OF_BOUNDS")
        return quote_fare(origin, destination, address, self.schedule)

    def health(self) -> Dict[str, Any]:
        cache = self.geocoder.cache
        zones: List[str] = [z.name for z in self.gate.zones]
        return {
            "status": "OK",
            "cache_size": len(cache) if cache is not None else 0,
            "cache_max_entries": cache.max_entries if cache is not None else 0,
            "cache_ttl_hours": cache.ttl_seconds / 3600 if cache is not None else 0,
            "gazetteer_entries": len(self.geocoder.gazetteer),
            "service_zones": zones,
            "allowed_municipalities": list(self.gate.allowed_municipalities),
        }
