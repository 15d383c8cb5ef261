"""Core data models shared by the location resolution and fare pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from taxigeo.core.errors import InvalidInput


class Provenance(str, Enum):
    """Which resolution source produced a location."""

    GAZETTEER = "predefined_poi"
    PROVIDER_A = "opencage"
    PROVIDER_B = "mapbox"
    REVERSE_PROVIDER_A = "opencage_reverse"


class QualityTier(str, Enum):
    EXCELLENT = "Excelente"
    GOOD = "Buena"
    ACCEPTABLE = "Aceptable"
    LOW = "Baja"
    UNKNOWN = "Desconocida"


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


@dataclass(frozen=True)
class Coordinate:
    """WGS84 point, validated on construction."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (_is_real(self.lat) and _is_real(self.lon)):
            raise InvalidInput("Coordinates must be numeric.", code="INVALID_COORDINATES")
        if not (-90 <= self.lat <= 90 and -180 <= self.lon <= 180):
            raise InvalidInput(
                f"Coordinates out of range: {self.lat},{self.lon}",
                code="INVALID_COORDINATES",
            )

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lon)


@dataclass(frozen=True)
class BoundingBox:
    """Rectangular service extent; edges are inclusive."""

    lat_south: float
    lon_west: float
    lat_north: float
    lon_east: float

    @classmethod
    def parse(cls, raw: str) -> "BoundingBox":
        """Parse ``latSouth,lonWest,latNorth,lonEast``."""
        parts = [p.strip() for p in raw.split(",")]
        if len(parts) != 4:
            raise ValueError(f"bounding box needs 4 comma-separated numbers, got {raw!r}")
        lat_s, lon_w, lat_n, lon_e = (float(p) for p in parts)
        if lat_s > lat_n or lon_w > lon_e:
            raise ValueError(f"bounding box corners are inverted: {raw!r}")
        return cls(lat_s, lon_w, lat_n, lon_e)

    def contains(self, lat: float, lon: float) -> bool:
        return self.lat_south <= lat <= self.lat_north and self.lon_west <= lon <= self.lon_east

    def as_lon_lat_string(self) -> str:
        """``lonW,latS,lonE,latN`` as both providers expect it."""
        return f"{self.lon_west},{self.lat_south},{self.lon_east},{self.lat_north}"


@dataclass(frozen=True)
class ProviderCandidate:
    """Normalized result of one provider adapter."""

    provenance: Provenance
    coordinate: Coordinate
    formatted_address: str
    raw_confidence: float
    components: Mapping[str, str] = field(default_factory=dict)
    alternatives: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ResolvedLocation:
    coordinate: Coordinate
    formatted_address: str
    provenance: Provenance
    raw_confidence: float
    address_components: Mapping[str, str] = field(default_factory=dict)
    alternative_addresses: Tuple[str, ...] = ()

    @classmethod
    def from_candidate(cls, candidate: ProviderCandidate) -> "ResolvedLocation":
        return cls(
            coordinate=candidate.coordinate,
            formatted_address=candidate.formatted_address,
            provenance=candidate.provenance,
            raw_confidence=candidate.raw_confidence,
            address_components=dict(candidate.components),
            alternative_addresses=tuple(candidate.alternatives[:2]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.coordinate.lat,
            "lon": self.coordinate.lon,
            "direccion_encontrada": self.formatted_address,
            "fuente_geocodificacion": self.provenance.value,
            "quality_score": self.raw_confidence,
            "componentes_direccion": dict(self.address_components),
            "sugerencias": list(self.alternative_addresses),
        }


@dataclass(frozen=True)
class QualityAssessment:
    tier: QualityTier
    precision_meters: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "calidad_evaluada": self.tier.value,
            "precision_estimada_metros": self.precision_meters,
        }


@dataclass(frozen=True)
class GazetteerEntry:
    """Hand-curated place; ``match_keys`` are already normalized."""

    match_keys: Tuple[str, ...]
    coordinate: Coordinate
    formatted_address: str
    address_components: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ServiceZone:
    """Named circular exception to the municipality allow-list."""

    name: str
    center: Coordinate
    radius_km: float


@dataclass(frozen=True)
class LocationIntent:
    """What a shared map link points at. Empty when nothing was recognized."""

    lat: Optional[float] = None
    lon: Optional[float] = None
    query_text: Optional[str] = None
    is_route_origin: bool = False
    is_route_destination: bool = False
    destination_text: Optional[str] = None

    @property
    def has_coordinate(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def is_empty(self) -> bool:
        return not self.has_coordinate and not self.query_text

    def coordinate(self) -> Coordinate:
        """Validated coordinate; raises InvalidInput for out-of-range link values."""
        try:
            return Coordinate(self.lat, self.lon)
        except InvalidInput as exc:
            raise InvalidInput(str(exc), code="INVALID_COORDINATES_FROM_LINK") from exc

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.has_coordinate:
            data["lat"] = self.lat
            data["lon"] = self.lon
        if self.query_text:
            data["q"] = self.query_text
        if self.is_route_origin:
            data["is_route_origin"] = True
        if self.is_route_destination:
            data["is_route_destination"] = True
        if self.destination_text:
            data["destination_text"] = self.destination_text
        return data


@dataclass(frozen=True)
class FareQuote:
    origin: Coordinate
    destination: Coordinate
    destination_address: str
    distance_km: float
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat_origen": self.origin.lat,
            "lon_origen": self.origin.lon,
            "lat_destino": self.destination.lat,
            "lon_destino": self.destination.lon,
            "direccion_destino": self.destination_address,
            "distancia_km": self.distance_km,
            "costo_estimado": self.amount,
        }
