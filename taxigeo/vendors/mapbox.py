"""Client for the Mapbox Geocoding v5 places endpoint."""

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from taxigeo.core.models import BoundingBox, Coordinate, Provenance, ProviderCandidate
from taxigeo.vendors.transport import DEFAULT_TIMEOUT, get_json

logger = logging.getLogger(__name__)

PROVIDER = "mapbox"
_BASE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"
_SEARCH_LIMIT = 5
_PLACE_TYPES = "poi,address,neighborhood,locality,place,district,postcode,region"
_LEADING_NUMBER = re.compile(r"^(\d+)")

# context id prefix -> component field
_CONTEXT_FIELDS = (
    ("postcode", "postcode"),
    ("place", "city"),
    ("locality", "locality"),
    ("neighborhood", "suburb"),
    ("district", "district"),
    ("street", "road"),
    ("region", "state"),
    ("country", "country"),
)


def parse_context(feature: Dict[str, Any]) -> Dict[str, str]:
    """Map a feature's ``context`` list onto the shared component names."""
    components: Dict[str, str] = {}
    for ctx in feature.get("context") or []:
        ctx_id = str(ctx.get("id", ""))
        text = ctx.get("text")
        if not text:
            continue
        if ctx_id.startswith("address"):
            number = _LEADING_NUMBER.match(str(text))
            if number:
                components["house_number"] = number.group(1)
            continue
        for prefix, name in _CONTEXT_FIELDS:
            if ctx_id.startswith(prefix):
                components[name] = str(text)
                break

    if feature.get("address"):
        components.setdefault("house_number", str(feature["address"]))
    place_types = feature.get("place_type") or []
    if place_types:
        components["category"] = str(place_types[0])
    if "place" in place_types and "city" not in components and feature.get("text"):
        components["city"] = str(feature["text"])
    return components


def _feature_coordinate(feature: Dict[str, Any]) -> Optional[Coordinate]:
    center = feature.get("center") or []
    try:
        return Coordinate(float(center[1]), float(center[0]))
    except (IndexError, TypeError, ValueError):
        return None


class MapboxClient:
    name = PROVIDER

    def __init__(
        self,
        access_token: str,
        *,
        proximity: Optional[Coordinate] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        country: str = "mx",
        language: str = "es",
    ):
        self._access_token = access_token
        self._proximity = proximity
        self._timeout = timeout
        self._session = session or requests.Session()
        self._country = country
        self._language = language

    def search(self, text: str, bounds: BoundingBox) -> Optional[ProviderCandidate]:
        """First in-bounds feature in Mapbox's relevance order, or None."""
        url = f"{_BASE_URL}/{quote(text, safe='')}.json"
        params: Dict[str, Any] = {
            "language": self._language,
            "limit": _SEARCH_LIMIT,
            "access_token": self._access_token,
            "bbox": bounds.as_lon_lat_string(),
            "country": self._country,
            "types": _PLACE_TYPES,
        }
        if self._proximity is not None:
            params["proximity"] = f"{self._proximity.lon},{self._proximity.lat}"

        payload = get_json(self._session, PROVIDER, url, params, self._timeout)
        features: List[Dict[str, Any]] = payload.get("features") or []

        for index, feature in enumerate(features):
            coordinate = _feature_coordinate(feature)
            if coordinate is None or not bounds.contains(coordinate.lat, coordinate.lon):
                continue
            others = [f.get("place_name", "") for i, f in enumerate(features) if i != index]
            try:
                relevance = float(feature.get("relevance") or 0)
            except (TypeError, ValueError):
                relevance = 0.0
            candidate = ProviderCandidate(
                provenance=Provenance.PROVIDER_B,
                coordinate=coordinate,
                formatted_address=feature.get("place_name", ""),
                raw_confidence=relevance,
                components=parse_context(feature),
                alternatives=tuple(a for a in others if a)[:2],
            )
            logger.debug("Mapbox found: %s (relevance %s)", candidate.formatted_address, candidate.raw_confidence)
            return candidate
        return None
