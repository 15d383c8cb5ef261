"""Client for the OpenCage geocoding API (forward and reverse)."""

import logging
from typing import Any, Dict, List, Optional

import requests

from taxigeo.core.models import BoundingBox, Coordinate, Provenance, ProviderCandidate
from taxigeo.vendors.transport import DEFAULT_TIMEOUT, get_json

logger = logging.getLogger(__name__)

PROVIDER = "opencage"
_BASE_URL = "https://api.opencagedata.com/geocode/v1/json"
_SEARCH_LIMIT = 5


def parse_components(raw: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Flatten OpenCage components; ``_category``/``_type`` lose their underscore."""
    components: Dict[str, str] = {}
    for key, value in (raw or {}).items():
        if isinstance(value, (dict, list)) or value is None:
            continue
        components[key.lstrip("_")] = str(value)
    return components


def _confidence(result: Dict[str, Any]) -> float:
    try:
        return float(result.get("confidence") or 0)
    except (TypeError, ValueError):
        return 0.0


def _result_coordinate(result: Dict[str, Any]) -> Optional[Coordinate]:
    geometry = result.get("geometry") or {}
    try:
        return Coordinate(float(geometry["lat"]), float(geometry["lng"]))
    except (KeyError, TypeError, ValueError):
        return None


class OpenCageClient:
    name = PROVIDER

    def __init__(
        self,
        api_key: str,
        *,
        proximity: Optional[Coordinate] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        country_code: str = "mx",
        language: str = "es",
    ):
        self._api_key = api_key
        self._proximity = proximity
        self._timeout = timeout
        self._session = session or requests.Session()
        self._country_code = country_code
        self._language = language

    def _base_params(self, query: str, limit: int) -> Dict[str, Any]:
        return {
            "q": query,
            "key": self._api_key,
            "language": self._language,
            "limit": limit,
            "no_annotations": 0,
            "countrycode": self._country_code,
        }

    def search(self, text: str, bounds: BoundingBox) -> Optional[ProviderCandidate]:
        """First in-bounds result in OpenCage's own ranking, or None."""
        params = self._base_params(text, _SEARCH_LIMIT)
        params["bounds"] = bounds.as_lon_lat_string()
        if self._proximity is not None:
            params["proximity"] = f"{self._proximity.lat},{self._proximity.lon}"

        payload = get_json(self._session, PROVIDER, _BASE_URL, params, self._timeout)
        results: List[Dict[str, Any]] = payload.get("results") or []

        for index, result in enumerate(results):
            coordinate = _result_coordinate(result)
            if coordinate is None or not bounds.contains(coordinate.lat, coordinate.lon):
                continue
            others = [r.get("formatted", "") for i, r in enumerate(results) if i != index]
            candidate = ProviderCandidate(
                provenance=Provenance.PROVIDER_A,
                coordinate=coordinate,
                formatted_address=result.get("formatted", ""),
                raw_confidence=_confidence(result),
                components=parse_components(result.get("components")),
                alternatives=tuple(a for a in others if a)[:2],
            )
            logger.debug("OpenCage found: %s (confidence %s)", candidate.formatted_address, candidate.raw_confidence)
            return candidate
        return None

    def reverse(self, coordinate: Coordinate) -> Optional[ProviderCandidate]:
        """Best address at *coordinate*; the candidate keeps the queried point."""
        params = self._base_params(f"{coordinate.lat},{coordinate.lon}", 1)
        payload = get_json(self._session, PROVIDER, _BASE_URL, params, self._timeout)
        results = payload.get("results") or []
        if not results:
            return None
        best = results[0]
        return ProviderCandidate(
            provenance=Provenance.REVERSE_PROVIDER_A,
            coordinate=coordinate,
            formatted_address=best.get("formatted", ""),
            raw_confidence=_confidence(best),
            components=parse_components(best.get("components")),
        )
