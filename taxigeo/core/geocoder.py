"""Resolve free text or coordinates into a single ResolvedLocation.

Forward order: gazetteer, then Provider A (OpenCage), which short-circuits on
a high confidence, then Provider B (Mapbox). When both providers answer,
B wins unless its normalized confidence is meaningfully worse than A's.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from taxigeo.core.cache import ResultCache, forward_key, reverse_key
from taxigeo.core.errors import AddressNotFound, ProviderTransportError, TransportErrorKind, Unresolvable
from taxigeo.core.gazetteer import Gazetteer
from taxigeo.core.models import BoundingBox, Coordinate, Provenance, ProviderCandidate, ResolvedLocation

logger = logging.getLogger(__name__)

DEFAULT_SHORT_CIRCUIT_CONFIDENCE = 8.0
DEFAULT_PREFERENCE_RATIO = 0.8

# Divisor that maps each provider's raw score onto 0..1.
_CONFIDENCE_SCALE = {
    Provenance.PROVIDER_A: 10.0,
    Provenance.REVERSE_PROVIDER_A: 10.0,
    Provenance.PROVIDER_B: 1.0,
    Provenance.GAZETTEER: 10.0,
}


class SearchProvider(Protocol):
    name: str

    def search(self, text: str, bounds: BoundingBox) -> Optional[ProviderCandidate]:
        ...


class ReverseProvider(Protocol):
    name: str

    def reverse(self, coordinate: Coordinate) -> Optional[ProviderCandidate]:
        ...


def _log_provider_failure(error: ProviderTransportError) -> None:
    kind = error.transport_kind
    if kind is TransportErrorKind.AUTH:
        logger.error("%s: authentication/authorization failed, check the credentials", error.provider)
    elif kind is TransportErrorKind.DNS:
        logger.error("%s: network connectivity error", error.provider)
    elif kind is TransportErrorKind.TIMEOUT:
        logger.error("%s: connection timed out", error.provider)
    elif kind is TransportErrorKind.RATE_LIMIT:
        logger.error("%s: rate limit exceeded", error.provider)
    else:
        logger.warning("%s failed or returned no usable result: %s", error.provider, error)


def normalized_confidence(candidate: ProviderCandidate) -> float:
    return candidate.raw_confidence / _CONFIDENCE_SCALE[candidate.provenance]


def choose_candidate(
    candidate_a: ProviderCandidate,
    candidate_b: ProviderCandidate,
    preference_ratio: float = DEFAULT_PREFERENCE_RATIO,
) -> ProviderCandidate:
    """Prefer B unless its normalized confidence is below ``ratio`` times A's."""
    if normalized_confidence(candidate_b) >= normalized_confidence(candidate_a) * preference_ratio:
        return candidate_b
    return candidate_a


class GeocodeOrchestrator:
    def __init__(
        self,
        gazetteer: Gazetteer,
        provider_a: SearchProvider,
        provider_b: SearchProvider,
        bounds: BoundingBox,
        cache: Optional[ResultCache[ResolvedLocation]] = None,
        *,
        reverse_provider: Optional[ReverseProvider] = None,
        short_circuit_confidence: float = DEFAULT_SHORT_CIRCUIT_CONFIDENCE,
        preference_ratio: float = DEFAULT_PREFERENCE_RATIO,
    ):
        self.gazetteer = gazetteer
        self.provider_a = provider_a
        self.provider_b = provider_b
        self.reverse_provider = reverse_provider or provider_a
        self.bounds = bounds
        self.cache = cache
        self.short_circuit_confidence = short_circuit_confidence
        self.preference_ratio = preference_ratio

    def _query(
        self,
        provider: SearchProvider,
        text: str,
        errors: List[ProviderTransportError],
    ) -> Optional[ProviderCandidate]:
        try:
            return provider.search(text, self.bounds)
        except ProviderTransportError as exc:
            _log_provider_failure(exc)
            errors.append(exc)
            return None

    def _resolve_uncached(self, address: str) -> ResolvedLocation:
        hit = self.gazetteer.lookup(address)
        if hit is not None:
            return hit

        errors: List[ProviderTransportError] = []
        candidate_a = self._query(self.provider_a, address, errors)
        if candidate_a is not None and candidate_a.raw_confidence >= self.short_circuit_confidence:
            logger.info("Returning %s result on high confidence: %s", self.provider_a.name, candidate_a.formatted_address)
            return ResolvedLocation.from_candidate(candidate_a)

        candidate_b = self._query(self.provider_b, address, errors)

        if candidate_a is not None and candidate_b is not None:
            chosen = choose_candidate(candidate_a, candidate_b, self.preference_ratio)
            logger.info("Both providers answered, choosing %s: %s", chosen.provenance.value, chosen.formatted_address)
        else:
            chosen = candidate_a or candidate_b

        if chosen is None:
            logger.error("Could not geocode '%s' with any provider", address)
            raise Unresolvable(address, errors)
        return ResolvedLocation.from_candidate(chosen)

    def resolve_text(self, address: str, use_cache: bool = True) -> ResolvedLocation:
        if not use_cache or self.cache is None:
            return self._resolve_uncached(address)

        key = forward_key(address)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        result = self._resolve_uncached(address)
        self.cache.set(key, result)
        return result

    def resolve_coordinate(self, lat: float, lon: float) -> ResolvedLocation:
        """Reverse-geocode with Provider A. Transport errors propagate."""
        coordinate = Coordinate(lat, lon)
        key = reverse_key(lat, lon)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        try:
            candidate = self.reverse_provider.reverse(coordinate)
        except ProviderTransportError as exc:
            _log_provider_failure(exc)
            raise
        if candidate is None:
            raise AddressNotFound(lat, lon)
        result = ResolvedLocation.from_candidate(candidate)
        if self.cache is not None:
            self.cache.set(key, result)
        return result

    def reverse_lookup(self, coordinate: Coordinate) -> ResolvedLocation:
        return self.resolve_coordinate(coordinate.lat, coordinate.lon)
