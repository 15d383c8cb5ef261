"""Closed set of failure kinds raised by the resolution and fare pipeline."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Sequence


class FailureKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    PROVIDER_TRANSPORT = "provider_transport"
    UNRESOLVABLE = "unresolvable"
    ADDRESS_NOT_FOUND = "address_not_found"
    OUT_OF_BOUNDS = "out_of_bounds"
    OUT_OF_SERVICE_AREA = "out_of_service_area"
    FARE_CALCULATION = "fare_calculation"


class TransportErrorKind(str, Enum):
    AUTH = "auth"
    DNS = "dns"
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    HTTP = "http"
    OTHER = "other"


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing or malformed."""


class TaxiGeoError(Exception):
    """Base exception for every failure the pipeline surfaces."""

    kind: FailureKind
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        if code:
            self.code = code


class InvalidInput(TaxiGeoError):
    """Malformed input rejected before any resolution attempt."""

    kind = FailureKind.INVALID_INPUT
    code = "INVALID_INPUT"


class ProviderTransportError(TaxiGeoError):
    """A geocoding provider call failed in transport or returned an HTTP error."""

    kind = FailureKind.PROVIDER_TRANSPORT
    code = "PROVIDER_TRANSPORT_ERROR"

    def __init__(
        self,
        provider: str,
        transport_kind: TransportErrorKind,
        message: str,
        *,
        status_code: Optional[int] = None,
    ):
        self.provider = provider
        self.transport_kind = transport_kind
        self.status_code = status_code
        super().__init__(f"{provider}: {transport_kind.value} - {message}")


class Unresolvable(TaxiGeoError):
    """No gazetteer entry or provider candidate was found for the text."""

    kind = FailureKind.UNRESOLVABLE
    code = "ADDRESS_NOT_FOUND"

    def __init__(self, address: str, provider_errors: Sequence[ProviderTransportError] = ()):
        self.address = address
        self.provider_errors: List[ProviderTransportError] = list(provider_errors)
        super().__init__(f"Could not geocode address: {address}")

    @property
    def all_providers_failed(self) -> bool:
        """True when every provider errored instead of returning no match."""
        return len(self.provider_errors) >= 2


class AddressNotFound(TaxiGeoError):
    kind = FailureKind.ADDRESS_NOT_FOUND
    code = "ADDRESS_NOT_FOUND_REVERSE"

    def __init__(self, lat: float, lon: float):
        self.lat = lat
        self.lon = lon
        super().__init__(f"No address found for coordinates {lat},{lon}")


class OutOfBounds(TaxiGeoError):
    kind = FailureKind.OUT_OF_BOUNDS
    code = "OUT_OF_BOUNDS"


class OutOfServiceArea(TaxiGeoError):
    kind = FailureKind.OUT_OF_SERVICE_AREA
    code = "OUT_OF_SERVICE_AREA"

    def __init__(self, message: str, municipality: Optional[str] = None):
        self.municipality = municipality
        super().__init__(message)


class FareCalculationError(TaxiGeoError):
    kind = FailureKind.FARE_CALCULATION
    code = "FARE_CALCULATION_ERROR"
