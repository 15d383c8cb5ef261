"""Shared HTTP plumbing for the geocoding providers."""

import logging
from typing import Any, Dict

import requests
from urllib3.exceptions import NameResolutionError

from taxigeo.core.errors import ProviderTransportError, TransportErrorKind

logger = logging.getLogger(__name__)

USER_AGENT = "TaxiBot-API/1.1"
DEFAULT_TIMEOUT = 4.0


def _is_dns_failure(exc: requests.ConnectionError) -> bool:
    reason = exc.args[0] if exc.args else None
    reason = getattr(reason, "reason", reason)
    return isinstance(reason, NameResolutionError)


def classify_error(exc: requests.RequestException) -> TransportErrorKind:
    response = getattr(exc, "response", None)
    status = response.status_code if response is not None else None
    if status in (401, 403):
        return TransportErrorKind.AUTH
    if status == 429:
        return TransportErrorKind.RATE_LIMIT
    if isinstance(exc, requests.Timeout):
        return TransportErrorKind.TIMEOUT
    if isinstance(exc, requests.ConnectionError) and _is_dns_failure(exc):
        return TransportErrorKind.DNS
    if status is not None:
        return TransportErrorKind.HTTP
    return TransportErrorKind.OTHER


def get_json(
    session: requests.Session,
    provider: str,
    url: str,
    params: Dict[str, Any],
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[str, Any]:
    """GET *url* and decode JSON, raising ProviderTransportError on any failure."""
    try:
        response = session.get(url, params=params, timeout=timeout, headers={"User-Agent": USER_AGENT})
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as exc:
        failed = getattr(exc, "response", None)
        raise ProviderTransportError(
            provider,
            classify_error(exc),
            exc.__class__.__name__,
            status_code=failed.status_code if failed is not None else None,
        ) from exc
    except ValueError as exc:
        raise ProviderTransportError(provider, TransportErrorKind.OTHER, "invalid JSON payload") from exc
    if not isinstance(payload, dict):
        raise ProviderTransportError(provider, TransportErrorKind.OTHER, "unexpected payload shape")
    return payload
