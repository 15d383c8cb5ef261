"""Ingress validation; every failure is an InvalidInput with a field-specific code."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

from taxigeo.core.errors import InvalidInput
from taxigeo.core.models import Coordinate

MIN_ADDRESS_LENGTH = 4
MIN_PHONE_LENGTH = 10


def require_coordinate(lat: Any, lon: Any, code: str = "INVALID_COORDINATES") -> Coordinate:
    if lat is None or lon is None:
        raise InvalidInput("Coordinates (lat, lon) are missing.", code=code)
    try:
        return Coordinate(lat, lon)
    except InvalidInput as exc:
        raise InvalidInput(str(exc), code=code) from exc


def require_address(text: Any, code: str = "INVALID_ADDRESS_INPUT") -> str:
    if not isinstance(text, str) or len(text.strip()) < MIN_ADDRESS_LENGTH:
        raise InvalidInput("Address is missing or too short.", code=code)
    return text.strip()


def require_phone(text: Any, code: str = "INVALID_PHONE_NUMBER") -> str:
    if not isinstance(text, str) or len(text.strip()) < MIN_PHONE_LENGTH:
        raise InvalidInput("Phone number is missing or invalid.", code=code)
    return text.strip()


def require_url(text: Any, code: str = "INVALID_URL_FORMAT") -> str:
    if not isinstance(text, str):
        raise InvalidInput("URL is missing.", code=code)
    try:
        parts = urlsplit(text.strip())
    except ValueError as exc:
        raise InvalidInput("URL is malformed.", code=code) from exc
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise InvalidInput("URL is malformed.", code=code)
    return text.strip()
