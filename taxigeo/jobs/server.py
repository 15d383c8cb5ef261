"""HTTP entrypoint exposing geocoding, service-area checks and fare quotes."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from taxigeo.core.config import get_settings
from taxigeo.core.dispatch import DispatchService
from taxigeo.core.errors import (
    FailureKind,
    ProviderTransportError,
    TaxiGeoError,
    TransportErrorKind,
    Unresolvable,
)
from taxigeo.core.links import build_maps_link
from taxigeo.jobs.bootstrap import build_service

# ---------- Logging ----------
logging.basicConfig(
    level=logging.DEBUG if os.getenv("APP_ENV", "development") != "production" else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = 500 * 1024
_STARTED_AT = datetime.now(timezone.utc)

_STATUS_BY_KIND = {
    FailureKind.INVALID_INPUT: 400,
    FailureKind.OUT_OF_BOUNDS: 400,
    FailureKind.OUT_OF_SERVICE_AREA: 400,
    FailureKind.UNRESOLVABLE: 404,
    FailureKind.ADDRESS_NOT_FOUND: 404,
    FailureKind.FARE_CALCULATION: 500,
}
_TRANSPORT_RESPONSES = {
    TransportErrorKind.TIMEOUT: (408, "GEOCODING_TIMEOUT"),
    TransportErrorKind.RATE_LIMIT: (429, "RATE_LIMIT_EXCEEDED_EXTERNAL"),
    TransportErrorKind.AUTH: (503, "EXTERNAL_SERVICE_AUTH_ERROR"),
}


@lru_cache(maxsize=1)
def get_service() -> DispatchService:
    """Build the process-wide service on first use."""
    return build_service(get_settings())


def _include_details() -> bool:
    return os.getenv("APP_ENV", "development").strip().lower() != "production"


def _error(message: str, code: str, status: int, exc: Optional[BaseException] = None) -> Tuple[Any, int]:
    body: Dict[str, Any] = {"error": message, "code": code}
    if exc is not None and _include_details():
        body["details"] = str(exc)
    return jsonify(body), status


def error_response(exc: TaxiGeoError, not_found_code: Optional[str] = None) -> Tuple[Any, int]:
    """Translate a pipeline failure into the JSON error envelope."""
    if isinstance(exc, ProviderTransportError):
        status, code = _TRANSPORT_RESPONSES.get(exc.transport_kind, (502, "GEOCODING_PROVIDER_ERROR"))
        return _error("The geocoding service failed.", code, status, exc)
    if isinstance(exc, Unresolvable):
        if exc.all_providers_failed:
            return _error("Map services are unavailable.", "GEOCODING_UNAVAILABLE", 503, exc)
        return _error(str(exc), not_found_code or exc.code, 404)
    status = _STATUS_BY_KIND.get(exc.kind, 500)
    return _error(str(exc), exc.code, status, exc if status >= 500 else None)


def _payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    body = get_service().health()
    body["timestamp"] = datetime.now(timezone.utc).isoformat()
    body["uptime"] = f"{int((datetime.now(timezone.utc) - _STARTED_AT).total_seconds())}s"
    response = jsonify(body)
    response.headers["Cache-Control"] = "no-cache"
    return response, 200


@app.post("/geocode_text")
def geocode_text() -> Any:
    payload = _payload()
    logger.debug("POST /geocode_text direccion=%r", payload.get("direccion"))
    try:
        result = get_service().geocode_text(payload.get("direccion"))
    except TaxiGeoError as exc:
        logger.warning("geocode_text failed: %s", exc)
        return error_response(exc, not_found_code="ADDRESS_NOT_FOUND_GEOCODE_TEXT")
    return jsonify({"data": result.to_dict()}), 200


@app.post("/geocode_link")
def geocode_link() -> Any:
    payload = _payload()
    logger.debug("POST /geocode_link url=%r", payload.get("url"))
    try:
        result = get_service().geocode_link(payload.get("url"))
    except TaxiGeoError as exc:
        logger.warning("geocode_link failed: %s", exc)
        return error_response(exc, not_found_code="GEOCODING_UNAVAILABLE_OR_NOT_FOUND")
    return jsonify({"data": result.to_dict()}), 200


@app.post("/reverse_origin")
def reverse_origin() -> Any:
    payload = _payload()
    try:
        result = get_service().reverse_origin(payload.get("lat"), payload.get("lon"))
    except TaxiGeoError as exc:
        logger.warning("reverse_origin failed: %s", exc)
        return error_response(exc)
    return jsonify({"data": result.to_dict()}), 200


@app.post("/validate_address")
def validate_address() -> Any:
    payload = _payload()
    try:
        result, analysis = get_service().validate_address(payload.get("direccion"))
    except TaxiGeoError as exc:
        logger.warning("validate_address failed: %s", exc)
        return error_response(exc, not_found_code="ADDRESS_VALIDATION_NOT_FOUND")
    data = result.to_dict()
    data["analisis_direccion"] = analysis.to_dict()
    return jsonify({"data": data}), 200


@app.post("/calculate_fare")
def calculate_fare() -> Any:
    payload = _payload()
    service = get_service()
    try:
        quote = service.quote_fare(
            payload.get("lat1"),
            payload.get("lon1"),
            payload.get("telefono"),
            destination_lat=payload.get("lat2"),
            destination_lon=payload.get("lon2"),
            destination_text=payload.get("destino"),
        )
    except TaxiGeoError as exc:
        logger.warning("calculate_fare failed: %s", exc)
        return error_response(exc, not_found_code="DESTINATION_ADDRESS_NOT_FOUND")

    data = quote.to_dict()
    data["link_maps_origen"] = build_maps_link(quote.origin.lat, quote.origin.lon, "Punto de partida")
    data["link_maps_destino"] = build_maps_link(
        quote.destination.lat, quote.destination.lon, quote.destination_address
    )
    data["moneda"] = service.schedule.currency
    data["telefono_registrado"] = str(payload.get("telefono")).strip()
    return jsonify({"mensaje": "Fare calculated.", "data": data}), 200


@app.errorhandler(Exception)
def unhandled_error(exc: Exception) -> Any:
    if isinstance(exc, HTTPException):
        return exc
    logger.exception("Unhandled error on %s %s: %s", request.method, request.path, exc)
    return _error("Internal server error. Please try again later.", "INTERNAL_SERVER_ERROR", 500, exc)


def main() -> None:
    settings = get_settings()
    logger.info("[BOOT] environment=%s", settings.environment)
    get_service()
    logger.info("[BOOT] Binding on 0.0.0.0:%d", settings.port)
    app.run(host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
