"""Application configuration helpers.

Provider credentials come only from the environment (or a local ``.env``);
they are billable keys and must never be hardcoded.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

from taxigeo.core.errors import ConfigError
from taxigeo.core.models import BoundingBox, Coordinate

logger = logging.getLogger(__name__)

# Tepic, Nayarit: the bias point handed to both providers.
REGION_CENTER = Coordinate(21.4925, -104.8532)


@dataclass(frozen=True)
class Settings:
    opencage_api_key: str
    mapbox_token: str
    bounds: BoundingBox
    allowed_municipalities: Tuple[str, ...]
    provider_timeout: float = 4.0
    link_timeout: float = 5.0
    cache_max_entries: int = 500
    cache_ttl_seconds: int = 60 * 60 * 24
    short_circuit_confidence: float = 8.0
    preference_ratio: float = 0.8
    gazetteer_path: Optional[str] = None
    environment: str = "development"
    port: int = 3001

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _get_required_env(name: str) -> str:
    value = os.getenv(name)
    if not value or not value.strip():
        raise ConfigError(f"{name} must be set in the environment; the service cannot start.")
    return value.strip()


def _get_number(name: str, default: str, cast=float):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be numeric, got {raw!r}") from exc


def parse_municipalities(raw: str) -> Tuple[str, ...]:
    return tuple(m.strip().lower() for m in raw.split(",") if m.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load, validate and cache settings to avoid repeated env lookups."""
    load_dotenv()

    opencage_api_key = _get_required_env("OPENCAGE_API_KEY")
    mapbox_token = _get_required_env("MAPBOX_TOKEN")
    raw_bounds = _get_required_env("SERVICE_BOUNDS")
    try:
        bounds = BoundingBox.parse(raw_bounds)
    except ValueError as exc:
        raise ConfigError(f"SERVICE_BOUNDS is malformed: {exc}") from exc
    allowed = parse_municipalities(_get_required_env("ALLOWED_MUNICIPALITIES"))
    if not allowed:
        raise ConfigError("ALLOWED_MUNICIPALITIES must list at least one municipality.")

    gazetteer_path = os.getenv("GAZETTEER_PATH") or None
    if gazetteer_path and not os.path.isfile(gazetteer_path):
        logger.warning("GAZETTEER_PATH %s does not exist; using the built-in gazetteer.", gazetteer_path)
        gazetteer_path = None

    return Settings(
        opencage_api_key=opencage_api_key,
        mapbox_token=mapbox_token,
        bounds=bounds,
        allowed_municipalities=allowed,
        provider_timeout=_get_number("PROVIDER_TIMEOUT_SECONDS", "4"),
        link_timeout=_get_number("LINK_TIMEOUT_SECONDS", "5"),
        cache_max_entries=_get_number("CACHE_MAX_ENTRIES", "500", int),
        cache_ttl_seconds=_get_number("CACHE_TTL_SECONDS", "86400", int),
        short_circuit_confidence=_get_number("PROVIDER_A_SHORT_CIRCUIT", "8"),
        preference_ratio=_get_number("PROVIDER_PREFERENCE_RATIO", "0.8"),
        gazetteer_path=gazetteer_path,
        environment=(os.getenv("APP_ENV") or "development").strip().lower(),
        port=_get_number("PORT", "3001", int),
    )
