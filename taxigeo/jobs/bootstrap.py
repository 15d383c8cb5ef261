"""Wire settings, providers, cache and gate into one DispatchService."""

import logging
from functools import partial
from typing import Optional

import requests

from taxigeo.core.cache import ResultCache
from taxigeo.core.config import REGION_CENTER, Settings
from taxigeo.core.dispatch import DispatchService
from taxigeo.core.gazetteer import Gazetteer
from taxigeo.core.geocoder import GeocodeOrchestrator
from taxigeo.core.geography import DEFAULT_SERVICE_ZONES, GeographyGate
from taxigeo.vendors.mapbox import MapboxClient
from taxigeo.vendors.maps_links import expand_link
from taxigeo.vendors.opencage import OpenCageClient

logger = logging.getLogger(__name__)


def build_service(settings: Settings, session: Optional[requests.Session] = None) -> DispatchService:
    session = session or requests.Session()

    if settings.gazetteer_path:
        gazetteer = Gazetteer.from_json_file(settings.gazetteer_path)
    else:
        gazetteer = Gazetteer.default()

    cache: ResultCache = ResultCache(settings.cache_max_entries, settings.cache_ttl_seconds)
    geocoder = GeocodeOrchestrator(
        gazetteer,
        OpenCageClient(
            settings.opencage_api_key,
            proximity=REGION_CENTER,
            timeout=settings.provider_timeout,
            session=session,
        ),
        MapboxClient(
            settings.mapbox_token,
            proximity=REGION_CENTER,
            timeout=settings.provider_timeout,
            session=session,
        ),
        settings.bounds,
        cache,
        short_circuit_confidence=settings.short_circuit_confidence,
        preference_ratio=settings.preference_ratio,
    )
    gate = GeographyGate(settings.bounds, settings.allowed_municipalities, DEFAULT_SERVICE_ZONES)

    logger.info("Allowed municipalities: %s", ", ".join(gate.allowed_municipalities))
    logger.info("Service zones: %s", ", ".join(z.name for z in gate.zones) or "none")
    logger.info("Gazetteer entries loaded: %d", len(gazetteer))
    logger.info(
        "Result cache: max %d entries, TTL %.1f hours",
        cache.max_entries, cache.ttl_seconds / 3600,
    )

    return DispatchService(
        geocoder,
        gate,
        link_expander=partial(expand_link, timeout=settings.link_timeout),
    )
