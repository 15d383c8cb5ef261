"""Extract a location intent from a shared Google Maps link.

The parser is pure: redirects must already be followed (see
``taxigeo.vendors.maps_links``). Strategies are tried in a fixed order and the
first one that recognizes something wins:

1. ``/@lat,lon[,zoom z]`` in the path
2. ``!3d<lat>!4d<lon>`` fields of the opaque ``data=`` blob
3. route links (``saddr``/``daddr``, ``origin``/``destination``, ``/dir/a/b``)
4. ``q`` / ``query`` parameter, either ``lat,lon`` or free text
5. ``ll`` / ``sll`` parameter
6. ``/place/<text>`` or ``/search/<text>`` path segment
7. ``lat,lon`` inside the fragment
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import parse_qs, quote, unquote, unquote_plus, urlsplit

from taxigeo.core.models import LocationIntent

logger = logging.getLogger(__name__)

_NUMBER = r"[-+]?\d+(?:\.\d+)?"
_AT_PATTERN = re.compile(rf"@({_NUMBER}),({_NUMBER})(?:,(\d+(?:\.\d+)?)z)?")
_DATA_PATTERN = re.compile(rf"!3d({_NUMBER})!4d({_NUMBER})")
_LAT_LON_PATTERN = re.compile(rf"^\s*({_NUMBER})\s*,\s*({_NUMBER})\s*$")
_FRAGMENT_PATTERN = re.compile(rf"({_NUMBER}),\s*({_NUMBER})")
_PLACE_PATTERN = re.compile(r"/(?:place|search)/([^/]+)")
_DIR_PATTERN = re.compile(r"/dir/(.*)")

_ORIGIN_PARAMS = ("saddr", "origin")
_DESTINATION_PARAMS = ("daddr", "destination")
_QUERY_PARAMS = ("q", "query")
_LAT_LON_PARAMS = ("ll", "sll")

MAPS_SEARCH_URL = "https://www.google.com/maps/search/"

Params = Dict[str, List[str]]


def parse_lat_lon(text: Optional[str]) -> Optional[Tuple[float, float]]:
    """Parse a strict ``lat,lon`` pair; anything else returns None."""
    if not text:
        return None
    match = _LAT_LON_PATTERN.match(text)
    if not match:
        return None
    return float(match.group(1)), float(match.group(2))


def _first_param(params: Params, names: Sequence[str]) -> Optional[str]:
    for name in names:
        for value in params.get(name, []):
            value = value.strip()
            if value:
                return value
    return None


def _from_at_segment(path: str, params: Params, fragment: str) -> Optional[LocationIntent]:
    match = _AT_PATTERN.search(path)
    if not match:
        return None
    return LocationIntent(lat=float(match.group(1)), lon=float(match.group(2)))


def _from_data_blob(path: str, params: Params, fragment: str) -> Optional[LocationIntent]:
    match = _DATA_PATTERN.search(path) or _DATA_PATTERN.search(" ".join(params.get("data", [])))
    if not match:
        return None
    return LocationIntent(lat=float(match.group(1)), lon=float(match.group(2)))


def _route_from_path(path: str) -> Tuple[Optional[str], Optional[str]]:
    match = _DIR_PATTERN.search(path)
    if not match:
        return None, None
    segments = [
        unquote_plus(s).strip()
        for s in match.group(1).split("/")
        if not s.startswith("@") and not s.startswith("data=")
    ]
    origin = segments[0] if segments else ""
    destination = segments[1] if len(segments) > 1 else ""
    return origin or None, destination or None


def _from_route(path: str, params: Params, fragment: str) -> Optional[LocationIntent]:
    origin = _first_param(params, _ORIGIN_PARAMS)
    destination = _first_param(params, _DESTINATION_PARAMS)
    if origin is None and destination is None:
        origin, destination = _route_from_path(path)
    if origin is None and destination is None:
        return None

    if origin is not None:
        point = parse_lat_lon(origin)
        if point:
            return LocationIntent(
                lat=point[0], lon=point[1], is_route_origin=True, destination_text=destination
            )
        return LocationIntent(query_text=origin, is_route_origin=True, destination_text=destination)

    point = parse_lat_lon(destination)
    if point:
        return LocationIntent(lat=point[0], lon=point[1], is_route_destination=True)
    return LocationIntent(query_text=destination, is_route_destination=True)


def _from_query_param(path: str, params: Params, fragment: str) -> Optional[LocationIntent]:
    value = _first_param(params, _QUERY_PARAMS)
    if value is None:
        return None
    point = parse_lat_lon(value)
    if point:
        return LocationIntent(lat=point[0], lon=point[1])
    return LocationIntent(query_text=value)


def _from_lat_lon_param(path: str, params: Params, fragment: str) -> Optional[LocationIntent]:
    point = parse_lat_lon(_first_param(params, _LAT_LON_PARAMS))
    if not point:
        return None
    return LocationIntent(lat=point[0], lon=point[1])


def _from_place_segment(path: str, params: Params, fragment: str) -> Optional[LocationIntent]:
    match = _PLACE_PATTERN.search(path)
    if not match:
        return None
    text = unquote_plus(match.group(1)).strip()
    return LocationIntent(query_text=text) if text else None


def _from_fragment(path: str, params: Params, fragment: str) -> Optional[LocationIntent]:
    match = _FRAGMENT_PATTERN.search(unquote(fragment))
    if not match:
        return None
    return LocationIntent(lat=float(match.group(1)), lon=float(match.group(2)))


_STRATEGIES: Tuple[Callable[[str, Params, str], Optional[LocationIntent]], ...] = (
    _from_at_segment,
    _from_data_blob,
    _from_route,
    _from_query_param,
    _from_lat_lon_param,
    _from_place_segment,
    _from_fragment,
)


def parse_maps_link(raw_url: str) -> LocationIntent:
    """Return the location intent encoded in *raw_url*, or an empty intent."""
    try:
        parts = urlsplit(raw_url.strip())
    except (AttributeError, ValueError) as exc:
        logger.warning("Could not split map link %r: %s", raw_url, exc)
        return LocationIntent()
    if not parts.scheme or not parts.netloc:
        logger.warning("Map link is not an absolute URL: %r", raw_url)
        return LocationIntent()

    path = unquote(parts.path)
    params = parse_qs(parts.query)
    for strategy in _STRATEGIES:
        intent = strategy(path, params, parts.fragment)
        if intent is not None:
            logger.debug("Parsed map link via %s: %s", strategy.__name__, intent)
            return intent

    logger.warning("No coordinates or search text found in map link: %s", raw_url)
    return LocationIntent()


def build_maps_link(lat: float, lon: float, label: str = "") -> str:
    """Shareable Google Maps search link for a point."""
    encoded_label = quote(label, safe="-_.!~*'()")
    return f"{MAPS_SEARCH_URL}?api=1&query={lat},{lon}&query_place_id={encoded_label}"
