"""Fixed table of known places used as a free, maximal-confidence geocoder."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from taxigeo.core.models import Coordinate, GazetteerEntry, Provenance, ResolvedLocation

logger = logging.getLogger(__name__)

GAZETTEER_CONFIDENCE = 10

_DEFAULT_RECORDS: List[Dict[str, Any]] = [
    {
        "keys": ["forum tepic"],
        "lat": 21.492075,
        "lon": -104.865812,
        "address": "Blvrd Luis Donaldo Colosio 680, Subcentro Urbano, 63175 Tepic, Nay.",
        "components": {"category": "poi", "type": "amenity", "city": "Tepic", "postcode": "63175",
                       "house_number": "680", "road": "Blvrd Luis Donaldo Colosio", "suburb": "Subcentro Urbano"},
    },
    {
        "keys": ["catedral"],
        "lat": 21.4997,
        "lon": -104.8948,
        "address": "Catedral de Tepic, México Nte. 132, Centro, Tepic",
        "components": {"category": "poi", "type": "amenity", "city": "Tepic", "postcode": "63000",
                       "house_number": "132", "road": "México Nte.", "suburb": "Centro"},
    },
    {
        "keys": ["walmart", "walmart insurgentes"],
        "lat": 21.5150,
        "lon": -104.8700,
        "address": "Walmart, Av. Insurgentes 1072, Lagos del Country, Tepic",
        "components": {"category": "poi", "type": "amenity", "city": "Tepic", "postcode": "63173",
                       "house_number": "1072", "road": "Av. Insurgentes", "suburb": "Lagos del Country"},
    },
    {
        "keys": ["central de autobuses"],
        "lat": 21.4880,
        "lon": -104.8900,
        "address": "Central de Autobuses de Tepic, Av. Insurgentes 1072, Tepic",
        "components": {"category": "poi", "type": "amenity", "city": "Tepic", "postcode": "63000",
                       "house_number": "1072", "road": "Av. Insurgentes"},
    },
    {
        "keys": ["centro", "el centro"],
        "lat": 21.5017,
        "lon": -104.8940,
        "address": "Centro Histórico, Tepic, Nayarit",
        "components": {"category": "locality", "type": "city_district", "city": "Tepic", "suburb": "Centro"},
    },
    {
        "keys": ["hospital general"],
        "lat": 21.5000,
        "lon": -104.8900,
        "address": "Hospital General de Nayarit, Av Enfermería S/n, Tepic",
        "components": {"category": "poi", "type": "amenity", "city": "Tepic", "road": "Av Enfermería",
                       "house_number": "S/n"},
    },
    {
        "keys": ["cruz roja"],
        "lat": 21.5050,
        "lon": -104.8950,
        "address": "Cruz Roja Mexicana, Tepic, Nayarit",
        "components": {"category": "poi", "type": "amenity", "city": "Tepic"},
    },
    {
        "keys": ["bodega aurrera"],
        "lat": 21.5100,
        "lon": -104.8900,
        "address": "Bodega Aurrera, Tepic, Nayarit",
        "components": {"category": "poi", "type": "amenity", "city": "Tepic"},
    },
    {
        "keys": ["uan campus"],
        "lat": 21.5150,
        "lon": -104.8650,
        "address": "Universidad Autónoma de Nayarit, Ciudad de la Cultura, Tepic",
        "components": {"category": "poi", "type": "amenity", "city": "Tepic", "suburb": "Ciudad de la Cultura"},
    },
    {
        "keys": ["tec de tepic"],
        "lat": 21.4800,
        "lon": -104.8400,
        "address": "Instituto Tecnológico de Tepic, Av. Tecnológico 2595, Tepic",
        "components": {"category": "poi", "type": "amenity", "city": "Tepic", "house_number": "2595",
                       "road": "Av. Tecnológico"},
    },
]


def normalize(text: str) -> str:
    return " ".join(text.lower().split())


def entry_from_record(record: Dict[str, Any]) -> GazetteerEntry:
    keys = tuple(normalize(k) for k in record["keys"] if normalize(k))
    if not keys:
        raise ValueError(f"gazetteer record without usable keys: {record!r}")
    return GazetteerEntry(
        match_keys=keys,
        coordinate=Coordinate(float(record["lat"]), float(record["lon"])),
        formatted_address=str(record["address"]),
        address_components={str(k): str(v) for k, v in (record.get("components") or {}).items()},
    )


class Gazetteer:
    """
    Substring matcher over a fixed list of entries.

    A key matches when the normalized input contains it, or when it contains
    the whole input. Keys found inside the input beat keys that merely
    contain the input; among the former the longest key wins, among the
    latter the shortest. Remaining ties go to table order.
    """

    def __init__(self, entries: Iterable[GazetteerEntry]):
        self._entries: Tuple[GazetteerEntry, ...] = tuple(entries)

    @classmethod
    def default(cls) -> "Gazetteer":
        return cls(entry_from_record(r) for r in _DEFAULT_RECORDS)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "Gazetteer":
        with Path(path).open("r", encoding="utf-8") as fh:
            records = json.load(fh)
        gazetteer = cls(entry_from_record(r) for r in records)
        logger.info("Loaded %d gazetteer entries from %s", len(gazetteer), path)
        return gazetteer

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Sequence[GazetteerEntry]:
        return self._entries

    def match(self, text: str) -> Optional[GazetteerEntry]:
        query = normalize(text or "")
        if not query:
            return None

        best: Optional[Tuple[Tuple[int, int], GazetteerEntry]] = None
        for entry in self._entries:
            for key in entry.match_keys:
                if key in query:
                    rank = (1, len(key))
                elif query in key:
                    rank = (0, -len(key))
                else:
                    continue
                if best is None or rank > best[0]:
                    best = (rank, entry)
        return best[1] if best else None

    def lookup(self, text: str) -> Optional[ResolvedLocation]:
        entry = self.match(text)
        if entry is None:
            return None
        logger.info("Gazetteer match '%s' for input '%s'", entry.formatted_address, text)
        return ResolvedLocation(
            coordinate=entry.coordinate,
            formatted_address=entry.formatted_address,
            provenance=Provenance.GAZETTEER,
            raw_confidence=GAZETTEER_CONFIDENCE,
            address_components=dict(entry.address_components),
            alternative_addresses=(),
        )
