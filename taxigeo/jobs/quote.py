"""CLI for fares, link parsing and one-off geocoding."""

import argparse
import json
import logging
from typing import List, Optional

from taxigeo.core.config import get_settings
from taxigeo.core.errors import ConfigError, TaxiGeoError
from taxigeo.core.fare import DEFAULT_SCHEDULE, compute_fare
from taxigeo.core.links import parse_maps_link
from taxigeo.jobs.bootstrap import build_service

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Taxi geocoding and fare tools")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    fare = commands.add_parser("fare", help="Price a trip distance with the default schedule")
    fare.add_argument("km", type=float, help="Trip distance in kilometers")

    parse = commands.add_parser("parse", help="Show the location intent of a map link")
    parse.add_argument("url", help="Fully expanded Google Maps URL")

    geocode = commands.add_parser("geocode", help="Resolve an address inside the service area")
    geocode.add_argument("address", help="Free-text address or place name")
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    if args.command == "fare":
        amount = compute_fare(args.km)
        print(json.dumps({"distancia_km": args.km, "costo_estimado": amount, "moneda": DEFAULT_SCHEDULE.currency}))
        return 0

    if args.command == "parse":
        print(json.dumps(parse_maps_link(args.url).to_dict(), ensure_ascii=False))
        return 0

    try:
        service = build_service(get_settings())
        result = service.geocode_text(args.address)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except TaxiGeoError as exc:
        print(json.dumps({"error": str(exc), "code": exc.code}, ensure_ascii=False))
        return 1
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return 0


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
