import pytest

from fakes import DummyResponse, DummySession
from taxigeo.core.errors import ProviderTransportError, TransportErrorKind
from taxigeo.core.models import Coordinate, Provenance
from taxigeo.vendors.mapbox import MapboxClient, parse_context

FORUM = {
    "place_type": ["poi"],
    "text": "Forum Tepic",
    "place_name": "Forum Tepic, Blvd Luis Donaldo Colosio 680, 63175 Tepic, Nayarit, México",
    "relevance": 0.95,
    "center": [-104.8658, 21.4921],
    "context": [
        {"id": "neighborhood.11", "text": "Subcentro Urbano"},
        {"id": "postcode.12", "text": "63175"},
        {"id": "place.13", "text": "Tepic"},
        {"id": "region.14", "text": "Nayarit"},
        {"id": "country.15", "text": "México"},
    ],
}
GUADALAJARA = {
    "place_type": ["place"],
    "text": "Guadalajara",
    "place_name": "Guadalajara, Jalisco, México",
    "relevance": 1,
    "center": [-103.3496, 20.6597],
    "context": [],
}


def make_client(response):
    session = DummySession(response)
    client = MapboxClient("mb-token", proximity=Coordinate(21.4925, -104.8532), timeout=4.0, session=session)
    return client, session


def test_parse_context_maps_prefixes():
    assert parse_context(FORUM) == {
        "suburb": "Subcentro Urbano",
        "postcode": "63175",
        "city": "Tepic",
        "state": "Nayarit",
        "country": "México",
        "category": "poi",
    }


def test_parse_context_house_number():
    feature = {
        "place_type": ["address"],
        "text": "Avenida Insurgentes",
        "address": "1072",
        "context": [{"id": "street.1", "text": "Avenida Insurgentes"}, {"id": "locality.2", "text": "Lagos del Country"}],
    }
    components = parse_context(feature)
    assert components["house_number"] == "1072"
    assert components["road"] == "Avenida Insurgentes"
    assert components["locality"] == "Lagos del Country"
    assert components["category"] == "address"

    nested = {"context": [{"id": "address.9", "text": "45 Calle Zacatecas"}]}
    assert parse_context(nested) == {"house_number": "45"}


def test_parse_context_place_feature_is_its_own_city():
    feature = {"place_type": ["place"], "text": "Xalisco", "context": [{"id": "region.1", "text": "Nayarit"}]}
    assert parse_context(feature)["city"] == "Xalisco"


def test_search_skips_out_of_bounds_features(bounds):
    client, _ = make_client(DummyResponse(payload={"features": [GUADALAJARA, FORUM]}))

    candidate = client.search("Forum Tepic", bounds)

    assert candidate.provenance is Provenance.PROVIDER_B
    assert candidate.coordinate == Coordinate(21.4921, -104.8658)
    assert candidate.raw_confidence == 0.95
    assert candidate.components["city"] == "Tepic"
    assert candidate.alternatives == ("Guadalajara, Jalisco, México",)


def test_search_request(bounds):
    client, session = make_client(DummyResponse(payload={"features": []}))
    assert client.search("Forum Tepic/Centro", bounds) is None

    url, params, timeout, headers, _ = session.calls[0]
    assert url == "https://api.mapbox.com/geocoding/v5/mapbox.places/Forum%20Tepic%2FCentro.json"
    assert params["access_token"] == "mb-token"
    assert params["bbox"] == "-105.8,20.6,-103.7,23.1"
    assert params["proximity"] == "-104.8532,21.4925"
    assert params["country"] == "mx"
    assert params["limit"] == 5
    assert timeout == 4.0


def test_search_rate_limited(bounds):
    client, _ = make_client(DummyResponse(status_code=429))
    with pytest.raises(ProviderTransportError) as excinfo:
        client.search("Forum Tepic", bounds)
    assert excinfo.value.transport_kind is TransportErrorKind.RATE_LIMIT
