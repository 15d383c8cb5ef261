import pytest

from fakes import DummyResponse, DummySession
from taxigeo.core.errors import ProviderTransportError, TransportErrorKind
from taxigeo.core.models import Coordinate, Provenance
from taxigeo.vendors.opencage import OpenCageClient, parse_components

FORUM = {
    "formatted": "Forum Tepic, Blvrd Luis Donaldo Colosio 680, 63175 Tepic, Nayarit, México",
    "confidence": 9,
    "geometry": {"lat": 21.4921, "lng": -104.8658},
    "components": {
        "_category": "commerce",
        "_type": "mall",
        "city": "Tepic",
        "road": "Blvrd Luis Donaldo Colosio",
        "house_number": "680",
        "ISO_3166-1_alpha-2": "MX",
        "currency": {"iso_code": "MXN"},
    },
}
CDMX = {
    "formatted": "Avenida Insurgentes, Ciudad de México, México",
    "confidence": 10,
    "geometry": {"lat": 19.4326, "lng": -99.1332},
    "components": {"city": "Ciudad de México"},
}
XALISCO = {
    "formatted": "Xalisco, Nayarit, México",
    "confidence": 5,
    "geometry": {"lat": 21.4444, "lng": -104.9000},
    "components": {"town": "Xalisco"},
}


def make_client(response):
    session = DummySession(response)
    client = OpenCageClient("oc-key", proximity=Coordinate(21.4925, -104.8532), timeout=4.0, session=session)
    return client, session


def test_parse_components_flattens_and_strips_underscores():
    assert parse_components(FORUM["components"]) == {
        "category": "commerce",
        "type": "mall",
        "city": "Tepic",
        "road": "Blvrd Luis Donaldo Colosio",
        "house_number": "680",
        "ISO_3166-1_alpha-2": "MX",
    }
    assert parse_components(None) == {}


def test_search_returns_first_result_inside_bounds(bounds):
    client, session = make_client(DummyResponse(payload={"results": [CDMX, FORUM, XALISCO]}))

    candidate = client.search("Forum Tepic", bounds)

    assert candidate.provenance is Provenance.PROVIDER_A
    assert candidate.coordinate == Coordinate(21.4921, -104.8658)
    assert candidate.raw_confidence == 9
    assert candidate.components["city"] == "Tepic"
    assert candidate.alternatives == (CDMX["formatted"], XALISCO["formatted"])


def test_search_request_parameters(bounds):
    client, session = make_client(DummyResponse(payload={"results": []}))
    client.search("Forum Tepic", bounds)

    url, params, timeout, headers, _ = session.calls[0]
    assert url == "https://api.opencagedata.com/geocode/v1/json"
    assert params["q"] == "Forum Tepic"
    assert params["key"] == "oc-key"
    assert params["language"] == "es"
    assert params["countrycode"] == "mx"
    assert params["limit"] == 5
    assert params["bounds"] == "-105.8,20.6,-103.7,23.1"
    assert params["proximity"] == "21.4925,-104.8532"
    assert timeout == 4.0
    assert headers["User-Agent"] == "TaxiBot-API/1.1"


@pytest.mark.parametrize("payload", [{"results": []}, {"results": [CDMX]}, {}])
def test_search_without_usable_result(bounds, payload):
    client, _ = make_client(DummyResponse(payload=payload))
    assert client.search("Insurgentes", bounds) is None


def test_search_propagates_transport_errors(bounds):
    client, _ = make_client(DummyResponse(status_code=403))
    with pytest.raises(ProviderTransportError) as excinfo:
        client.search("Forum Tepic", bounds)
    assert excinfo.value.transport_kind is TransportErrorKind.AUTH
    assert excinfo.value.provider == "opencage"


def test_reverse_keeps_queried_point():
    client, session = make_client(DummyResponse(payload={"results": [XALISCO]}))
    point = Coordinate(21.445, -104.901)

    candidate = client.reverse(point)

    assert candidate.provenance is Provenance.REVERSE_PROVIDER_A
    assert candidate.coordinate == point
    assert candidate.formatted_address == XALISCO["formatted"]
    assert candidate.components == {"town": "Xalisco"}
    _, params, _, _, _ = session.calls[0]
    assert params["q"] == "21.445,-104.901"
    assert params["limit"] == 1
    assert "bounds" not in params


def test_reverse_without_results():
    client, _ = make_client(DummyResponse(payload={"results": []}))
    assert client.reverse(Coordinate(21.5, -104.9)) is None
