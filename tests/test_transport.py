import socket

import pytest
import requests
from urllib3.exceptions import MaxRetryError, NameResolutionError

from fakes import DummyResponse, DummySession
from taxigeo.core.errors import ProviderTransportError, TransportErrorKind
from taxigeo.vendors import transport


def http_error(status):
    return requests.HTTPError(f"{status}", response=DummyResponse(status))


@pytest.mark.parametrize(
    "exc, kind",
    [
        (http_error(401), TransportErrorKind.AUTH),
        (http_error(403), TransportErrorKind.AUTH),
        (http_error(429), TransportErrorKind.RATE_LIMIT),
        (http_error(500), TransportErrorKind.HTTP),
        (requests.Timeout("slow"), TransportErrorKind.TIMEOUT),
        (requests.ConnectTimeout("slow"), TransportErrorKind.TIMEOUT),
        (requests.ConnectionError("refused"), TransportErrorKind.OTHER),
    ],
)
def test_classify_error(exc, kind):
    assert transport.classify_error(exc) is kind


def test_classify_dns_failure():
    reason = NameResolutionError("api.opencagedata.com", None, socket.gaierror("Name or service not known"))
    exc = requests.ConnectionError(MaxRetryError(None, "/geocode/v1/json", reason=reason))
    assert transport.classify_error(exc) is TransportErrorKind.DNS


def test_get_json_sends_user_agent_and_timeout():
    session = DummySession(DummyResponse(payload={"results": []}))

    payload = transport.get_json(session, "opencage", "https://example.test", {"q": "x"}, 4.0)

    assert payload == {"results": []}
    url, params, timeout, headers, _ = session.calls[0]
    assert params == {"q": "x"}
    assert timeout == 4.0
    assert headers["User-Agent"] == "TaxiBot-API/1.1"


def test_get_json_http_error_keeps_status():
    session = DummySession(DummyResponse(status_code=401))
    with pytest.raises(ProviderTransportError) as excinfo:
        transport.get_json(session, "mapbox", "https://example.test", {})

    assert excinfo.value.provider == "mapbox"
    assert excinfo.value.transport_kind is TransportErrorKind.AUTH
    assert excinfo.value.status_code == 401


def test_get_json_timeout():
    session = DummySession(error=requests.ReadTimeout("read timed out"))
    with pytest.raises(ProviderTransportError) as excinfo:
        transport.get_json(session, "opencage", "https://example.test", {})
    assert excinfo.value.transport_kind is TransportErrorKind.TIMEOUT
    assert excinfo.value.status_code is None


@pytest.mark.parametrize(
    "response",
    [
        DummyResponse(json_error=ValueError("Expecting value")),
        DummyResponse(payload=["not", "a", "dict"]),
    ],
)
def test_get_json_rejects_bad_payloads(response):
    with pytest.raises(ProviderTransportError) as excinfo:
        transport.get_json(DummySession(response), "opencage", "https://example.test", {})
    assert excinfo.value.transport_kind is TransportErrorKind.OTHER
