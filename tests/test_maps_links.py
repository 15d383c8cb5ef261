import requests

from fakes import DummyResponse, DummySession
from taxigeo.vendors import maps_links
from taxigeo.vendors.maps_links import BROWSER_USER_AGENT, MAX_REDIRECTS, expand_link, unwrap_sorry_page

SHORT = "https://maps.app.goo.gl/AbCdEf123"
FULL = "https://www.google.com/maps/place/Forum+Tepic/@21.4921,-104.8658,17z"


def test_expand_link_follows_redirects():
    response = DummyResponse(url=FULL)
    session = DummySession(response)

    assert expand_link(SHORT, timeout=2.0, session=session) == FULL

    url, _, timeout, headers, kwargs = session.calls[0]
    assert url == SHORT
    assert timeout == 2.0
    assert headers["User-Agent"] == BROWSER_USER_AGENT
    assert kwargs["allow_redirects"] is True
    assert response.closed


def test_expand_link_uses_last_location_when_redirects_run_out():
    last = DummyResponse(status_code=302, headers={"Location": "/maps/@21.5,-104.9,15z"})
    session = DummySession(error=requests.TooManyRedirects("Exceeded 5 redirects.", response=last))

    assert expand_link(SHORT, session=session) == "https://maps.app.goo.gl/maps/@21.5,-104.9,15z"


def test_expand_link_keeps_original_on_network_error(caplog):
    session = DummySession(error=requests.ConnectionError("unreachable"))
    with caplog.at_level("WARNING"):
        assert expand_link(SHORT, session=session) == SHORT
    assert "Could not expand link" in " ".join(caplog.messages)


def test_expand_link_unwraps_sorry_page():
    sorry = "https://www.google.com/sorry/index?continue=https://www.google.com/maps/place/Forum%2BTepic&q=abc"
    session = DummySession(DummyResponse(url=sorry))

    assert expand_link(SHORT, session=session) == "https://www.google.com/maps/place/Forum+Tepic"


def test_unwrap_sorry_page_ignores_other_urls():
    assert unwrap_sorry_page(FULL) == FULL
    assert unwrap_sorry_page("https://example.com/sorry?continue=https://evil.test") == (
        "https://example.com/sorry?continue=https://evil.test"
    )


def test_expand_link_closes_its_own_session(monkeypatch):
    opened = []

    class OwnedSession(DummySession):
        def __init__(self):
            super().__init__(DummyResponse(url=FULL))
            self.max_redirects = None
            self.closed = False
            opened.append(self)

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            self.closed = True

    monkeypatch.setattr(maps_links.requests, "Session", OwnedSession)

    assert expand_link(SHORT) == FULL
    assert len(opened) == 1
    assert opened[0].max_redirects == MAX_REDIRECTS
    assert opened[0].closed
