"""Follow shared map short-links (maps.app.goo.gl etc.) to their final URL."""

import logging
from typing import Optional
from urllib.parse import parse_qs, urljoin, urlsplit

import requests

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5
DEFAULT_TIMEOUT = 5.0
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


def unwrap_sorry_page(url: str) -> str:
    """Google's anti-bot interstitial carries the real target in ``continue``."""
    parts = urlsplit(url)
    if "google." in (parts.hostname or "") and parts.path.startswith("/sorry"):
        target = parse_qs(parts.query).get("continue")
        if target and target[0]:
            logger.debug("Unwrapped 'continue' parameter: %s", target[0])
            return target[0]
    return url


def _follow(session: requests.Session, url: str, timeout: float) -> str:
    try:
        response = session.get(
            url,
            timeout=timeout,
            headers={"User-Agent": BROWSER_USER_AGENT},
            allow_redirects=True,
            stream=True,
        )
    except requests.RequestException as exc:
        failed = getattr(exc, "response", None)
        location = failed.headers.get("Location") if failed is not None else None
        if location and 300 <= failed.status_code < 400:
            logger.debug("Using redirect location after %s: %s", exc.__class__.__name__, location)
            return urljoin(url, location)
        logger.warning("Could not expand link, using the original URL: %s", exc)
        return url

    final_url = response.url or url
    response.close()
    logger.debug("Final URL after redirects: %s", final_url)
    return final_url


def expand_link(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> str:
    """
    Return the URL *url* finally redirects to.

    Falls back to the last ``Location`` header when redirects run out, and to
    *url* itself on any other transport error. Without an injected *session*
    a short-lived one is opened and closed per call.
    """
    if session is not None:
        return unwrap_sorry_page(_follow(session, url, timeout))

    with requests.Session() as own_session:
        own_session.max_redirects = MAX_REDIRECTS
        return unwrap_sorry_page(_follow(own_session, url, timeout))
