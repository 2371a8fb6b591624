"""
gmaps-gpx — Short link resolution

Follows the HTTP redirects of a maps.app.goo.gl / goo.gl link by hand so the
final Location can be reported without downloading the target page.
"""

from __future__ import annotations
import logging
import urllib.error
import urllib.parse
import urllib.request

logger = logging.getLogger(__name__)

SHORT_LINK_DOMAINS = ("goo.gl", "maps.app.goo.gl")
REDIRECT_CODES = (301, 302, 303, 307, 308)
MAX_REDIRECTS = 5
DEFAULT_TIMEOUT = 10.0
USER_AGENT = "gmaps-gpx/1.0 (URL resolver)"


class ResolutionError(Exception):
    """A short link could not be expanded."""


class _NoRedirect(urllib.request.HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):
        return None  # surface 3xx as HTTPError so Location can be read


def is_short_url(url: str) -> bool:
    host = (urllib.parse.urlsplit(url).hostname or "").lower()
    return host in SHORT_LINK_DOMAINS


def _next_location(opener, url: str, timeout: float):
    """Location of the redirect answered for ``url``, or None if it did not redirect."""
    try:
        req = urllib.request.Request(url, method="HEAD", headers={"User-Agent": USER_AGENT})
        resp = opener.open(req, timeout=timeout)
    except urllib.error.HTTPError as e:
        try:
            if e.code not in REDIRECT_CODES:
                raise ResolutionError(f"{url} answered HTTP {e.code}") from e
            location = e.headers.get("Location", "")
        finally:
            e.close()
        if not location:
            raise ResolutionError(f"{url} redirected without a Location header") from e
        return urllib.parse.urljoin(url, location)
    except (urllib.error.URLError, OSError) as e:
        raise ResolutionError(f"could not reach {url}: {e}") from e
    except ValueError as e:
        # http.client.InvalidURL: spaces or control characters in the URL
        raise ResolutionError(f"invalid URL {url!r}: {e}") from e
    resp.close()
    return None


def expand_url(url: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """
    Return the URL a short link finally redirects to.

    Raises ResolutionError if the link does not redirect at all, on any
    network or HTTP failure, or after MAX_REDIRECTS hops. Never retries.
    """
    opener = urllib.request.build_opener(_NoRedirect)
    current = url
    for hop in range(MAX_REDIRECTS + 1):
        location = _next_location(opener, current, timeout)
        if location is None:
            if hop == 0:
                raise ResolutionError(f"{url} did not redirect")
            return current
        logger.debug("redirect %d: %s", hop + 1, location)
        current = location
    raise ResolutionError(f"{url} exceeded {MAX_REDIRECTS} redirects")


def resolve(url: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Expand ``url`` if it is a known short link, otherwise return it as is."""
    if is_short_url(url):
        return expand_url(url, timeout)
    return url
