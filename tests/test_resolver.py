import http.client
import urllib.error
import urllib.request

import pytest

import resolver
from resolver import MAX_REDIRECTS, ResolutionError, expand_url, is_short_url, resolve

FULL = "https://www.google.com/maps/dir/A/B/@1,2,3z"


class FakeResponse:
    def close(self):
        pass


class FakeOpener:
    """Answers each URL with a redirect target, a plain response (None) or an exception."""

    def __init__(self, answers):
        self.answers = answers
        self.calls = []

    def open(self, req, timeout=None):
        self.calls.append((req.full_url, req.get_method(), timeout))
        answer = self.answers[req.full_url]
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            return FakeResponse()
        if isinstance(answer, int):
            raise urllib.error.HTTPError(req.full_url, answer, "Error", {}, None)
        raise urllib.error.HTTPError(req.full_url, 302, "Found", {"Location": answer}, None)


@pytest.fixture
def opener(monkeypatch):
    fake = FakeOpener({})
    monkeypatch.setattr(urllib.request, "build_opener", lambda *handlers: fake)
    return fake


@pytest.mark.parametrize("url, expected", [
    ("https://maps.app.goo.gl/abc", True),
    ("https://goo.gl/maps/xyz", True),
    ("https://MAPS.APP.GOO.GL/abc", True),
    ("https://evilgoo.gl/abc", False),
    ("https://maps.app.goo.gl.example.com/abc", False),
    ("https://www.google.com/maps/dir/A/B", False),
    ("not a url", False),
])
def test_is_short_url(url, expected):
    assert is_short_url(url) is expected


def test_expand_follows_redirect_chain(opener):
    opener.answers.update({
        "https://maps.app.goo.gl/abc": "https://goo.gl/step",
        "https://goo.gl/step": FULL,
        FULL: None,
    })
    assert expand_url("https://maps.app.goo.gl/abc", timeout=2.5) == FULL
    assert [c[0] for c in opener.calls] == ["https://maps.app.goo.gl/abc", "https://goo.gl/step", FULL]
    assert all(method == "HEAD" and timeout == 2.5 for _, method, timeout in opener.calls)


def test_expand_resolves_relative_location(opener):
    opener.answers.update({
        "https://maps.app.goo.gl/abc": "/maps/final",
        "https://maps.app.goo.gl/maps/final": None,
    })
    assert expand_url("https://maps.app.goo.gl/abc") == "https://maps.app.goo.gl/maps/final"


def test_expand_without_redirect_fails(opener):
    opener.answers["https://maps.app.goo.gl/abc"] = None
    with pytest.raises(ResolutionError, match="did not redirect"):
        expand_url("https://maps.app.goo.gl/abc")


def test_expand_http_error_fails(opener):
    opener.answers["https://maps.app.goo.gl/abc"] = 404
    with pytest.raises(ResolutionError, match="404"):
        expand_url("https://maps.app.goo.gl/abc")


def test_expand_network_error_is_not_retried(opener):
    opener.answers["https://maps.app.goo.gl/abc"] = urllib.error.URLError("timed out")
    with pytest.raises(ResolutionError) as excinfo:
        expand_url("https://maps.app.goo.gl/abc")
    assert isinstance(excinfo.value.__cause__, urllib.error.URLError)
    assert len(opener.calls) == 1


def test_expand_gives_up_after_max_redirects(opener):
    for i in range(MAX_REDIRECTS + 2):
        opener.answers[f"https://goo.gl/{i}"] = f"https://goo.gl/{i + 1}"
    with pytest.raises(ResolutionError, match="redirects"):
        expand_url("https://goo.gl/0")
    assert len(opener.calls) == MAX_REDIRECTS + 1


def test_resolve_leaves_full_urls_alone(opener):
    assert resolve(FULL) == FULL
    assert opener.calls == []


def test_resolve_expands_short_links(monkeypatch):
    monkeypatch.setattr(resolver, "expand_url", lambda url, timeout: FULL)
    assert resolve("https://maps.app.goo.gl/abc") == FULL


def test_expand_invalid_url_raises_resolution_error(opener):
    opener.answers["https://maps.app.goo.gl/ab cd"] = http.client.InvalidURL(
        "URL can't contain control characters. '/ab cd'")
    with pytest.raises(ResolutionError, match="invalid URL"):
        expand_url("https://maps.app.goo.gl/ab cd")
    assert len(opener.calls) == 1


def test_expand_invalid_url_without_stubbed_opener():
    # http.client rejects the space before any connection is attempted
    with pytest.raises(ResolutionError):
        expand_url("https://maps.app.goo.gl/ab cd", timeout=1)


class ClosingHTTPError(urllib.error.HTTPError):
    closed_count = 0

    def close(self):
        ClosingHTTPError.closed_count += 1
        super().close()


def test_redirect_response_is_closed(opener, monkeypatch):
    def open_(req, timeout=None):
        opener.calls.append(req.full_url)
        if req.full_url == FULL:
            return FakeResponse()
        raise ClosingHTTPError(req.full_url, 301, "Moved", {"Location": FULL}, None)

    monkeypatch.setattr(opener, "open", open_)
    ClosingHTTPError.closed_count = 0
    assert expand_url("https://maps.app.goo.gl/abc") == FULL
    assert ClosingHTTPError.closed_count == 1
