#!/usr/bin/env python3
"""
gmaps-gpx — Short link expansion proxy

Browsers cannot follow a cross-origin redirect and read the final URL, so this
small server does it for them:

    GET /api/expand-url?url=https://maps.app.goo.gl/XXXX
    -> {"url": "https://www.google.com/maps/dir/..."}

Usage:
    python server.py                  # Start on 127.0.0.1:8080
    python server.py --port 9000      # Custom port
    python server.py --rate-limit 5   # 5 requests per client per window
"""

from __future__ import annotations
import argparse
import http.server
import json
import logging
import threading
import time
import urllib.parse
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from gpx import SOFT_NAME, SOFT_VERSION
from resolver import DEFAULT_TIMEOUT, SHORT_LINK_DOMAINS, ResolutionError, expand_url

logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = [
    "http://localhost:8000",
    "http://localhost:3000",
    "http://127.0.0.1:8000",
    "https://storage.googleapis.com",
]
MAPS_DOMAINS = ("www.google.com", "google.com", "maps.google.com")

RATE_LIMIT_WINDOW = 60.0
RATE_LIMIT_MAX_REQUESTS = 20
RATE_LIMIT_MAX_ENTRIES = 10000
MAX_URL_LENGTH = 500


# ─────────────────────────────────────────────────────────────
# Rate limiting
# ─────────────────────────────────────────────────────────────

@dataclass
class _Window:
    start: float
    count: int


class RateLimiter:
    """
    Fixed-window request counter per client address.

    The table is pruned of expired windows only when it grows past
    ``max_entries``, on the next insert.
    """

    def __init__(self, max_requests: int = RATE_LIMIT_MAX_REQUESTS,
                 window: float = RATE_LIMIT_WINDOW,
                 max_entries: int = RATE_LIMIT_MAX_ENTRIES,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window = window
        self.max_entries = max_entries
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._windows)

    def _prune(self, now: float):
        expired = [k for k, w in self._windows.items() if now - w.start > self.window]
        for key in expired:
            del self._windows[key]

    def is_limited(self, client: str) -> bool:
        """Count one request from ``client``; True if it is over the limit."""
        now = self._clock()
        with self._lock:
            record = self._windows.get(client)
            if record is None or now - record.start > self.window:
                if len(self._windows) > self.max_entries:
                    self._prune(now)
                self._windows[client] = _Window(now, 1)
                return False
            if record.count >= self.max_requests:
                return True
            record.count += 1
            return False


# ─────────────────────────────────────────────────────────────
# URL validation
# ─────────────────────────────────────────────────────────────

def is_valid_short_url(url: str) -> bool:
    """https on an exact short link domain, with a short code in the path."""
    try:
        parsed = urllib.parse.urlsplit(url)
    except ValueError:
        return False
    if parsed.scheme != "https":
        return False
    if (parsed.hostname or "").lower() not in SHORT_LINK_DOMAINS:
        return False
    return parsed.path not in ("", "/")


def is_valid_maps_url(url: str) -> bool:
    """https on an exact Google domain, under /maps."""
    try:
        parsed = urllib.parse.urlsplit(url)
    except ValueError:
        return False
    if parsed.scheme != "https":
        return False
    if (parsed.hostname or "").lower() not in MAPS_DOMAINS:
        return False
    return parsed.path.startswith("/maps")


# ─────────────────────────────────────────────────────────────
# HTTP handler
# ─────────────────────────────────────────────────────────────

class ExpandUrlHandler(http.server.BaseHTTPRequestHandler):

    server_version = f"{SOFT_NAME}/{SOFT_VERSION}"

    def _cors_headers(self):
        origin = self.headers.get("Origin")
        if origin and origin in ALLOWED_ORIGINS:
            self.send_header("Access-Control-Allow-Origin", origin)
        elif not origin:
            self.send_header("Access-Control-Allow-Origin", ALLOWED_ORIGINS[0])
        self.send_header("Access-Control-Allow-Methods", "GET, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Max-Age", "86400")

    def _send_json(self, data, status=200):
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self._cors_headers()
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def client_address_for_limit(self) -> str:
        forwarded = self.headers.get("X-Forwarded-For", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
        return self.headers.get("X-Real-IP") or self.client_address[0] or "unknown"

    def do_OPTIONS(self):
        self.send_response(204)
        self._cors_headers()
        self.end_headers()

    def do_GET(self):
        parsed = urllib.parse.urlsplit(self.path)
        if parsed.path == "/api/expand-url":
            self._handle_expand_url(parsed)
        else:
            self._send_json({"error": "Not found"}, 404)

    def _method_not_allowed(self):
        self._send_json({"error": "Method not allowed"}, 405)

    do_HEAD = do_POST = do_PUT = do_DELETE = do_PATCH = _method_not_allowed

    def _handle_expand_url(self, parsed):
        if self.server.rate_limiter.is_limited(self.client_address_for_limit()):
            self._send_json({"error": "Too many requests. Please try again later."}, 429)
            return

        short_url = urllib.parse.parse_qs(parsed.query).get("url", [None])[0]
        if not short_url:
            self._send_json({"error": "Missing url parameter"}, 400)
            return
        if len(short_url) > MAX_URL_LENGTH:
            self._send_json({"error": "URL too long"}, 400)
            return
        if not is_valid_short_url(short_url):
            self._send_json({"error": "Only Google Maps shortened URLs "
                                      "(goo.gl, maps.app.goo.gl) are supported"}, 400)
            return

        try:
            expanded = expand_url(short_url, self.server.resolve_timeout)
        except ResolutionError as e:
            logger.error("Error expanding URL: %s", e)
            self._send_json({"error": "Failed to expand URL"}, 500)
            return

        if not is_valid_maps_url(expanded):
            self._send_json({"error": "URL did not resolve to a valid Google Maps URL"}, 400)
            return

        self._send_json({"url": expanded})

    def log_message(self, format, *args):
        if "/api/" in str(args[0]):
            super().log_message(format, *args)


class ExpandUrlServer(http.server.ThreadingHTTPServer):
    """Threaded HTTP server owning the rate-limit table."""

    def __init__(self, server_address, rate_limiter: Optional[RateLimiter] = None,
                 resolve_timeout: float = DEFAULT_TIMEOUT):
        super().__init__(server_address, ExpandUrlHandler)
        self.rate_limiter = rate_limiter or RateLimiter()
        self.resolve_timeout = resolve_timeout


def main():
    parser = argparse.ArgumentParser(description=f"{SOFT_NAME} v{SOFT_VERSION} — Short link expansion proxy")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--rate-limit", type=int, default=RATE_LIMIT_MAX_REQUESTS,
                        help="Requests per client per window")
    parser.add_argument("--window", type=float, default=RATE_LIMIT_WINDOW,
                        help="Rate limit window in seconds")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                        help="Short link resolution timeout in seconds")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    server = ExpandUrlServer((args.host, args.port),
                             RateLimiter(args.rate_limit, args.window),
                             args.timeout)
    print(f"{SOFT_NAME} proxy listening on http://{args.host}:{args.port}/api/expand-url  (Ctrl+C to stop)")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
