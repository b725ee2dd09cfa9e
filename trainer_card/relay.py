"""Same-origin relay for the public events request.

Forwards GitHub's answer as-is, except that a 403 caused by rate limiting is
turned into a 429 with a small JSON body so callers can back off.
"""

from __future__ import annotations
import json
import re
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import unquote

import requests

from . import config
from .github import events_url, mentions_rate_limit

UPSTREAM = "https://api.github.com/users"
ROUTE = re.compile(r'^/api/github/events/([^/]+)/?$')

REASONS = {
    200: "OK",
    304: "Not Modified",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


@dataclass
class RelayResponse:
    status: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)

    def json(self):
        return json.loads(self.body.decode("utf-8"))


def _json_response(status: int, payload) -> RelayResponse:
    return RelayResponse(
        status=status,
        body=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json", "Cache-Control": "no-store"},
    )


def relay_public_events(
    username: str,
    *,
    session=None,
    token: Optional[str] = config.ACCESS_TOKEN,
    upstream: str = UPSTREAM,
    timeout: float = config.REQUEST_TIMEOUT,
) -> RelayResponse:
    http = session or requests
    r = http.get(events_url(upstream, username), headers=config.github_headers(token), timeout=timeout)
    body = r.content or b""

    if r.status_code == 403:
        try:
            payload = json.loads(body.decode("utf-8"))
        except ValueError:
            payload = None
        if mentions_rate_limit(payload):
            return _json_response(429, {
                "error": "rate_limited",
                "message": payload.get("message") or "Rate limit exceeded",
            })

    return RelayResponse(
        status=r.status_code,
        body=body,
        headers={
            "Content-Type": r.headers.get("content-type") or "application/json",
            "Cache-Control": "no-store",
        },
    )


def _status_line(status: int) -> str:
    return f"{status} {REASONS.get(status, 'Unknown')}"


def relay_app(environ, start_response, session=None):
    """WSGI entry point: GET /api/github/events/<username>."""
    m = ROUTE.match(environ.get("PATH_INFO", ""))
    if m is None:
        resp = _json_response(404, {"error": "not_found"})
    elif environ.get("REQUEST_METHOD", "GET") != "GET":
        resp = _json_response(405, {"error": "method_not_allowed"})
    else:
        try:
            resp = relay_public_events(unquote(m.group(1)), session=session)
        except requests.RequestException as e:
            resp = _json_response(502, {"error": "upstream_unreachable", "message": str(e)})
    start_response(_status_line(resp.status), list(resp.headers.items()))
    return [resp.body]
