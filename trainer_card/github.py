"""GitHub profile and public activity."""

from __future__ import annotations
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from . import config
from .config import debug
from .errors import ActivityFetchFailure, RateLimited, UpstreamError
from .models import Profile


def user_url(endpoint: str, username: str) -> str:
    return f"{endpoint}/{quote(username, safe='')}"


def events_url(endpoint: str, username: str) -> str:
    return f"{user_url(endpoint, username)}/events/public"


def mentions_rate_limit(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    return "rate limit" in str(payload.get("message") or "").lower()


def _json_or_none(r) -> Any:
    try:
        return r.json()
    except ValueError:
        return None


def _raise_for_profile(r):
    body = _json_or_none(r)
    if r.status_code == 429 and isinstance(body, dict) and body.get("error") == "rate_limited":
        raise RateLimited(body.get("message") or "GitHub rate limit exceeded", status=429)
    if r.status_code == 403 and mentions_rate_limit(body):
        raise RateLimited(body.get("message") or "GitHub rate limit exceeded", status=403)
    if r.status_code == 404:
        raise UpstreamError("GitHub user not found", status=404)
    raise UpstreamError(f"Failed to load GitHub user ({r.status_code})", status=r.status_code)


def fetch_profile(
    username: str,
    *,
    session=None,
    endpoint: str = config.PROFILE_ENDPOINT,
    token: Optional[str] = config.ACCESS_TOKEN,
    timeout: float = config.REQUEST_TIMEOUT,
) -> Profile:
    """Fetch one GitHub profile. Any non-2xx answer raises UpstreamError."""
    http = session or requests
    url = user_url(endpoint, username)
    try:
        r = http.get(url, headers=config.github_headers(token), timeout=timeout)
    except requests.RequestException as e:
        raise UpstreamError(f"Failed to load GitHub user: {e}") from e
    debug(f"profile {username}: {r.status_code}")
    if not 200 <= r.status_code < 300:
        _raise_for_profile(r)
    data = _json_or_none(r)
    if not isinstance(data, dict):
        raise UpstreamError("Failed to load GitHub user: malformed response", status=r.status_code)
    try:
        return Profile.from_api(data)
    except (TypeError, ValueError, OverflowError) as e:
        raise UpstreamError(f"Failed to load GitHub user: {e}", status=r.status_code) from e


def summarize_push_commits(events: List[Dict[str, Any]]) -> int:
    """Sum commit-array lengths over every PushEvent in an event page."""
    if not isinstance(events, list):
        raise ActivityFetchFailure("events payload is not a list")
    commits = 0
    for ev in events:
        if not isinstance(ev, dict) or ev.get("type") != "PushEvent":
            continue
        payload = ev.get("payload") or {}
        pushed = payload.get("commits") if isinstance(payload, dict) else None
        commits += len(pushed) if isinstance(pushed, list) else 0
    return commits


def request_activity_summary(
    username: str,
    *,
    session=None,
    endpoint: str = config.EVENTS_ENDPOINT,
    token: Optional[str] = config.ACCESS_TOKEN,
    timeout: float = config.REQUEST_TIMEOUT,
) -> int:
    """Like fetch_activity_summary but raises ActivityFetchFailure instead of returning None."""
    http = session or requests
    try:
        r = http.get(events_url(endpoint, username), headers=config.github_headers(token), timeout=timeout)
    except requests.RequestException as e:
        raise ActivityFetchFailure(f"events request failed: {e}") from e
    if not 200 <= r.status_code < 300:
        body = _json_or_none(r)
        if r.status_code == 429 or (r.status_code == 403 and mentions_rate_limit(body)):
            raise ActivityFetchFailure(f"events rate limited ({r.status_code})")
        raise ActivityFetchFailure(f"events request returned {r.status_code}")
    events = _json_or_none(r)
    return summarize_push_commits(events)


def fetch_activity_summary(username: str, **kwargs) -> Optional[int]:
    """Commit count from the latest public event page, or None on any failure."""
    try:
        return request_activity_summary(username, **kwargs)
    except ActivityFetchFailure as e:
        debug(f"activity {username}: {e}")
        return None
