"""Creature data from PokeAPI."""

from __future__ import annotations

import requests

from . import config
from .config import debug
from .errors import UpstreamError
from .models import Species

NOT_LOADED = "Failed to load Pokémon"


def fetch_species(
    species_id: int,
    *,
    session=None,
    endpoint: str = config.SPECIES_ENDPOINT,
    timeout: float = config.REQUEST_TIMEOUT,
) -> Species:
    http = session or requests
    try:
        r = http.get(f"{endpoint}/{int(species_id)}", timeout=timeout)
    except requests.RequestException as e:
        raise UpstreamError(f"{NOT_LOADED}: {e}") from e
    debug(f"species {species_id}: {r.status_code}")
    if not 200 <= r.status_code < 300:
        raise UpstreamError(NOT_LOADED, status=r.status_code)
    try:
        data = r.json()
    except ValueError as e:
        raise UpstreamError(f"{NOT_LOADED}: malformed response", status=r.status_code) from e
    if not isinstance(data, dict):
        raise UpstreamError(f"{NOT_LOADED}: malformed response", status=r.status_code)
    try:
        return Species.from_api(species_id, data)
    except (TypeError, ValueError, AttributeError) as e:
        raise UpstreamError(f"{NOT_LOADED}: {e}", status=r.status_code) from e
