"""
Runtime configuration for the trainer card generator.

Environment Variables:
  ACCESS_TOKEN (optional) : Personal token. Falls back to GITHUB_TOKEN.
  USER_NAME               : Default GitHub login for the command line.
  DEBUG                   : '1' => print debug lines.
  PROFILE_ENDPOINT        : GitHub users endpoint. Default https://api.github.com/users
  EVENTS_ENDPOINT         : Endpoint used for public events. Defaults to PROFILE_ENDPOINT,
                            point it at the relay to go through the same-origin proxy.
  SPECIES_ENDPOINT        : PokeAPI pokemon endpoint.
  REQUEST_TIMEOUT         : Seconds before a single request gives up. Default 20.
  FONT_PATH (optional)    : TrueType font used for PNG export.
  OUTPUT_DIR              : Where the command line writes cards. Default current dir.
"""

from __future__ import annotations
import os
import sys
from typing import Dict, Optional

ACCESS_TOKEN = os.environ.get("ACCESS_TOKEN") or os.environ.get("GITHUB_TOKEN")
USER_NAME = os.environ.get("USER_NAME", "")
DEBUG = os.environ.get("DEBUG", "0") == "1"

PROFILE_ENDPOINT = os.environ.get("PROFILE_ENDPOINT", "https://api.github.com/users").rstrip("/")
EVENTS_ENDPOINT = os.environ.get("EVENTS_ENDPOINT", PROFILE_ENDPOINT).rstrip("/")
SPECIES_ENDPOINT = os.environ.get("SPECIES_ENDPOINT", "https://pokeapi.co/api/v2/pokemon").rstrip("/")

try:
    REQUEST_TIMEOUT = float(os.environ.get("REQUEST_TIMEOUT", "20"))
except ValueError:
    print("Invalid REQUEST_TIMEOUT. Using default 20 seconds.", file=sys.stderr)
    REQUEST_TIMEOUT = 20.0

FONT_PATH = os.environ.get("FONT_PATH") or None
OUTPUT_DIR = os.environ.get("OUTPUT_DIR", ".")

USER_AGENT = "github-trainer-card"


def github_headers(token: Optional[str] = None) -> Dict[str, str]:
    headers = {
        "User-Agent": USER_AGENT,
        "Accept": "application/vnd.github+json",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def debug(msg: str):
    if DEBUG:
        print(f"[DEBUG] {msg}")


def warn(msg: str):
    print(f"[WARN] {msg}", file=sys.stderr)
