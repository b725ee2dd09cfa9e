"""Username to species id.

The id is a pure function of the exact string passed in: no case folding and
no whitespace handling (callers trim). Character codes are UTF-16 code units so
the same username lands on the same species as the web card.
"""

from __future__ import annotations
from typing import Iterator

SPECIES_COUNT = 151
SUM_MODULUS = 10000


def _code_units(text: str) -> Iterator[int]:
    for ch in text:
        cp = ord(ch)
        if cp > 0xFFFF:
            cp -= 0x10000
            yield 0xD800 + (cp >> 10)
            yield 0xDC00 + (cp & 0x3FF)
        else:
            yield cp


def derive_species_id(username: str) -> int:
    """Return a stable id in [1, 151] for ``username``; "" maps to 1."""
    total = 0
    for unit in _code_units(username):
        total = (total + unit) % SUM_MODULUS
    return (total % SPECIES_COUNT) + 1
