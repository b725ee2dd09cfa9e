"""Type name to card gradient.

Colors follow the Tailwind palette. Only the primary type drives the card
theme; secondary types only tint their own pill.
"""

from __future__ import annotations
from typing import Dict, Iterable, NamedTuple, Optional

from .models import SpeciesType


class Theme(NamedTuple):
    start: str
    end: str


TYPE_THEME: Dict[str, Theme] = {
    "normal": Theme("#e7e5e4", "#d6d3d1"),    # stone-200 / stone-300
    "fire": Theme("#f97316", "#ef4444"),      # orange-500 / red-500
    "water": Theme("#0ea5e9", "#2563eb"),     # sky-500 / blue-600
    "electric": Theme("#facc15", "#f59e0b"),  # yellow-400 / amber-500
    "grass": Theme("#10b981", "#16a34a"),     # emerald-500 / green-600
    "ice": Theme("#67e8f9", "#7dd3fc"),       # cyan-300 / sky-300
    "fighting": Theme("#e11d48", "#c2410c"),  # rose-600 / orange-700
    "poison": Theme("#c026d3", "#7e22ce"),    # fuchsia-600 / purple-700
    "ground": Theme("#b45309", "#854d0e"),    # amber-700 / yellow-800
    "flying": Theme("#818cf8", "#38bdf8"),    # indigo-400 / sky-400
    "psychic": Theme("#ec4899", "#9333ea"),   # pink-500 / purple-600
    "bug": Theme("#84cc16", "#16a34a"),       # lime-500 / green-600
    "rock": Theme("#854d0e", "#44403c"),      # yellow-800 / stone-700
    "ghost": Theme("#1f2937", "#111827"),     # gray-800 / gray-900
    "dragon": Theme("#4338ca", "#1e40af"),    # indigo-700 / blue-800
    "dark": Theme("#171717", "#262626"),      # neutral-900 / neutral-800
    "steel": Theme("#a1a1aa", "#737373"),     # zinc-400 / neutral-500
    "fairy": Theme("#fb7185", "#ec4899"),     # rose-400 / pink-500
}

DEFAULT_THEME = Theme("#f1f5f9", "#e2e8f0")        # slate-100 / slate-200
STAT_DEFAULT_THEME = Theme("#334155", "#334155")   # slate-700
PILL_DEFAULT_THEME = Theme("#94a3b8", "#64748b")   # slate-400 / slate-500


def resolve_theme(type_name: Optional[str] = None, default: Theme = DEFAULT_THEME) -> Theme:
    if not type_name:
        return default
    return TYPE_THEME.get(type_name, default)


def primary_type(types: Iterable[SpeciesType]) -> Optional[str]:
    ordered = sorted(types, key=lambda t: t.slot)
    return ordered[0].name if ordered else None
