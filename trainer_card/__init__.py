"""GitHub trainer cards: a GitHub profile paired with a deterministic partner Pokémon."""

from .composer import CardComposer
from .errors import (
    ActivityFetchFailure,
    CardError,
    ExportFailure,
    InlineFailure,
    Outcome,
    RateLimited,
    UpstreamError,
)
from .export import export_filename, export_png, save_png
from .identity import derive_species_id
from .render import render_card
from .themes import DEFAULT_THEME, Theme, resolve_theme

__version__ = "0.1.0"
