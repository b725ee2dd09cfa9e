"""Data model shared by the fetchers, the composer and the renderer."""

from __future__ import annotations
import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from dateutil import parser as date_parser
from dateutil import relativedelta

INLINED = "inlined"
REMOTE = "remote"


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'s' if n != 1 else ''}"


@dataclass(frozen=True)
class Profile:
    login: str
    avatar_url: Optional[str]
    public_repos: Optional[int]
    followers: Optional[int]
    created_at: Optional[datetime.datetime]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Profile":
        created_raw = data.get("created_at")
        created = date_parser.isoparse(created_raw) if created_raw else None
        return cls(
            login=data.get("login") or "",
            avatar_url=data.get("avatar_url") or None,
            public_repos=data.get("public_repos"),
            followers=data.get("followers"),
            created_at=created,
        )

    def _now(self, now: Optional[datetime.datetime]) -> datetime.datetime:
        if now is None:
            now = datetime.datetime.now(datetime.timezone.utc)
        if self.created_at is not None and self.created_at.tzinfo is None:
            return now.replace(tzinfo=None)
        return now

    def account_age_days(self, now: Optional[datetime.datetime] = None) -> Optional[int]:
        if self.created_at is None:
            return None
        delta = self._now(now) - self.created_at
        return max(0, delta.days)

    def account_age_label(self, now: Optional[datetime.datetime] = None) -> Optional[str]:
        if self.created_at is None:
            return None
        diff = relativedelta.relativedelta(self._now(now), self.created_at)
        return ", ".join([
            _plural(diff.years, "year"),
            _plural(diff.months, "month"),
            _plural(diff.days, "day"),
        ])


@dataclass(frozen=True)
class SpeciesType:
    name: str
    slot: int


@dataclass(frozen=True)
class Species:
    id: int
    name: str
    sprite_url: Optional[str]
    types: Tuple[SpeciesType, ...] = ()

    @classmethod
    def from_api(cls, species_id: int, data: Dict[str, Any]) -> "Species":
        sprites = data.get("sprites") or {}
        types = []
        for entry in data.get("types") or []:
            name = ((entry or {}).get("type") or {}).get("name")
            if not name:
                continue
            types.append(SpeciesType(name=name, slot=int(entry.get("slot") or 0)))
        types.sort(key=lambda t: t.slot)
        return cls(
            id=int(data.get("id") or species_id),
            name=data.get("name") or "",
            sprite_url=sprites.get("front_default") or None,
            types=tuple(types),
        )

    @property
    def display_name(self) -> str:
        return self.name[:1].upper() + self.name[1:]

    @property
    def type_names(self) -> List[str]:
        return [t.name for t in self.types]


@dataclass(frozen=True)
class InlinedAsset:
    source: str
    data_uri: str
    mime_type: str
    size: int


@dataclass(frozen=True)
class ImageRef:
    """Image source for the card plus where it came from (inlined data or the live url)."""
    src: str
    provenance: str

    @property
    def inlined(self) -> bool:
        return self.provenance == INLINED


@dataclass(frozen=True)
class CardView:
    """Render-ready snapshot of the composer state."""
    username: str
    state: str
    profile: Optional[Profile] = None
    avatar: Optional[ImageRef] = None
    species: Optional[Species] = None
    sprite: Optional[ImageRef] = None
    commit_count: Optional[int] = None
    error: Optional[str] = None
    loading_profile: bool = False
    loading_species: bool = False
    primary_type: Optional[str] = None
    account_age_days: Optional[int] = None
    remote_images: List[str] = field(default_factory=list)

    @property
    def login(self) -> Optional[str]:
        return self.profile.login if self.profile else None
