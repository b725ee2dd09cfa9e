"""Submission state machine that merges profile, species and activity into one card view.

Every submit advances an epoch. Fetch tasks remember the epoch they started in
and drop their result if a newer submission (or a reset) happened meanwhile,
so a slow answer for an old username never lands on the current card.
"""

from __future__ import annotations
import asyncio
from typing import Callable, Optional

from . import assets, github, species
from .config import debug
from .errors import ActivityFetchFailure, CardError, Outcome, UpstreamError
from .identity import derive_species_id
from .models import REMOTE, CardView, ImageRef, Profile, Species
from .themes import DEFAULT_THEME, Theme, primary_type, resolve_theme

IDLE = "idle"
PENDING = "pending"
SETTLED = "settled"

PROFILE_FAILED = "Failed to load GitHub user"
SPECIES_FAILED = "Failed to load Pokémon"


class CardComposer:
    def __init__(
        self,
        fetch_profile: Callable[[str], Profile] = github.fetch_profile,
        fetch_species: Callable[[int], Species] = species.fetch_species,
        fetch_activity: Callable[[str], int] = github.request_activity_summary,
        inline: Callable[[Optional[str]], Optional[ImageRef]] = assets.inline_or_fallback,
    ):
        self._fetch_profile = fetch_profile
        self._fetch_species = fetch_species
        self._fetch_activity = fetch_activity
        self._inline = inline
        self.epoch = 0
        self.username = ""
        self._clear()
        self._submitted = False

    def _clear(self):
        self.profile: Optional[Profile] = None
        self.avatar: Optional[ImageRef] = None
        self.species: Optional[Species] = None
        self.sprite: Optional[ImageRef] = None
        self.commit_count: Optional[int] = None
        self.error: Optional[str] = None
        self.loading_profile = False
        self.loading_species = False

    # ------------------ Derived state ------------------
    @property
    def state(self) -> str:
        if not self._submitted:
            return IDLE
        if self.loading_profile or self.loading_species:
            return PENDING
        return SETTLED

    @property
    def primary_type(self) -> Optional[str]:
        if self.species is None:
            return None
        return primary_type(self.species.types)

    @property
    def theme(self) -> Theme:
        return resolve_theme(self.primary_type) if self.species else DEFAULT_THEME

    def snapshot(self) -> CardView:
        remote = [ref.src for ref in (self.avatar, self.sprite) if ref is not None and ref.provenance == REMOTE]
        return CardView(
            username=self.username,
            state=self.state,
            profile=self.profile,
            avatar=self.avatar,
            species=self.species,
            sprite=self.sprite,
            commit_count=self.commit_count,
            error=self.error,
            loading_profile=self.loading_profile,
            loading_species=self.loading_species,
            primary_type=self.primary_type,
            account_age_days=self.profile.account_age_days() if self.profile else None,
            remote_images=remote,
        )

    # ------------------ Transitions ------------------
    def reset(self):
        """Forget the current card and go back to idle."""
        self.epoch += 1
        self.username = ""
        self._clear()
        self._submitted = False

    def begin(self, username: str) -> Optional[int]:
        """Start a submission synchronously; returns its epoch, or None for blank input."""
        u = username.strip()
        if not u:
            return None
        self.epoch += 1
        self.username = u
        self._clear()
        self._submitted = True
        self.loading_profile = True
        self.loading_species = True
        debug(f"submit #{self.epoch}: {u}")
        return self.epoch

    async def submit(self, username: str) -> bool:
        epoch = self.begin(username)
        if epoch is None:
            return False
        u = self.username
        await asyncio.gather(
            self._profile_task(epoch, u),
            self._species_task(epoch, derive_species_id(u)),
            self._activity_task(epoch, u),
        )
        return True

    def _current(self, epoch: int) -> bool:
        if epoch != self.epoch:
            debug(f"discarding result of superseded submit #{epoch}")
            return False
        return True

    async def _settle(self, fn, *args, silent: bool = False, failure: str = "") -> Outcome:
        try:
            value = await asyncio.to_thread(fn, *args)
        except (UpstreamError, ActivityFetchFailure) as e:
            return Outcome.silent(e) if silent else Outcome.surfaced(e)
        except CardError as e:
            return Outcome.silent(e)
        except Exception as e:
            debug(f"{getattr(fn, '__name__', fn)} failed unexpectedly: {e!r}")
            err = UpstreamError(failure or str(e))
            return Outcome.silent(err) if silent else Outcome.surfaced(err)
        return Outcome.ok(value)

    async def _inline_image(self, url: Optional[str]) -> Optional[ImageRef]:
        """Inline ``url``; any failure keeps the remote url."""
        try:
            return await asyncio.to_thread(self._inline, url)
        except Exception as e:
            debug(f"inline of {url} failed unexpectedly: {e!r}")
            return ImageRef(src=url, provenance=REMOTE) if url else None

    async def _profile_task(self, epoch: int, username: str):
        outcome = await self._settle(self._fetch_profile, username, failure=PROFILE_FAILED)
        if not self._current(epoch):
            return
        if not outcome.is_ok:
            self.profile = None
            self.avatar = None
            self.error = outcome.message or PROFILE_FAILED
            self.loading_profile = False
            return
        self.profile = outcome.value
        ref = await self._inline_image(self.profile.avatar_url)
        if self._current(epoch):
            self.avatar = ref
            self.loading_profile = False

    async def _species_task(self, epoch: int, species_id: int):
        outcome = await self._settle(self._fetch_species, species_id, failure=SPECIES_FAILED)
        if not self._current(epoch):
            return
        if not outcome.is_ok:
            self.species = None
            self.sprite = None
            self.error = outcome.message or SPECIES_FAILED
            self.loading_species = False
            return
        self.species = outcome.value
        ref = await self._inline_image(self.species.sprite_url)
        if self._current(epoch):
            self.sprite = ref
            self.loading_species = False

    async def _activity_task(self, epoch: int, username: str):
        outcome = await self._settle(self._fetch_activity, username, silent=True, failure="activity unavailable")
        if not self._current(epoch):
            return
        if not outcome.is_ok:
            debug(f"activity unavailable: {outcome.error}")
        self.commit_count = outcome.value if outcome.is_ok else None
