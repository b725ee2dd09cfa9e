"""Submission lifecycle: independent slots, silent activity failures, stale results."""
import asyncio
import datetime
import threading

from trainer_card.composer import IDLE, PENDING, SETTLED, CardComposer
from trainer_card.errors import ActivityFetchFailure, RateLimited, UpstreamError
from trainer_card.identity import derive_species_id
from trainer_card.models import INLINED, ImageRef, Profile, Species, SpeciesType
from trainer_card.themes import DEFAULT_THEME, TYPE_THEME


def make_profile(login):
    return Profile(
        login=login,
        avatar_url=f"https://avatars.example/{login}.png",
        public_repos=8,
        followers=42,
        created_at=datetime.datetime(2011, 1, 25, tzinfo=datetime.timezone.utc),
    )


def make_species(species_id):
    return Species(
        id=species_id,
        name=f"mon{species_id}",
        sprite_url=f"https://sprites.example/{species_id}.png",
        types=(SpeciesType("fire", 1), SpeciesType("flying", 2)),
    )


def fake_inline(url):
    return ImageRef(src=f"data:image/png;base64,{url}", provenance=INLINED) if url else None


def make_composer(**overrides):
    fakes = dict(
        fetch_profile=make_profile,
        fetch_species=make_species,
        fetch_activity=lambda username: 7,
        inline=fake_inline,
    )
    fakes.update(overrides)
    return CardComposer(**fakes)


def test_idle_until_first_submit():
    composer = make_composer()
    assert composer.state == IDLE
    assert composer.theme == DEFAULT_THEME
    assert composer.snapshot().profile is None


def test_blank_submit_is_ignored():
    composer = make_composer()
    assert asyncio.run(composer.submit("   ")) is False
    assert composer.state == IDLE
    assert composer.epoch == 0


def test_successful_submit_settles_all_slots():
    seen = {}

    def species_for(species_id):
        seen["id"] = species_id
        return make_species(species_id)

    composer = make_composer(fetch_species=species_for)
    assert asyncio.run(composer.submit("  octocat  ")) is True
    assert seen["id"] == derive_species_id("octocat") == 146
    assert composer.state == SETTLED
    assert composer.username == "octocat"
    assert composer.profile.login == "octocat"
    assert composer.avatar.inlined
    assert composer.sprite.src.endswith("146.png")
    assert composer.commit_count == 7
    assert composer.error is None
    assert composer.primary_type == "fire"
    assert composer.theme == TYPE_THEME["fire"]

    view = composer.snapshot()
    assert view.state == SETTLED
    assert view.login == "octocat"
    assert view.account_age_days > 0
    assert view.remote_images == []


def test_begin_moves_to_pending_and_clears_state():
    composer = make_composer()
    asyncio.run(composer.submit("octocat"))
    composer.begin("hubot")
    assert composer.state == PENDING
    assert composer.profile is None and composer.species is None
    assert composer.commit_count is None and composer.error is None
    assert composer.theme == DEFAULT_THEME


def test_profile_failure_does_not_block_species():
    def missing(username):
        raise UpstreamError("GitHub user not found", status=404)

    composer = make_composer(fetch_profile=missing)
    asyncio.run(composer.submit("ghost-user"))
    assert composer.state == SETTLED
    assert composer.profile is None and composer.avatar is None
    assert composer.error == "GitHub user not found"
    assert composer.species is not None
    assert composer.sprite is not None
    assert composer.theme == TYPE_THEME["fire"]


def test_species_failure_does_not_block_profile():
    def broken(species_id):
        raise UpstreamError("Failed to load Pokémon", status=500)

    composer = make_composer(fetch_species=broken)
    asyncio.run(composer.submit("octocat"))
    assert composer.profile.login == "octocat"
    assert composer.species is None and composer.sprite is None
    assert composer.error == "Failed to load Pokémon"
    assert composer.theme == DEFAULT_THEME


def test_rate_limit_surfaces_like_any_upstream_error():
    def limited(username):
        raise RateLimited("API rate limit exceeded", status=403)

    composer = make_composer(fetch_profile=limited)
    asyncio.run(composer.submit("octocat"))
    assert composer.error == "API rate limit exceeded"


def test_activity_failure_is_silent():
    def no_events(username):
        raise ActivityFetchFailure("events request returned 500")

    composer = make_composer(fetch_activity=no_events)
    asyncio.run(composer.submit("octocat"))
    assert composer.commit_count is None
    assert composer.error is None
    assert composer.state == SETTLED


def test_inline_fallback_is_reported_in_snapshot():
    def remote_only(url):
        return ImageRef(src=url, provenance="remote") if url else None

    composer = make_composer(inline=remote_only)
    asyncio.run(composer.submit("octocat"))
    assert composer.snapshot().remote_images == [
        "https://avatars.example/octocat.png",
        "https://sprites.example/146.png",
    ]


def test_late_profile_from_superseded_submit_is_dropped():
    release = threading.Event()

    def profile(username):
        if username == "alice":
            release.wait(5)
        return make_profile(username)

    composer = make_composer(fetch_profile=profile)

    async def scenario():
        first = asyncio.create_task(composer.submit("alice"))
        await asyncio.sleep(0.05)
        await composer.submit("bob")
        release.set()
        await first

    asyncio.run(scenario())
    assert composer.username == "bob"
    assert composer.profile.login == "bob"
    assert composer.avatar.src.endswith("bob.png")
    assert composer.species.id == derive_species_id("bob")
    assert composer.state == SETTLED


def test_late_failure_from_superseded_submit_is_dropped():
    release = threading.Event()

    def species(species_id):
        if species_id == derive_species_id("alice"):
            release.wait(5)
            raise UpstreamError("Failed to load Pokémon")
        return make_species(species_id)

    composer = make_composer(fetch_species=species)

    async def scenario():
        first = asyncio.create_task(composer.submit("alice"))
        await asyncio.sleep(0.05)
        await composer.submit("bob")
        release.set()
        await first

    asyncio.run(scenario())
    assert composer.error is None
    assert composer.species.id == derive_species_id("bob")


def test_reset_discards_in_flight_results():
    release = threading.Event()

    def profile(username):
        release.wait(5)
        return make_profile(username)

    composer = make_composer(fetch_profile=profile)

    async def scenario():
        task = asyncio.create_task(composer.submit("alice"))
        await asyncio.sleep(0.05)
        composer.reset()
        release.set()
        await task

    asyncio.run(scenario())
    assert composer.state == IDLE
    assert composer.profile is None


def test_inline_crash_keeps_remote_url_and_settles():
    def exploding_inline(url):
        raise RuntimeError("decoder blew up")

    composer = make_composer(inline=exploding_inline)
    asyncio.run(composer.submit("octocat"))
    assert composer.state == SETTLED
    assert composer.avatar == ImageRef("https://avatars.example/octocat.png", "remote")
    assert composer.sprite == ImageRef("https://sprites.example/146.png", "remote")
    assert composer.error is None


def test_unexpected_fetch_error_is_surfaced_with_generic_message():
    def buggy_profile(username):
        raise KeyError("login")

    def buggy_activity(username):
        raise TypeError("bad payload")

    composer = make_composer(fetch_profile=buggy_profile, fetch_activity=buggy_activity)
    asyncio.run(composer.submit("octocat"))
    assert composer.state == SETTLED
    assert composer.profile is None
    assert composer.error == "Failed to load GitHub user"
    assert composer.commit_count is None
    assert composer.species is not None
