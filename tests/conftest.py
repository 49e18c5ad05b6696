"""Shared pytest fixtures for the festivalPlaylist test suite."""

from __future__ import annotations

import io
from collections.abc import Callable
from typing import Any

import pytest
from PIL import Image

from src.config.settings import Settings
from src.interfaces.artist_search_provider import IArtistSearchProvider
from src.models.artist import ArtistRecord
from src.pipeline.event_bus import RunEventBus
from src.pipeline.resolver import ArtistResolver
from src.pipeline.run_manager import RunManager

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeSearchProvider(IArtistSearchProvider):
    """Scripted artist search keyed by the exact query string.

    A scripted value may be a list of records or an exception instance,
    which is raised for that query.  Unscripted queries return ``[]``.
    Every call is recorded in ``queries``.
    """

    def __init__(self, results: dict[str, Any] | None = None) -> None:
        self.results: dict[str, Any] = dict(results or {})
        self.queries: list[str] = []
        self.tokens: list[str] = []
        self.on_search: Callable[[str], None] | None = None

    async def search_artists(self, query: str, auth_token: str) -> list[ArtistRecord]:
        self.queries.append(query)
        self.tokens.append(auth_token)
        if self.on_search is not None:
            self.on_search(query)
        outcome = self.results.get(query, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    def get_provider_name(self) -> str:
        return "fake-search"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_artist() -> Callable[..., ArtistRecord]:
    """Return a factory for ArtistRecord instances."""

    def _make(
        artist_id: str,
        name: str,
        followers: int = 0,
        popularity: int | None = None,
        genres: tuple[str, ...] = (),
    ) -> ArtistRecord:
        return ArtistRecord(
            id=artist_id,
            name=name,
            follower_count=followers,
            popularity=popularity,
            genres=frozenset(genres),
            spotify_url=f"https://open.spotify.com/artist/{artist_id}",
        )

    return _make


@pytest.fixture
def search_provider() -> FakeSearchProvider:
    return FakeSearchProvider()


@pytest.fixture
def event_bus() -> RunEventBus:
    return RunEventBus()


@pytest.fixture
def resolver(search_provider: FakeSearchProvider, event_bus: RunEventBus) -> ArtistResolver:
    """A resolver with default thresholds and no pause between candidates."""
    return ArtistResolver(
        search_provider=search_provider,
        event_bus=event_bus,
        inter_candidate_delay=0.0,
    )


@pytest.fixture
def run_manager(resolver: ArtistResolver, event_bus: RunEventBus) -> RunManager:
    return RunManager(resolver=resolver, event_bus=event_bus)


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, inter_candidate_delay=0.0)


@pytest.fixture
def png_bytes() -> bytes:
    """A small white PNG image."""
    img = Image.new("RGB", (120, 80), color=(255, 255, 255))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
