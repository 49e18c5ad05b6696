"""Unit tests for the Spotify Web API provider."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from src.config.settings import Settings
from src.providers.spotify.spotify_provider import SpotifyProvider, authorization_header
from src.utils.errors import PlaylistError, SearchError, SearchErrorKind

_BASE = "https://api.spotify.com/v1"


def _response(status: int, payload: Any = None, *, content: bytes | None = None) -> httpx.Response:
    request = httpx.Request("GET", _BASE)
    if content is not None:
        return httpx.Response(status, content=content, request=request)
    return httpx.Response(status, json=payload if payload is not None else {}, request=request)


def _artist_item(artist_id: str, name: str, **extra: Any) -> dict[str, Any]:
    item = {
        "id": artist_id,
        "name": name,
        "followers": {"total": 1200},
        "genres": ["techno"],
        "popularity": 55,
        "images": [{"url": f"https://img/{artist_id}.jpg", "width": 640, "height": 640}],
        "external_urls": {"spotify": f"https://open.spotify.com/artist/{artist_id}"},
    }
    item.update(extra)
    return item


@pytest.fixture
def http_client() -> AsyncMock:
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def provider(http_client: AsyncMock) -> SpotifyProvider:
    settings = Settings(_env_file=None, spotify_market="GB", spotify_search_limit=5)
    return SpotifyProvider(http_client, settings)


class TestAuthorizationHeader:
    @pytest.mark.parametrize("token", ["abc", "Bearer abc", "  bearer abc  "])
    def test_bearer_prefix(self, token: str) -> None:
        header = authorization_header(token)
        assert header["Authorization"].lower() == "bearer abc"

    def test_bare_token_gets_prefix(self) -> None:
        assert authorization_header("abc") == {"Authorization": "Bearer abc"}


# ======================================================================
# Artist search
# ======================================================================


class TestSearchArtists:
    def test_provider_metadata(self, provider: SpotifyProvider) -> None:
        assert provider.get_provider_name() == "spotify"
        assert provider.is_available() is True

    @pytest.mark.asyncio
    async def test_parses_artist_items(self, provider: SpotifyProvider, http_client) -> None:
        http_client.get.return_value = _response(
            200,
            {"artists": {"items": [_artist_item("a1", "Bicep"), _artist_item("a2", "Bicep Live")]}},
        )

        records = await provider.search_artists("Bicep", "token")

        assert [r.id for r in records] == ["a1", "a2"]
        first = records[0]
        assert first.name == "Bicep"
        assert first.follower_count == 1200
        assert first.genres == frozenset({"techno"})
        assert first.popularity == 55
        assert first.primary_image_url == "https://img/a1.jpg"
        assert first.spotify_url == "https://open.spotify.com/artist/a1"

    @pytest.mark.asyncio
    async def test_request_shape(self, provider: SpotifyProvider, http_client) -> None:
        http_client.get.return_value = _response(200, {"artists": {"items": []}})

        await provider.search_artists("Four Tet", "token")

        args, kwargs = http_client.get.call_args
        assert args[0] == f"{_BASE}/search"
        assert kwargs["params"] == {"q": "Four Tet", "type": "artist", "limit": 5}
        assert kwargs["headers"] == {"Authorization": "Bearer token"}

    @pytest.mark.asyncio
    async def test_tolerates_sparse_items(self, provider: SpotifyProvider, http_client) -> None:
        http_client.get.return_value = _response(
            200,
            {"artists": {"items": [{"id": "x", "name": "Sparse"}, None, {"name": "no id"}]}},
        )

        records = await provider.search_artists("Sparse", "token")

        assert len(records) == 1
        assert records[0].follower_count == 0
        assert records[0].popularity is None
        assert records[0].images == []

    @pytest.mark.asyncio
    async def test_missing_artists_key(self, provider: SpotifyProvider, http_client) -> None:
        http_client.get.return_value = _response(200, {})
        assert await provider.search_artists("Bicep", "token") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, kind",
        [
            (401, SearchErrorKind.AUTH),
            (403, SearchErrorKind.AUTH),
            (429, SearchErrorKind.RATE_LIMITED),
            (500, SearchErrorKind.TRANSIENT),
            (404, SearchErrorKind.TRANSIENT),
        ],
    )
    async def test_status_mapping(
        self, provider: SpotifyProvider, http_client, status: int, kind: SearchErrorKind
    ) -> None:
        http_client.get.return_value = _response(status, {"error": {"status": status}})

        with pytest.raises(SearchError) as exc_info:
            await provider.search_artists("Bicep", "token")

        assert exc_info.value.kind is kind
        assert exc_info.value.status_code == status
        assert exc_info.value.provider_name == "spotify"

    @pytest.mark.asyncio
    async def test_transport_error_is_transient(
        self, provider: SpotifyProvider, http_client
    ) -> None:
        http_client.get.side_effect = httpx.ConnectError("refused")

        with pytest.raises(SearchError) as exc_info:
            await provider.search_artists("Bicep", "token")

        assert exc_info.value.kind is SearchErrorKind.TRANSIENT
        assert not exc_info.value.is_auth_failure

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self, provider: SpotifyProvider, http_client) -> None:
        http_client.get.side_effect = httpx.ReadTimeout("slow")

        with pytest.raises(SearchError) as exc_info:
            await provider.search_artists("Bicep", "token")

        assert exc_info.value.kind is SearchErrorKind.TRANSIENT

    @pytest.mark.asyncio
    async def test_invalid_json(self, provider: SpotifyProvider, http_client) -> None:
        http_client.get.return_value = _response(200, content=b"<html>oops</html>")

        with pytest.raises(SearchError, match="invalid JSON"):
            await provider.search_artists("Bicep", "token")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [[{"id": "a1", "name": "Bicep"}], {"artists": ["a1"]}, "Bicep"],
    )
    async def test_unexpected_payload_is_transient(
        self, provider: SpotifyProvider, http_client, payload: Any
    ) -> None:
        http_client.get.return_value = _response(200, payload)

        with pytest.raises(SearchError, match="unexpected payload") as exc_info:
            await provider.search_artists("Bicep", "token")
        assert exc_info.value.kind is SearchErrorKind.TRANSIENT

    @pytest.mark.asyncio
    async def test_skips_non_object_items(self, provider: SpotifyProvider, http_client) -> None:
        http_client.get.return_value = _response(
            200, {"artists": {"items": ["junk", None, _artist_item("a1", "Bicep")]}}
        )
        records = await provider.search_artists("Bicep", "token")
        assert [r.id for r in records] == ["a1"]


# ======================================================================
# Playlist operations
# ======================================================================


class TestPlaylistOperations:
    @pytest.mark.asyncio
    async def test_top_tracks(self, provider: SpotifyProvider, http_client) -> None:
        http_client.request.return_value = _response(
            200,
            {
                "tracks": [
                    {"uri": "spotify:track:1", "name": "Glue", "popularity": 70},
                    {"uri": "spotify:track:2", "name": "Atlas"},
                    {"name": "no uri"},
                ]
            },
        )

        tracks = await provider.get_top_tracks("a1", "token")

        assert [t.uri for t in tracks] == ["spotify:track:1", "spotify:track:2"]
        assert tracks[1].popularity == 0
        args, kwargs = http_client.request.call_args
        assert args == ("GET", f"{_BASE}/artists/a1/top-tracks")
        assert kwargs["params"] == {"market": "GB"}

    @pytest.mark.asyncio
    async def test_current_user_id(self, provider: SpotifyProvider, http_client) -> None:
        http_client.request.return_value = _response(200, {"id": "user-1"})
        assert await provider.get_current_user_id("token") == "user-1"

    @pytest.mark.asyncio
    async def test_current_user_without_id(self, provider: SpotifyProvider, http_client) -> None:
        http_client.request.return_value = _response(200, {"display_name": "Someone"})
        with pytest.raises(PlaylistError, match="no id"):
            await provider.get_current_user_id("token")

    @pytest.mark.asyncio
    async def test_non_object_payload(self, provider: SpotifyProvider, http_client) -> None:
        http_client.request.return_value = _response(200, ["user-1"])
        with pytest.raises(PlaylistError, match="unexpected payload"):
            await provider.get_current_user_id("token")

    @pytest.mark.asyncio
    async def test_create_playlist(self, provider: SpotifyProvider, http_client) -> None:
        http_client.request.return_value = _response(
            201,
            {"id": "pl-1", "external_urls": {"spotify": "https://open.spotify.com/playlist/pl-1"}},
        )

        playlist_id, url = await provider.create_playlist("user-1", "Fest", "desc", "token")

        assert playlist_id == "pl-1"
        assert url == "https://open.spotify.com/playlist/pl-1"
        args, kwargs = http_client.request.call_args
        assert args == ("POST", f"{_BASE}/users/user-1/playlists")
        assert kwargs["json"] == {"name": "Fest", "description": "desc", "public": False}

    @pytest.mark.asyncio
    async def test_add_tracks(self, provider: SpotifyProvider, http_client) -> None:
        http_client.request.return_value = _response(201, {"snapshot_id": "s"})

        await provider.add_tracks("pl-1", ["spotify:track:1"], "token")

        args, kwargs = http_client.request.call_args
        assert args == ("POST", f"{_BASE}/playlists/pl-1/tracks")
        assert kwargs["json"] == {"uris": ["spotify:track:1"]}
        assert kwargs["headers"] == {"Authorization": "Bearer token"}

    @pytest.mark.asyncio
    async def test_http_error_carries_status(self, provider: SpotifyProvider, http_client) -> None:
        http_client.request.return_value = _response(403, {"error": "forbidden"})

        with pytest.raises(PlaylistError) as exc_info:
            await provider.add_tracks("pl-1", ["spotify:track:1"], "token")

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_transport_error(self, provider: SpotifyProvider, http_client) -> None:
        http_client.request.side_effect = httpx.ConnectError("refused")

        with pytest.raises(PlaylistError) as exc_info:
            await provider.get_top_tracks("a1", "token")

        assert exc_info.value.status_code is None
