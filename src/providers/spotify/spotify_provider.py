"""Spotify Web API provider implementing IArtistSearchProvider and IPlaylistProvider.

All calls go through one injected ``httpx.AsyncClient`` whose timeout caps
every request.  The caller's bearer token is forwarded on each request;
this provider never stores it.

Error mapping for search:
    401 / 403        → SearchError(kind=AUTH)
    429              → SearchError(kind=RATE_LIMITED)
    other non-2xx    → SearchError(kind=TRANSIENT)
    transport error  → SearchError(kind=TRANSIENT)

Playlist calls raise PlaylistError carrying the HTTP status when there is one.
"""

from __future__ import annotations

from typing import Any

import httpx

from src.config.settings import Settings
from src.interfaces.artist_search_provider import IArtistSearchProvider
from src.interfaces.playlist_provider import IPlaylistProvider
from src.models.artist import ArtistRecord
from src.models.playlist import TrackRef
from src.utils.errors import PlaylistError, SearchError, SearchErrorKind
from src.utils.logging import get_logger

_PROVIDER_NAME = "spotify"


def authorization_header(auth_token: str) -> dict[str, str]:
    """Build the Authorization header for *auth_token*.

    The token may arrive as the full header value (``"Bearer abc"``) or bare
    (``"abc"``); both produce the same header.
    """
    token = auth_token.strip()
    if not token.lower().startswith("bearer "):
        token = f"Bearer {token}"
    return {"Authorization": token}


class SpotifyProvider(IArtistSearchProvider, IPlaylistProvider):
    """Spotify Web API adapter.

    The ``httpx.AsyncClient`` is injected for testability and shared with
    the rest of the application.
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings) -> None:
        self._http = http_client
        self._base_url = settings.spotify_api_base_url.rstrip("/")
        self._market = settings.spotify_market
        self._search_limit = settings.spotify_search_limit
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # IArtistSearchProvider
    # ------------------------------------------------------------------

    async def search_artists(self, query: str, auth_token: str) -> list[ArtistRecord]:
        """Search Spotify for artists matching *query*."""
        params = {"q": query, "type": "artist", "limit": self._search_limit}
        try:
            response = await self._http.get(
                f"{self._base_url}/search",
                params=params,
                headers=authorization_header(auth_token),
            )
        except httpx.HTTPError as exc:
            raise SearchError(
                message=f"Artist search request failed for '{query}': {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

        if response.status_code >= 400:
            raise _search_error(response, query)

        try:
            payload = response.json()
        except ValueError as exc:
            raise SearchError(
                message=f"Artist search returned invalid JSON for '{query}'",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            ) from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("artists") or {}, dict):
            raise SearchError(
                message=f"Artist search returned an unexpected payload for '{query}'",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            )

        items = (payload.get("artists") or {}).get("items") or []
        records = [
            ArtistRecord.from_spotify(item)
            for item in items
            if isinstance(item, dict) and item.get("id")
        ]
        self._logger.debug("spotify_artist_search", query=query, result_count=len(records))
        return records

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        # Credentials arrive per request, so the adapter is always usable.
        return True

    # ------------------------------------------------------------------
    # IPlaylistProvider
    # ------------------------------------------------------------------

    async def get_top_tracks(self, artist_id: str, auth_token: str) -> list[TrackRef]:
        """Return *artist_id*'s top tracks in the configured market."""
        payload = await self._request_json(
            "GET",
            f"/artists/{artist_id}/top-tracks",
            auth_token,
            params={"market": self._market},
            action=f"Top tracks lookup for artist '{artist_id}'",
        )
        tracks = [TrackRef.from_spotify(t) for t in payload.get("tracks") or [] if t and t.get("uri")]
        self._logger.debug("spotify_top_tracks", artist_id=artist_id, track_count=len(tracks))
        return tracks

    async def get_current_user_id(self, auth_token: str) -> str:
        payload = await self._request_json("GET", "/me", auth_token, action="Current user lookup")
        user_id = payload.get("id")
        if not user_id:
            raise PlaylistError(
                message="Current user lookup returned no id",
                provider_name=_PROVIDER_NAME,
            )
        return user_id

    async def create_playlist(
        self,
        user_id: str,
        name: str,
        description: str,
        auth_token: str,
    ) -> tuple[str, str | None]:
        payload = await self._request_json(
            "POST",
            f"/users/{user_id}/playlists",
            auth_token,
            json={"name": name, "description": description, "public": False},
            action=f"Playlist creation for user '{user_id}'",
        )
        external_urls = payload.get("external_urls") or {}
        self._logger.info("spotify_playlist_created", playlist_id=payload.get("id"), name=name)
        return payload["id"], external_urls.get("spotify")

    async def add_tracks(self, playlist_id: str, uris: list[str], auth_token: str) -> None:
        await self._request_json(
            "POST",
            f"/playlists/{playlist_id}/tracks",
            auth_token,
            json={"uris": uris},
            action=f"Adding {len(uris)} tracks to playlist '{playlist_id}'",
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request_json(
        self,
        method: str,
        path: str,
        auth_token: str,
        *,
        action: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json,
                headers=authorization_header(auth_token),
            )
        except httpx.HTTPError as exc:
            raise PlaylistError(
                message=f"{action} failed: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

        if response.status_code >= 400:
            self._logger.warning(
                "spotify_request_rejected",
                path=path,
                status=response.status_code,
            )
            raise PlaylistError(
                message=f"{action} failed with HTTP {response.status_code}",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            )

        try:
            payload = response.json() or {}
        except ValueError as exc:
            raise PlaylistError(
                message=f"{action} returned invalid JSON",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise PlaylistError(
                message=f"{action} returned an unexpected payload",
                provider_name=_PROVIDER_NAME,
                status_code=response.status_code,
            )
        return payload


def _search_error(response: httpx.Response, query: str) -> SearchError:
    status = response.status_code
    if status in (401, 403):
        kind = SearchErrorKind.AUTH
    elif status == 429:
        kind = SearchErrorKind.RATE_LIMITED
    else:
        kind = SearchErrorKind.TRANSIENT
    return SearchError(
        message=f"Artist search for '{query}' failed with HTTP {status}",
        provider_name=_PROVIDER_NAME,
        kind=kind,
        status_code=status,
    )
