"""Abstract base class for playlist providers.

Covers the four calls needed to turn resolved artists into a playlist on
the user's account: top tracks per artist, the current user's id, playlist
creation and track insertion.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.playlist import TrackRef


class IPlaylistProvider(ABC):
    """Contract for services that can create playlists for a user."""

    @abstractmethod
    async def get_top_tracks(self, artist_id: str, auth_token: str) -> list[TrackRef]:
        """Return the artist's top tracks in the configured market.

        Raises
        ------
        src.utils.errors.PlaylistError
            If the request fails.
        """

    @abstractmethod
    async def get_current_user_id(self, auth_token: str) -> str:
        """Return the id of the user owning *auth_token*."""

    @abstractmethod
    async def create_playlist(
        self,
        user_id: str,
        name: str,
        description: str,
        auth_token: str,
    ) -> tuple[str, str | None]:
        """Create a private playlist and return ``(playlist_id, url)``."""

    @abstractmethod
    async def add_tracks(self, playlist_id: str, uris: list[str], auth_token: str) -> None:
        """Append *uris* to the playlist in one request.

        Callers are responsible for batching to the provider's limit.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"spotify"``."""
