"""Playlist assembly from resolved artists.

For every selected artist the builder fetches the top tracks, keeps the
most popular ``track_count`` of them, and then creates one private playlist
holding the de-duplicated union.  Tracks are added in batches because the
Spotify API accepts at most 100 URIs per request.

An artist whose top tracks cannot be fetched is skipped and logged; the
playlist is still built from the others.  Only when no track at all is
left does the build fail.
"""

from __future__ import annotations

import asyncio

from src.interfaces.playlist_provider import IPlaylistProvider
from src.models.playlist import ArtistTrackSelection, PlaylistResult, TrackRef
from src.utils.concurrency import throttled_gather
from src.utils.errors import PlaylistError
from src.utils.logging import get_logger

_DEFAULT_DESCRIPTION = "Created with festivalPlaylist - Contains tracks from {count} artists"


class PlaylistBuilder:
    """Builds a playlist on the user's account from artist selections."""

    def __init__(
        self,
        provider: IPlaylistProvider,
        max_tracks_per_artist: int = 5,
        batch_size: int = 100,
        max_concurrency: int = 5,
    ) -> None:
        self._provider = provider
        self._max_tracks = max_tracks_per_artist
        self._batch_size = batch_size
        self._max_concurrency = max_concurrency
        self._logger = get_logger(__name__)

    async def build(
        self,
        name: str,
        selections: list[ArtistTrackSelection],
        auth_token: str,
        description: str | None = None,
    ) -> PlaylistResult:
        """Create a playlist named *name* from *selections*.

        Parameters
        ----------
        name:
            Playlist title.
        selections:
            One entry per artist with the number of top tracks to take.
        auth_token:
            The caller's bearer token.
        description:
            Optional description; defaults to a note with the artist count.

        Returns
        -------
        PlaylistResult
            The created playlist and the URIs that were added.

        Raises
        ------
        PlaylistError
            When no tracks were found or any playlist call fails.
        """
        uris = await self.collect_track_uris(selections, auth_token)
        if not uris:
            raise PlaylistError(message="No tracks found for the selected artists")

        if description is None:
            description = _DEFAULT_DESCRIPTION.format(count=len(selections))

        user_id = await self._provider.get_current_user_id(auth_token)
        playlist_id, url = await self._provider.create_playlist(
            user_id, name, description, auth_token
        )

        batches = 0
        for start in range(0, len(uris), self._batch_size):
            await self._provider.add_tracks(
                playlist_id, uris[start:start + self._batch_size], auth_token
            )
            batches += 1

        self._logger.info(
            "playlist_built",
            playlist_id=playlist_id,
            artist_count=len(selections),
            tracks_added=len(uris),
            batches=batches,
        )
        return PlaylistResult(
            playlist_id=playlist_id,
            name=name,
            url=url,
            track_uris=uris,
            tracks_added=len(uris),
            batches=batches,
        )

    async def collect_track_uris(
        self,
        selections: list[ArtistTrackSelection],
        auth_token: str,
    ) -> list[str]:
        """Return the chosen track URIs across all artists, first occurrence kept."""
        semaphore = asyncio.Semaphore(self._max_concurrency)
        results = await throttled_gather(
            [self._provider.get_top_tracks(s.artist_id, auth_token) for s in selections],
            semaphore=semaphore,
        )

        uris: list[str] = []
        seen: set[str] = set()
        for selection, result in zip(selections, results):
            if isinstance(result, PlaylistError) and result.status_code in (401, 403):
                # Every other artist would fail the same way.
                raise result
            if isinstance(result, BaseException):
                self._logger.warning(
                    "top_tracks_failed",
                    artist_id=selection.artist_id,
                    error=str(result),
                )
                continue
            for track in self.pick_tracks(result, selection.track_count):
                if track.uri not in seen:
                    seen.add(track.uri)
                    uris.append(track.uri)
        return uris

    def pick_tracks(self, tracks: list[TrackRef], track_count: int) -> list[TrackRef]:
        """Most popular first, clamped to ``1..max_tracks_per_artist`` tracks."""
        count = max(1, min(track_count, self._max_tracks))
        ranked = sorted(tracks, key=lambda t: t.popularity, reverse=True)
        return ranked[:count]
