"""Playlist building models.

The host sends one ArtistTrackSelection per resolved artist; the playlist
builder fetches each artist's top tracks as TrackRefs and reports the
created playlist as a PlaylistResult.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TrackRef(BaseModel):
    """A single track from an artist's top-tracks listing."""

    model_config = ConfigDict(frozen=True)

    uri: str
    name: str = ""
    popularity: int = Field(default=0, ge=0, le=100)

    @classmethod
    def from_spotify(cls, payload: dict[str, Any]) -> TrackRef:
        return cls(
            uri=payload["uri"],
            name=payload.get("name", ""),
            popularity=payload.get("popularity") or 0,
        )


class ArtistTrackSelection(BaseModel):
    """How many top tracks to take from one artist.

    ``track_count`` is clamped by the builder to the configured maximum.
    """

    model_config = ConfigDict(frozen=True)

    artist_id: str
    track_count: int = Field(default=3, ge=1)


class PlaylistResult(BaseModel):
    """A playlist created on the user's account."""

    model_config = ConfigDict(frozen=True)

    playlist_id: str
    name: str
    url: str | None = None
    # Track URIs in insertion order, already deduplicated.
    track_uris: list[str] = Field(default_factory=list)
    tracks_added: int = 0
    # Number of add-tracks requests issued.
    batches: int = 0
