"""Artist identity models for the festivalPlaylist resolution pipeline.

Defines Pydantic v2 models for the artist records returned by the search
provider, the scored candidates shown at the disambiguation gate, and the
resolved artists a run finally accepts. All models use frozen config to
enforce immutability: the resolver never mutates an ArtistRecord.

Lifecycle of one candidate name:
    1. The search provider returns raw Spotify payloads  → ArtistRecord
    2. The match scorer rates each record                → ScoredCandidate
    3. The resolver accepts one (automatically or via the gate) → ResolvedArtist
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CandidateOutcome(str, Enum):  # noqa: UP042
    """Per-candidate resolution states.

    SEARCHING moves to exactly one terminal state.  USER_REJECTED_ALL is
    reported to hosts but counted as NOT_FOUND in run summaries.
    """

    SEARCHING = "SEARCHING"
    AUTO_ACCEPTED = "AUTO_ACCEPTED"                # top score cleared the threshold
    AWAITING_USER_CHOICE = "AWAITING_USER_CHOICE"  # gate open
    USER_ACCEPTED = "USER_ACCEPTED"                # user picked from the shortlist
    USER_REJECTED_ALL = "USER_REJECTED_ALL"        # user dismissed the shortlist
    NOT_FOUND = "NOT_FOUND"                        # no acceptable match


class ArtistImage(BaseModel):
    """One artwork URL for an artist; the first image on a record is primary."""

    model_config = ConfigDict(frozen=True)

    url: str
    width: int | None = None
    height: int | None = None


class ArtistRecord(BaseModel):
    """An artist identity as returned by the search provider.

    ``id`` is the stable key used for rejection tracking; ``name`` is what
    the scorer compares against.  ``popularity`` is ``None`` when the
    provider omits it, and scores as zero.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    follower_count: int = Field(default=0, ge=0)
    genres: frozenset[str] = Field(default_factory=frozenset)
    popularity: int | None = Field(default=None, ge=0, le=100)
    images: list[ArtistImage] = Field(default_factory=list)
    spotify_url: str | None = None

    @property
    def primary_image_url(self) -> str | None:
        return self.images[0].url if self.images else None

    @classmethod
    def from_spotify(cls, payload: dict[str, Any]) -> ArtistRecord:
        """Build a record from one item of a Spotify ``artists.items`` array.

        Missing ``followers``, ``genres`` or ``images`` are tolerated since
        the search API leaves them out for some catalogue entries.
        """
        followers = payload.get("followers") or {}
        external_urls = payload.get("external_urls") or {}
        images = [
            ArtistImage(
                url=image["url"],
                width=image.get("width"),
                height=image.get("height"),
            )
            for image in payload.get("images") or []
            if image.get("url")
        ]
        return cls(
            id=payload["id"],
            name=payload.get("name", ""),
            follower_count=followers.get("total") or 0,
            genres=frozenset(payload.get("genres") or ()),
            popularity=payload.get("popularity"),
            images=images,
            spotify_url=external_urls.get("spotify"),
        )


class ScoredCandidate(BaseModel):
    """An ArtistRecord paired with its match score for one candidate name."""

    model_config = ConfigDict(frozen=True)

    artist: ArtistRecord
    score: float


class ResolvedArtist(BaseModel):
    """An artist the run accepted, ready for playlist building.

    ``track_count`` starts as the caller-supplied default; the host may
    override it per artist when it builds the playlist.
    """

    model_config = ConfigDict(frozen=True)

    artist: ArtistRecord
    # Candidate name as it appeared in the normalized lineup.
    query_name: str
    outcome: CandidateOutcome
    track_count: int = Field(default=3, ge=1)
