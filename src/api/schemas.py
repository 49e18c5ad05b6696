"""Pydantic request/response schemas for the festivalPlaylist API.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# These models define the shape of every HTTP request and response body.
# FastAPI uses them to validate incoming JSON (422 on failure), serialize
# responses (response_model=...) and generate the OpenAPI docs at /docs.
#
# Convention: request schemas end with "Request", response schemas end
# with "Response".  Run events are returned as the domain models from
# src/models/run.py, discriminated on ``event_type``.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.models.artist import ArtistRecord, ResolvedArtist, ScoredCandidate
from src.models.playlist import ArtistTrackSelection
from src.models.run import RunComplete, RunEvent, RunStatus


class LineupTextRequest(BaseModel):
    """Start a run from lineup text the user typed or pasted."""

    raw_text: str = Field(min_length=1, max_length=20000)
    default_track_count: int | None = Field(default=None, ge=1, le=10)
    client_id: str | None = Field(default=None, max_length=128)


class RunStartedResponse(BaseModel):
    """Returned when a run is created, from text or from an uploaded poster."""

    run_id: str
    status: RunStatus
    candidates: list[str]
    # Only set for uploads.
    ocr_text: str | None = None


class PendingDisambiguation(BaseModel):
    """The shortlist a run is currently waiting on."""

    query_name: str
    shortlist: list[ScoredCandidate]


class RunStatusResponse(BaseModel):
    """Snapshot of a run for polling clients."""

    run_id: str
    status: RunStatus
    total: int
    processed: int
    candidates: list[str]
    pending_names: list[str]
    resolved: list[ResolvedArtist]
    not_found: list[str]
    pending_disambiguation: PendingDisambiguation | None = None
    failure_reason: str | None = None
    created_at: datetime
    finished_at: datetime | None = None
    result: RunComplete | None = None


class RunEventsResponse(BaseModel):
    run_id: str
    events: list[RunEvent]


class DisambiguationRequest(BaseModel):
    """The user's answer to a shortlist; ``null`` rejects every entry."""

    artist_id: str | None = None


class RunActionResponse(BaseModel):
    run_id: str
    accepted: bool
    status: RunStatus


class CreatePlaylistRequest(BaseModel):
    """Build a playlist from resolved artists."""

    name: str = Field(min_length=1, max_length=100)
    selections: list[ArtistTrackSelection] = Field(min_length=1)
    description: str | None = Field(default=None, max_length=300)


class PlaylistResponse(BaseModel):
    playlist_id: str
    name: str
    url: str | None = None
    tracks_added: int
    batches: int


class ArtistSearchResponse(BaseModel):
    """Artists matching a manual search, in the order Spotify ranked them."""

    query: str
    artists: list[ArtistRecord]


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
