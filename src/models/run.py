"""Run event models emitted by the resolution pipeline.

Every event carries the ``run_id`` it belongs to, a per-run ``sequence``
number (assigned by the event bus when the event is published) and a UTC
timestamp.  Hosts receive them over the WebSocket stream or by polling the
events endpoint; ``event_type`` is the discriminator for deserialization.

Order within a run:
    (ArtistResolved | DisambiguationNeeded)*, RunProgress after each
    candidate, exactly one RunComplete last.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from src.models.artist import ArtistRecord, CandidateOutcome, ResolvedArtist, ScoredCandidate


class RunStatus(str, Enum):  # noqa: UP042
    """Lifecycle of one resolution run."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    AWAITING_CHOICE = "AWAITING_CHOICE"  # a disambiguation gate is open
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.CANCELLED, RunStatus.FAILED)


class RunEventBase(BaseModel):
    """Fields shared by all run events."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    sequence: int = 0
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class ArtistResolved(RunEventBase):
    """A candidate was accepted, automatically or by the user."""

    event_type: Literal["artist_resolved"] = "artist_resolved"
    artist: ArtistRecord
    query_name: str
    outcome: CandidateOutcome
    track_count: int


class DisambiguationNeeded(RunEventBase):
    """The resolver is suspended until the host picks from ``shortlist``."""

    event_type: Literal["disambiguation_needed"] = "disambiguation_needed"
    query_name: str
    shortlist: list[ScoredCandidate]


class RunProgress(RunEventBase):
    """Emitted after each candidate finishes, whatever its outcome."""

    event_type: Literal["run_progress"] = "run_progress"
    current: int
    total: int
    message: str = ""


class RunComplete(RunEventBase):
    """Final event of every run, including cancelled and failed ones."""

    event_type: Literal["run_complete"] = "run_complete"
    resolved_count: int
    unresolved_count: int
    # Candidates never processed because the run stopped early.
    skipped_count: int = 0
    cancelled: bool = False
    failure_reason: str | None = None
    summary: str
    artists: list[ResolvedArtist] = Field(default_factory=list)


RunEvent = Annotated[
    Union[ArtistResolved, DisambiguationNeeded, RunProgress, RunComplete],  # noqa: UP007
    Field(discriminator="event_type"),
]
