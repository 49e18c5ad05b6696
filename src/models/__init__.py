"""festivalPlaylist domain models - re-exports all public model classes.

Other parts of the codebase can import from ``src.models`` directly
(e.g. ``from src.models import ArtistRecord``).  The models are organized
by concern:
    - artist.py    - Artist identities, scored candidates, resolved artists
    - lineup.py    - Poster image + OCR extraction data structures
    - playlist.py  - Track references and playlist results
    - run.py       - Run status and the events a run emits
"""

from __future__ import annotations

from src.models.artist import (
    ArtistImage,
    ArtistRecord,
    CandidateOutcome,
    ResolvedArtist,
    ScoredCandidate,
)
from src.models.lineup import LineupImage, OCRResult, TextRegion
from src.models.playlist import ArtistTrackSelection, PlaylistResult, TrackRef
from src.models.run import (
    ArtistResolved,
    DisambiguationNeeded,
    RunComplete,
    RunEvent,
    RunEventBase,
    RunProgress,
    RunStatus,
)

__all__ = [
    "ArtistImage",
    "ArtistRecord",
    "ArtistResolved",
    "ArtistTrackSelection",
    "CandidateOutcome",
    "DisambiguationNeeded",
    "LineupImage",
    "OCRResult",
    "PlaylistResult",
    "ResolvedArtist",
    "RunComplete",
    "RunEvent",
    "RunEventBase",
    "RunProgress",
    "RunStatus",
    "ScoredCandidate",
    "TextRegion",
    "TrackRef",
]
