"""Disambiguation gate: the resolver's human-in-the-loop pause point.

When a candidate's best search result is plausible but below the
auto-accept threshold, the resolver opens a gate carrying the shortlist
and suspends on it.  Only that run's task waits; other runs and the HTTP
server keep going.

# ─── HOW THE GATE WORKS ───────────────────────────────────────────────
#
#   Resolver ──open gate──→ DisambiguationNeeded event ──→ host shows shortlist
#      │                                                        │
#      └──── await gate.wait() ◀── choose(id) / reject_all() ───┘
#                                  cancel()  (run cancelled)
#
# Exactly one of choose / reject_all / cancel resolves the gate.  Any
# further attempt raises DisambiguationError, as does choosing an artist
# that is not on the shortlist.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

from src.models.artist import ArtistRecord, ScoredCandidate
from src.utils.errors import DisambiguationError


class GateDecision(str, Enum):  # noqa: UP042
    CHOSEN = "CHOSEN"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class GateResult:
    """How a gate was resolved; ``artist`` is set only for CHOSEN."""

    decision: GateDecision
    artist: ArtistRecord | None = None


class DisambiguationGate:
    """A single-use suspension point for one candidate's shortlist.

    Must be created from inside a running event loop (the resolver task).
    """

    def __init__(self, query_name: str, shortlist: list[ScoredCandidate]) -> None:
        self._query_name = query_name
        self._shortlist = list(shortlist)
        self._future: asyncio.Future[GateResult] = asyncio.get_running_loop().create_future()

    @property
    def query_name(self) -> str:
        return self._query_name

    @property
    def shortlist(self) -> list[ScoredCandidate]:
        return list(self._shortlist)

    @property
    def shortlist_ids(self) -> list[str]:
        return [candidate.artist.id for candidate in self._shortlist]

    @property
    def is_resolved(self) -> bool:
        return self._future.done()

    async def wait(self) -> GateResult:
        """Suspend the calling task until the gate is resolved."""
        return await self._future

    def choose(self, artist_id: str) -> ArtistRecord:
        """Accept the shortlisted artist with id *artist_id*.

        Raises
        ------
        DisambiguationError
            If the gate is already resolved or *artist_id* is not shortlisted.
        """
        self._ensure_open()
        for candidate in self._shortlist:
            if candidate.artist.id == artist_id:
                self._future.set_result(GateResult(GateDecision.CHOSEN, candidate.artist))
                return candidate.artist
        raise DisambiguationError(
            f"Artist '{artist_id}' is not on the shortlist for '{self._query_name}'"
        )

    def reject_all(self) -> None:
        """Dismiss every shortlisted artist."""
        self._ensure_open()
        self._future.set_result(GateResult(GateDecision.REJECTED))

    def cancel(self) -> None:
        """Resolve the gate because the run is being cancelled."""
        self._ensure_open()
        self._future.set_result(GateResult(GateDecision.CANCELLED))

    def _ensure_open(self) -> None:
        if self._future.done():
            raise DisambiguationError(
                f"Disambiguation for '{self._query_name}' was already resolved"
            )
