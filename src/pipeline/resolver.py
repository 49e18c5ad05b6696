"""Per-candidate resolution loop.

For each candidate name in lineup order the resolver searches the artist
provider with up to three query variants and walks this state machine:

    SEARCHING ──top score ≥ threshold──────────────→ AUTO_ACCEPTED
        │
        ├──plausible shortlist──→ AWAITING_USER_CHOICE ──choose──→ USER_ACCEPTED
        │                                              ──reject──→ USER_REJECTED_ALL
        └──nothing usable / search error──────────────────────────→ NOT_FOUND

A user decision at the gate is final for that candidate.  Rejected
shortlists feed the run's rejected-identity set, so an artist dismissed
once is never offered again in the same run.

Searches within a run are strictly sequential, with a short pause between
candidates to stay polite to the API.  Cancellation is checked before each
candidate and when a gate resumes.  An authorization failure ends the run,
because every later search would fail the same way.
"""

from __future__ import annotations

import asyncio
from typing import NoReturn

import structlog

from src.interfaces.artist_search_provider import IArtistSearchProvider
from src.models.artist import ArtistRecord, CandidateOutcome, ResolvedArtist, ScoredCandidate
from src.models.run import (
    ArtistResolved,
    DisambiguationNeeded,
    RunComplete,
    RunProgress,
    RunStatus,
)
from src.pipeline.disambiguation_gate import DisambiguationGate, GateDecision
from src.pipeline.event_bus import RunEventBus
from src.pipeline.run_state import RunState
from src.utils.errors import CancellationRequested, SearchError
from src.utils.logging import get_logger
from src.utils.match_scoring import build_shortlist
from src.utils.text_normalizer import build_query_variants

AUTHORIZATION_FAILED = "authorization_failed"
INTERNAL_ERROR = "internal_error"


class ArtistResolver:
    """Resolves a run's candidate names to artist identities.

    One instance is shared by all runs; everything run-specific lives on the
    :class:`RunState` passed to :meth:`run`.
    """

    def __init__(
        self,
        search_provider: IArtistSearchProvider,
        event_bus: RunEventBus,
        auto_accept_threshold: float = 80.0,
        min_score: float = 30.0,
        shortlist_size: int = 3,
        inter_candidate_delay: float = 0.1,
    ) -> None:
        self._search = search_provider
        self._bus = event_bus
        self._auto_accept_threshold = auto_accept_threshold
        self._min_score = min_score
        self._shortlist_size = shortlist_size
        self._delay = inter_candidate_delay
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, state: RunState, auth_token: str) -> RunComplete:
        """Process every candidate of *state* and emit the final event.

        Parameters
        ----------
        state:
            A fresh run; it is updated in place.
        auth_token:
            Bearer token forwarded to every search.

        Returns
        -------
        RunComplete
            The final event, also published on the event bus.
        """
        state.status = RunStatus.RUNNING
        total = len(state.candidates)

        try:
            for index, name in enumerate(state.candidates):
                if state.is_cancelled:
                    raise CancellationRequested()

                outcome = await self._resolve_candidate(state, name, auth_token)
                state.processed_count = index + 1
                self._logger.info("candidate_processed", candidate=name, outcome=outcome.value)
                await self._bus.publish(
                    RunProgress(
                        run_id=state.run_id,
                        current=index + 1,
                        total=total,
                        message=f"Processed {name}",
                    )
                )

                if index < total - 1 and not state.is_cancelled and self._delay > 0:
                    await asyncio.sleep(self._delay)
        except CancellationRequested:
            self._logger.info("run_cancelled", processed=state.processed_count, total=total)
            state.finish(RunStatus.CANCELLED)
        except SearchError as exc:
            # Only auth failures escape _resolve_candidate.
            self._logger.error(
                "search_authorization_failed",
                status_code=exc.status_code,
                error=str(exc),
            )
            state.finish(RunStatus.FAILED, failure_reason=AUTHORIZATION_FAILED)
        else:
            state.finish(RunStatus.COMPLETED)

        return await self.complete(state)

    async def complete(self, state: RunState) -> RunComplete:
        """Publish the RunComplete event describing *state*'s outcome."""
        resolved = len(state.resolved)
        unresolved = len(state.not_found)
        skipped = len(state.candidates) - state.processed_count
        cancelled = state.status is RunStatus.CANCELLED

        event = RunComplete(
            run_id=state.run_id,
            resolved_count=resolved,
            unresolved_count=unresolved,
            skipped_count=max(0, skipped),
            cancelled=cancelled,
            failure_reason=state.failure_reason,
            summary=self.summarize(state),
            artists=list(state.resolved),
        )
        self._logger.info(
            "run_complete",
            status=state.status.value,
            resolved=resolved,
            unresolved=unresolved,
            skipped=event.skipped_count,
        )
        return await self._bus.publish(event)

    @staticmethod
    def summarize(state: RunState) -> str:
        """Human-readable outcome line shown when a run ends."""
        added = len(state.resolved)
        missed = len(state.not_found)
        if state.status is RunStatus.CANCELLED:
            return f"Processing stopped. Added {added} artists found so far."
        if state.status is RunStatus.FAILED:
            if state.failure_reason == AUTHORIZATION_FAILED:
                return f"Spotify authorization failed. Added {added} artists before stopping."
            return f"Processing failed. Added {added} artists before stopping."
        if not state.candidates:
            return "No artist names found in the lineup."
        if missed:
            return f"Added {added} artists. Could not find {missed} artists."
        return f"Successfully added {added} artists!"

    # ------------------------------------------------------------------
    # Per-candidate state machine
    # ------------------------------------------------------------------

    async def _resolve_candidate(
        self, state: RunState, name: str, auth_token: str
    ) -> CandidateOutcome:
        for query in build_query_variants(name):
            if state.is_cancelled:
                self._stop_candidate(state, name)

            try:
                records = await self._search.search_artists(query, auth_token)
            except SearchError as exc:
                if exc.is_auth_failure:
                    raise
                self._logger.warning(
                    "candidate_search_failed",
                    candidate=name,
                    query=query,
                    kind=exc.kind.value,
                    error=str(exc),
                )
                state.not_found.append(name)
                return CandidateOutcome.NOT_FOUND

            rejected = state.rejected_ids
            fresh = [record for record in records if record.id not in rejected]
            if not fresh:
                continue

            shortlist = build_shortlist(
                name, fresh, min_score=self._min_score, limit=self._shortlist_size
            )
            if not shortlist:
                continue

            top = shortlist[0]
            if top.score >= self._auto_accept_threshold:
                self._logger.info(
                    "candidate_auto_accepted",
                    candidate=name,
                    query=query,
                    artist=top.artist.name,
                    score=round(top.score, 2),
                )
                await self._accept(state, name, top.artist, CandidateOutcome.AUTO_ACCEPTED)
                return CandidateOutcome.AUTO_ACCEPTED

            return await self._ask_user(state, name, shortlist)

        self._logger.info("candidate_not_found", candidate=name)
        state.not_found.append(name)
        return CandidateOutcome.NOT_FOUND

    async def _ask_user(
        self, state: RunState, name: str, shortlist: list[ScoredCandidate]
    ) -> CandidateOutcome:
        if state.is_cancelled:
            self._stop_candidate(state, name)

        gate = DisambiguationGate(name, shortlist)
        state.pending_gate = gate
        state.status = RunStatus.AWAITING_CHOICE
        self._logger.info(
            "disambiguation_needed",
            candidate=name,
            shortlist=[c.artist.id for c in shortlist],
            top_score=round(shortlist[0].score, 2),
        )
        await self._bus.publish(
            DisambiguationNeeded(run_id=state.run_id, query_name=name, shortlist=shortlist)
        )

        try:
            result = await gate.wait()
        finally:
            state.pending_gate = None
            if not state.status.is_terminal:
                state.status = RunStatus.RUNNING

        if result.decision is GateDecision.CANCELLED or state.is_cancelled:
            self._stop_candidate(state, name)

        if result.decision is GateDecision.REJECTED:
            state.reject(gate.shortlist_ids)
            self._logger.info(
                "candidate_rejected_by_user",
                candidate=name,
                rejected=gate.shortlist_ids,
            )
            state.not_found.append(name)
            return CandidateOutcome.USER_REJECTED_ALL

        self._logger.info("candidate_user_accepted", candidate=name, artist=result.artist.name)
        await self._accept(state, name, result.artist, CandidateOutcome.USER_ACCEPTED)
        return CandidateOutcome.USER_ACCEPTED

    async def _accept(
        self,
        state: RunState,
        name: str,
        artist: ArtistRecord,
        outcome: CandidateOutcome,
    ) -> None:
        resolved = ResolvedArtist(
            artist=artist,
            query_name=name,
            outcome=outcome,
            track_count=state.default_track_count,
        )
        state.resolved.append(resolved)
        await self._bus.publish(
            ArtistResolved(
                run_id=state.run_id,
                artist=artist,
                query_name=name,
                outcome=outcome,
                track_count=state.default_track_count,
            )
        )

    @staticmethod
    def _stop_candidate(state: RunState, name: str) -> NoReturn:
        """Count *name* as processed and unmatched, then end the run."""
        state.not_found.append(name)
        state.processed_count += 1
        raise CancellationRequested()
