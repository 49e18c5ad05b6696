"""Mutable per-run state owned by one resolver task.

A RunState is created for every upload and never shared between runs.
It is a plain dataclass rather than a frozen Pydantic model: the resolver
updates it in place as candidates are processed, and hosts read snapshots
of it through the run manager.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.models.artist import ResolvedArtist
from src.models.run import RunStatus
from src.pipeline.disambiguation_gate import DisambiguationGate

__all__ = ["RunState", "RunStatus"]


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


@dataclass
class RunState:
    """Everything one resolution run knows about itself.

    The rejected-identity set only grows, and only through :meth:`reject`;
    readers get a frozenset view.
    """

    run_id: str
    candidates: list[str]
    default_track_count: int = 3
    client_id: str | None = None
    status: RunStatus = RunStatus.PENDING
    resolved: list[ResolvedArtist] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    # Candidates that have finished, whatever their outcome.
    processed_count: int = 0
    pending_gate: DisambiguationGate | None = None
    failure_reason: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    _rejected_ids: set[str] = field(default_factory=set, init=False, repr=False)

    @property
    def rejected_ids(self) -> frozenset[str]:
        return frozenset(self._rejected_ids)

    def reject(self, artist_ids: Iterable[str]) -> None:
        """Exclude *artist_ids* from every later search result in this run."""
        self._rejected_ids.update(artist_ids)

    @property
    def is_cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def request_cancel(self) -> None:
        self.cancel_event.set()

    @property
    def pending_names(self) -> list[str]:
        """Candidates not yet processed, in lineup order."""
        return self.candidates[self.processed_count:]

    @property
    def is_finished(self) -> bool:
        return self.status.is_terminal

    def finish(self, status: RunStatus, failure_reason: str | None = None) -> None:
        self.status = status
        self.failure_reason = failure_reason
        self.pending_gate = None
        self.finished_at = _utcnow()
