"""Host-facing control surface for resolution runs.

The run manager owns one asyncio task per run and keeps the runs' states
addressable by id so that HTTP handlers, the WebSocket stream and the CLI
can drive them:

    start_run ──→ normalize lineup ──→ RunState ──→ resolver task
    resolve_disambiguation ──→ pending gate of that run
    cancel_run ──→ cancellation token + pending gate

A caller may pass a ``client_id`` (e.g. one browser tab).  Starting a new
run for the same client cancels that client's previous run first; the two
runs never share state.  Finished runs stay queryable until more than
``max_retained_runs`` exist, at which point the oldest finished runs are
dropped.
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import AsyncIterator
from uuid import uuid4

import structlog

from src.models.run import RunComplete, RunEventBase, RunStatus
from src.pipeline.event_bus import RunEventBus
from src.pipeline.resolver import INTERNAL_ERROR, ArtistResolver
from src.pipeline.run_state import RunState
from src.utils.errors import DisambiguationError
from src.utils.logging import bind_run_context, get_logger
from src.utils.text_normalizer import normalize_lineup


class RunManager:
    """Starts, steers and tracks resolution runs."""

    def __init__(
        self,
        resolver: ArtistResolver,
        event_bus: RunEventBus,
        default_track_count: int = 3,
        max_retained_runs: int = 200,
    ) -> None:
        self._resolver = resolver
        self._bus = event_bus
        self._default_track_count = default_track_count
        self._max_retained_runs = max_retained_runs
        self._runs: OrderedDict[str, RunState] = OrderedDict()
        self._tasks: dict[str, asyncio.Task[RunComplete]] = {}
        self._results: dict[str, RunComplete] = {}
        self._client_runs: dict[str, str] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def event_bus(self) -> RunEventBus:
        return self._bus

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    async def start_run(
        self,
        raw_text: str,
        auth_token: str,
        default_track_count: int | None = None,
        client_id: str | None = None,
    ) -> RunState:
        """Normalize *raw_text* and start resolving its candidate names.

        Parameters
        ----------
        raw_text:
            OCR output or pasted lineup text.
        auth_token:
            Bearer token forwarded to every search of this run.
        default_track_count:
            Track count attached to every resolved artist.
        client_id:
            Optional caller key; its previous active run is cancelled.

        Returns
        -------
        RunState
            The new run, already scheduled.
        """
        if client_id is not None:
            previous_id = self._client_runs.get(client_id)
            if previous_id is not None and self.cancel_run(previous_id):
                self._logger.info(
                    "run_replaced",
                    previous_run_id=previous_id,
                    client_id=client_id,
                )

        candidates = normalize_lineup(raw_text)
        state = RunState(
            run_id=uuid4().hex,
            candidates=candidates,
            default_track_count=default_track_count or self._default_track_count,
            client_id=client_id,
        )
        self._runs[state.run_id] = state
        if client_id is not None:
            self._client_runs[client_id] = state.run_id

        self._tasks[state.run_id] = asyncio.create_task(
            self._execute(state, auth_token), name=f"run-{state.run_id}"
        )
        self._logger.info(
            "run_started",
            run_id=state.run_id,
            client_id=client_id,
            candidates=len(candidates),
        )
        self._evict_finished()
        return state

    def resolve_disambiguation(self, run_id: str, artist_id: str | None) -> None:
        """Answer the run's pending gate; ``None`` rejects the whole shortlist.

        Raises
        ------
        KeyError
            If the run is unknown.
        DisambiguationError
            If no gate is pending or *artist_id* is not on the shortlist.
        """
        state = self._runs[run_id]
        gate = state.pending_gate
        if gate is None or gate.is_resolved:
            raise DisambiguationError(f"No disambiguation pending for run '{run_id}'")

        if artist_id is None:
            gate.reject_all()
        else:
            gate.choose(artist_id)
        self._logger.info(
            "disambiguation_resolved",
            run_id=run_id,
            candidate=gate.query_name,
            artist_id=artist_id,
        )

    def cancel_run(self, run_id: str) -> bool:
        """Request cancellation; returns ``False`` if the run is unknown or over.

        A repeated call still releases a gate that is left open, and reports
        ``True`` only when it did so.
        """
        state = self._runs.get(run_id)
        if state is None or state.is_finished:
            return False

        already_cancelled = state.is_cancelled
        state.request_cancel()
        gate = state.pending_gate
        released = gate is not None and not gate.is_resolved
        if released:
            gate.cancel()
        if already_cancelled and not released:
            return False
        self._logger.info("run_cancel_requested", run_id=run_id, gate_released=released)
        return True

    def get_run(self, run_id: str) -> RunState | None:
        return self._runs.get(run_id)

    def get_result(self, run_id: str) -> RunComplete | None:
        return self._results.get(run_id)

    async def wait(self, run_id: str, timeout: float | None = None) -> RunComplete:
        """Wait for a run to finish and return its RunComplete event.

        Raises
        ------
        KeyError
            If the run is unknown.
        asyncio.TimeoutError
            If *timeout* elapses first; the run keeps going.
        """
        if run_id in self._results:
            return self._results[run_id]
        if run_id not in self._runs:
            raise KeyError(run_id)
        task = self._tasks[run_id]
        return await asyncio.wait_for(asyncio.shield(task), timeout)

    async def events(self, run_id: str) -> AsyncIterator[RunEventBase]:
        """Yield the run's past events, then live ones, ending with RunComplete."""
        if run_id not in self._runs:
            raise KeyError(run_id)

        queue: asyncio.Queue[RunEventBase] = asyncio.Queue()
        self._bus.register_listener(run_id, queue.put_nowait)
        try:
            last_sequence = 0
            for event in self._bus.history(run_id):
                last_sequence = event.sequence
                yield event
                if isinstance(event, RunComplete):
                    return
            while True:
                event = await queue.get()
                if event.sequence <= last_sequence:
                    continue
                last_sequence = event.sequence
                yield event
                if isinstance(event, RunComplete):
                    return
        finally:
            self._bus.unregister_listener(run_id, queue.put_nowait)

    async def shutdown(self) -> None:
        """Cancel every active run task and wait for them to stop."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._logger.info("run_manager_shutdown", cancelled_tasks=len(tasks))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _execute(self, state: RunState, auth_token: str) -> RunComplete:
        bind_run_context(state.run_id, state.client_id)
        try:
            complete = await self._resolver.run(state, auth_token)
        except Exception:
            # Still emit RunComplete so hosts waiting on the run are released.
            self._logger.exception("run_crashed")
            state.finish(RunStatus.FAILED, failure_reason=INTERNAL_ERROR)
            complete = await self._resolver.complete(state)
        finally:
            self._tasks.pop(state.run_id, None)
        self._results[state.run_id] = complete
        return complete

    def _evict_finished(self) -> None:
        excess = len(self._runs) - self._max_retained_runs
        if excess <= 0:
            return
        for run_id in [rid for rid, s in self._runs.items() if s.is_finished][:excess]:
            state = self._runs.pop(run_id)
            self._results.pop(run_id, None)
            self._bus.discard(run_id)
            if state.client_id and self._client_runs.get(state.client_id) == run_id:
                del self._client_runs[state.client_id]
            self._logger.debug("run_evicted", run_id=run_id)
