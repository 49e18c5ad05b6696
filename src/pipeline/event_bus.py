"""Per-run event history and listener fan-out.

# ─── HOW THE EVENT BUS WORKS ──────────────────────────────────────────
#
# Observer pattern, keyed by run id:
#
#   Resolver ──publish()──→ RunEventBus ──callback(event)──→ WebSocket handler
#                               │                        ──→ RunManager.events()
#                               └── history[run_id]  ←── GET /runs/{id}/events
#
#   - publish() stamps each event with the next per-run sequence number,
#     appends it to the run's history, then calls every listener.
#   - Listener errors are caught and logged so one broken WebSocket cannot
#     stall a run or starve the other listeners.
#   - Both sync and async callbacks are supported.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog

from src.models.run import RunEventBase
from src.utils.logging import get_logger


class RunEventBus:
    """Records and broadcasts run events."""

    def __init__(self) -> None:
        self._history: dict[str, list[RunEventBase]] = {}
        self._listeners: dict[str, list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def publish(self, event: RunEventBase) -> RunEventBase:
        """Sequence *event*, record it and notify the run's listeners.

        Parameters
        ----------
        event:
            A run event; its ``sequence`` field is overwritten.

        Returns
        -------
        RunEventBase
            The recorded copy carrying its sequence number.
        """
        history = self._history.setdefault(event.run_id, [])
        sequenced = event.model_copy(update={"sequence": len(history) + 1})
        history.append(sequenced)

        self._logger.debug(
            "run_event_published",
            run_id=event.run_id,
            event_type=getattr(sequenced, "event_type", type(sequenced).__name__),
            sequence=sequenced.sequence,
        )

        await self._notify_listeners(sequenced)
        return sequenced

    def history(self, run_id: str, after: int = 0) -> list[RunEventBase]:
        """Return the run's events with a sequence number greater than *after*."""
        return [e for e in self._history.get(run_id, []) if e.sequence > after]

    def register_listener(self, run_id: str, callback: Callable) -> None:
        """Register a sync or async ``callback(event)`` for one run."""
        listeners = self._listeners.setdefault(run_id, [])
        if callback not in listeners:
            listeners.append(callback)
            self._logger.debug(
                "listener_registered",
                run_id=run_id,
                total_listeners=len(listeners),
            )

    def unregister_listener(self, run_id: str, callback: Callable) -> None:
        listeners = self._listeners.get(run_id, [])
        if callback in listeners:
            listeners.remove(callback)
            self._logger.debug(
                "listener_unregistered",
                run_id=run_id,
                remaining_listeners=len(listeners),
            )

    def discard(self, run_id: str) -> None:
        """Forget a run's history and listeners."""
        self._history.pop(run_id, None)
        self._listeners.pop(run_id, None)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(self, event: RunEventBase) -> None:
        # Copy: a listener may unregister itself while being notified.
        for callback in list(self._listeners.get(event.run_id, [])):
            try:
                result = callback(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    run_id=event.run_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
