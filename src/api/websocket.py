"""WebSocket endpoint for real-time run events.

# ─── HOW THE EVENT STREAM WORKS ───────────────────────────────────────
#
#   Client                                Backend (this file)
#   ──────                                ──────────────────
#   ws = new WebSocket(url)   ──────→   websocket.accept()
#                             ←──────   replay of past events
#                             ←──────   disambiguation_needed (JSON)
#   POST /runs/{id}/disambiguation ──→  (HTTP, not this socket)
#                             ←──────   artist_resolved (JSON)
#                             ←──────   run_complete (JSON)
#                                        websocket.close()
#
# Every message is one run event serialized with ``model_dump(mode="json")``
# and carries ``event_type`` plus a per-run ``sequence`` so a client that
# reconnects can ignore what it has already seen.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from src.pipeline.run_manager import RunManager
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Application-defined close code for an unknown run id.
WS_CLOSE_UNKNOWN_RUN = 4404


async def websocket_run_events(websocket: WebSocket, run_id: str) -> None:
    """Stream a run's events to the client until the run completes.

    Parameters
    ----------
    websocket:
        The WebSocket connection managed by FastAPI / Starlette.
    run_id:
        The run to subscribe to.
    """
    manager: RunManager = websocket.app.state.run_manager

    await websocket.accept()
    if manager.get_run(run_id) is None:
        _logger.info("websocket_unknown_run", run_id=run_id)
        await websocket.close(code=WS_CLOSE_UNKNOWN_RUN)
        return

    _logger.info("websocket_connected", run_id=run_id)
    sent = 0
    try:
        async for event in manager.events(run_id):
            await websocket.send_json(event.model_dump(mode="json"))
            sent += 1
    except WebSocketDisconnect:
        _logger.info("websocket_disconnected", run_id=run_id, events_sent=sent)
        return

    _logger.debug("websocket_stream_finished", run_id=run_id, events_sent=sent)
    await websocket.close()
