"""festivalPlaylist API layer - routes, schemas, WebSocket, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    status_for_error,
)
from src.api.routes import router
from src.api.schemas import (
    ArtistSearchResponse,
    CreatePlaylistRequest,
    DisambiguationRequest,
    ErrorResponse,
    HealthResponse,
    LineupTextRequest,
    PlaylistResponse,
    RunActionResponse,
    RunEventsResponse,
    RunStartedResponse,
    RunStatusResponse,
)
from src.api.websocket import websocket_run_events

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "status_for_error",
    "router",
    "websocket_run_events",
    "ArtistSearchResponse",
    "CreatePlaylistRequest",
    "DisambiguationRequest",
    "ErrorResponse",
    "HealthResponse",
    "LineupTextRequest",
    "PlaylistResponse",
    "RunActionResponse",
    "RunEventsResponse",
    "RunStartedResponse",
    "RunStatusResponse",
]
