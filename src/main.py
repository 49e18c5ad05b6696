"""festivalPlaylist FastAPI application entry point.

Wires together providers, services, the run manager and routes via
dependency injection.  Loads configuration from ``config/config.yaml``,
``.env`` and the environment, and configures structured logging.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI, WebSocket

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.api.websocket import websocket_run_events
from src.config.loader import load_config, settings_from_config
from src.config.settings import Settings
from src.pipeline.event_bus import RunEventBus
from src.pipeline.resolver import ArtistResolver
from src.pipeline.run_manager import RunManager
from src.providers.ocr.tesseract_provider import TesseractOCRProvider
from src.providers.spotify.spotify_provider import SpotifyProvider
from src.services.ocr_service import OCRService
from src.services.playlist_builder import PlaylistBuilder
from src.utils.image_preprocessor import ImagePreprocessor
from src.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = settings_from_config(load_config())

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.spotify_timeout_seconds)
    preprocessor = ImagePreprocessor()

    # -- OCR --
    ocr_providers = [TesseractOCRProvider(preprocessor=preprocessor)]
    ocr_service = OCRService(providers=ocr_providers, min_confidence=app_settings.ocr_min_confidence)

    # -- Spotify (search + playlists) --
    spotify = SpotifyProvider(http_client=http_client, settings=app_settings)

    # -- Resolution pipeline --
    event_bus = RunEventBus()
    resolver = ArtistResolver(
        search_provider=spotify,
        event_bus=event_bus,
        auto_accept_threshold=app_settings.auto_accept_threshold,
        min_score=app_settings.min_match_score,
        shortlist_size=app_settings.shortlist_size,
        inter_candidate_delay=app_settings.inter_candidate_delay,
    )
    run_manager = RunManager(
        resolver=resolver,
        event_bus=event_bus,
        default_track_count=app_settings.default_track_count,
        max_retained_runs=app_settings.max_retained_runs,
    )

    playlist_builder = PlaylistBuilder(
        provider=spotify,
        max_tracks_per_artist=app_settings.max_tracks_per_artist,
        batch_size=app_settings.playlist_batch_size,
        max_concurrency=app_settings.spotify_max_concurrency,
    )

    # -- Provider registry for /health --
    provider_registry: dict[str, bool] = {
        "ocr": any(provider.is_available() for provider in ocr_providers),
        "search": spotify.is_available(),
        "playlist": True,
    }

    return {
        "settings": app_settings,
        "http_client": http_client,
        "ocr_service": ocr_service,
        "artist_search": spotify,
        "event_bus": event_bus,
        "run_manager": run_manager,
        "playlist_builder": playlist_builder,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    app_settings: Settings = getattr(application.state, "settings", None) or settings
    components = _build_all(app_settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=app_settings.app_env,
        providers=components["provider_registry"],
    )

    yield

    # -- Shutdown: stop active runs, then close the shared httpx client --
    await components["run_manager"].shutdown()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    app_settings = app_settings or settings
    application = FastAPI(
        title="festivalPlaylist API",
        version=_VERSION,
        description=(
            "Upload a festival lineup poster, resolve every artist on it to a "
            "Spotify artist with interactive disambiguation, then build a "
            "playlist from their top tracks."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=app_settings.cors_origins)

    # -- API routes --
    application.include_router(api_router)

    # -- WebSocket --
    @application.websocket("/ws/runs/{run_id}")
    async def ws_run_events(websocket: WebSocket, run_id: str) -> None:
        await websocket_run_events(websocket, run_id)

    return application


app = create_app()


def main() -> None:
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    main()
