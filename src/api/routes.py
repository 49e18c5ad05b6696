"""FastAPI API routes for festivalPlaylist.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                 Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/lineups/upload                   POST    Poster image → OCR → start run
# /api/v1/lineups/text                     POST    Raw lineup text → start run
# /api/v1/runs/{run_id}                    GET     Run status snapshot
# /api/v1/runs/{run_id}/events?after=N     GET     Events after sequence N
# /api/v1/runs/{run_id}/disambiguation     POST    Answer the pending shortlist
# /api/v1/runs/{run_id}/cancel             POST    Stop the run
# /api/v1/artists/search?q=...             GET     Manual Spotify artist lookup
# /api/v1/playlists                        POST    Build a playlist
# /api/v1/health                           GET     Health check + providers
#
# Every run and playlist endpoint needs the caller's Spotify token in the
# Authorization header; it is forwarded unchanged and never stored.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import hashlib
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, Header, HTTPException, Query, Request, UploadFile

from src.api.schemas import (
    ArtistSearchResponse,
    CreatePlaylistRequest,
    DisambiguationRequest,
    ErrorResponse,
    HealthResponse,
    LineupTextRequest,
    PendingDisambiguation,
    PlaylistResponse,
    RunActionResponse,
    RunEventsResponse,
    RunStartedResponse,
    RunStatusResponse,
)
from src.config.settings import Settings
from src.interfaces.artist_search_provider import IArtistSearchProvider
from src.models.lineup import LineupImage
from src.pipeline.run_manager import RunManager
from src.pipeline.run_state import RunState
from src.services.ocr_service import OCRService
from src.services.playlist_builder import PlaylistBuilder
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})
# Read uploads in 64 KB chunks so oversized files are rejected early.
_UPLOAD_CHUNK_SIZE = 64 * 1024

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_run_manager(request: Request) -> RunManager:
    return request.app.state.run_manager


def _get_ocr_service(request: Request) -> OCRService:
    return request.app.state.ocr_service


def _get_playlist_builder(request: Request) -> PlaylistBuilder:
    return request.app.state.playlist_builder


def _get_artist_search(request: Request) -> IArtistSearchProvider:
    return request.app.state.artist_search


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_auth_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Return the Authorization header value, or reject with 401."""
    if not authorization or not authorization.strip():
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    return authorization


RunManagerDep = Annotated[RunManager, Depends(_get_run_manager)]
OCRServiceDep = Annotated[OCRService, Depends(_get_ocr_service)]
PlaylistBuilderDep = Annotated[PlaylistBuilder, Depends(_get_playlist_builder)]
ArtistSearchDep = Annotated[IArtistSearchProvider, Depends(_get_artist_search)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]
AuthTokenDep = Annotated[str, Depends(_get_auth_token)]


def _require_run(manager: RunManager, run_id: str) -> RunState:
    state = manager.get_run(run_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Unknown run: {run_id}")
    return state


def _status_response(manager: RunManager, state: RunState) -> RunStatusResponse:
    gate = state.pending_gate
    pending = None
    if gate is not None and not gate.is_resolved:
        pending = PendingDisambiguation(query_name=gate.query_name, shortlist=gate.shortlist)
    return RunStatusResponse(
        run_id=state.run_id,
        status=state.status,
        total=len(state.candidates),
        processed=state.processed_count,
        candidates=state.candidates,
        pending_names=state.pending_names,
        resolved=state.resolved,
        not_found=state.not_found,
        pending_disambiguation=pending,
        failure_reason=state.failure_reason,
        created_at=state.created_at,
        finished_at=state.finished_at,
        result=manager.get_result(state.run_id),
    )


# ---------------------------------------------------------------------------
# Starting runs
# ---------------------------------------------------------------------------


@router.post(
    "/lineups/upload",
    response_model=RunStartedResponse,
    status_code=202,
    responses={401: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
    summary="Upload a lineup poster and start resolving its artists",
)
async def upload_lineup(
    file: UploadFile,
    manager: RunManagerDep,
    ocr_service: OCRServiceDep,
    settings: SettingsDep,
    auth_token: AuthTokenDep,
    client_id: Annotated[str | None, Form(max_length=128)] = None,
    default_track_count: Annotated[int | None, Form(ge=1, le=10)] = None,
) -> RunStartedResponse:
    """Accept a poster image, OCR it, and start a run on the extracted names."""
    content_type = file.content_type or ""
    if content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=415,
            detail=(
                f"Unsupported file type: {content_type}. "
                f"Allowed: {', '.join(sorted(_ALLOWED_CONTENT_TYPES))}"
            ),
        )

    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum: {settings.max_upload_bytes} bytes.",
            )
        chunks.append(chunk)
    image_data = b"".join(chunks)
    if not image_data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    image = LineupImage(
        filename=file.filename or "unknown",
        content_type=content_type,
        file_size=len(image_data),
        image_hash=hashlib.sha256(image_data).hexdigest(),
    )
    # PrivateAttr bypasses the frozen check and stays out of serialization.
    image.__pydantic_private__["_image_data"] = image_data

    raw_text = await ocr_service.extract_lineup_text(image)
    state = await manager.start_run(
        raw_text,
        auth_token,
        default_track_count=default_track_count,
        client_id=client_id,
    )
    _logger.info(
        "lineup_uploaded",
        image_id=image.id,
        run_id=state.run_id,
        file_size=len(image_data),
        candidates=len(state.candidates),
    )
    return RunStartedResponse(
        run_id=state.run_id,
        status=state.status,
        candidates=state.candidates,
        ocr_text=raw_text,
    )


@router.post(
    "/lineups/text",
    response_model=RunStartedResponse,
    status_code=202,
    responses={401: {"model": ErrorResponse}},
    summary="Start resolving artists from lineup text",
)
async def submit_lineup_text(
    body: LineupTextRequest,
    manager: RunManagerDep,
    auth_token: AuthTokenDep,
) -> RunStartedResponse:
    state = await manager.start_run(
        body.raw_text,
        auth_token,
        default_track_count=body.default_track_count,
        client_id=body.client_id,
    )
    return RunStartedResponse(
        run_id=state.run_id,
        status=state.status,
        candidates=state.candidates,
    )


# ---------------------------------------------------------------------------
# Observing and steering runs
# ---------------------------------------------------------------------------


@router.get(
    "/runs/{run_id}",
    response_model=RunStatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Run status snapshot",
)
async def get_run_status(run_id: str, manager: RunManagerDep) -> RunStatusResponse:
    return _status_response(manager, _require_run(manager, run_id))


@router.get(
    "/runs/{run_id}/events",
    response_model=RunEventsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Events with a sequence number greater than ``after``",
)
async def get_run_events(
    run_id: str,
    manager: RunManagerDep,
    after: Annotated[int, Query(ge=0)] = 0,
) -> RunEventsResponse:
    _require_run(manager, run_id)
    return RunEventsResponse(run_id=run_id, events=manager.event_bus.history(run_id, after=after))


@router.post(
    "/runs/{run_id}/disambiguation",
    response_model=RunActionResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Choose an artist from the pending shortlist, or reject it",
)
async def resolve_disambiguation(
    run_id: str,
    body: DisambiguationRequest,
    manager: RunManagerDep,
) -> RunActionResponse:
    """Answer the pending gate; DisambiguationError maps to 409 in middleware."""
    state = _require_run(manager, run_id)
    manager.resolve_disambiguation(run_id, body.artist_id)
    return RunActionResponse(run_id=run_id, accepted=True, status=state.status)


@router.post(
    "/runs/{run_id}/cancel",
    response_model=RunActionResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Stop a run; artists accepted so far are kept",
)
async def cancel_run(run_id: str, manager: RunManagerDep) -> RunActionResponse:
    state = _require_run(manager, run_id)
    accepted = manager.cancel_run(run_id)
    return RunActionResponse(run_id=run_id, accepted=accepted, status=state.status)


# ---------------------------------------------------------------------------
# Manual artist search
# ---------------------------------------------------------------------------


@router.get(
    "/artists/search",
    response_model=ArtistSearchResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Look up Spotify artists by name",
)
async def search_artists(
    search: ArtistSearchDep,
    auth_token: AuthTokenDep,
    q: Annotated[str, Query(max_length=100)] = "",
) -> ArtistSearchResponse:
    """Find an artist the lineup scan missed or the user rejected.

    Search failures are raised as-is and mapped to HTTP statuses by the
    error-handling middleware.
    """
    query = " ".join(q.split())
    if not query:
        raise HTTPException(status_code=400, detail="Missing search query")

    artists = await search.search_artists(query, auth_token)
    _logger.info("manual_artist_search", query=query, result_count=len(artists))
    return ArtistSearchResponse(query=query, artists=artists)


# ---------------------------------------------------------------------------
# Playlists
# ---------------------------------------------------------------------------


@router.post(
    "/playlists",
    response_model=PlaylistResponse,
    status_code=201,
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Create a playlist from resolved artists",
)
async def create_playlist(
    body: CreatePlaylistRequest,
    builder: PlaylistBuilderDep,
    auth_token: AuthTokenDep,
) -> PlaylistResponse:
    result = await builder.build(
        body.name,
        body.selections,
        auth_token,
        description=body.description,
    )
    return PlaylistResponse(
        playlist_id=result.playlist_id,
        name=result.name,
        url=result.url,
        tracks_added=result.tracks_added,
        batches=result.batches,
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))

    if providers.get("search", False) and providers.get("ocr", False):
        status = "healthy"
    elif providers.get("search", False):
        # Text submissions still work without OCR.
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(status=status, version=_VERSION, providers=providers)
