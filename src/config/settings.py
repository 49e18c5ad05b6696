"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources (in priority
# order):
#
#   1. **Environment variables** - e.g. AUTO_ACCEPT_THRESHOLD=85
#   2. **.env file** - key=value lines in the project root .env file
#
# Field name `spotify_api_base_url` maps to env var `SPOTIFY_API_BASE_URL`.
# Defaults below are used when neither source sets a value.
#
# No Spotify credentials live here: the OAuth handshake happens in the
# client, which sends the resulting bearer token with every request.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """festivalPlaylist application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Spotify Web API ===
    spotify_api_base_url: str = "https://api.spotify.com/v1"
    spotify_market: str = "US"
    spotify_search_limit: int = Field(default=10, ge=1, le=50)
    # Caps every Spotify call so a hung request cannot stall a run.
    spotify_timeout_seconds: float = Field(default=10.0, gt=0)
    spotify_max_concurrency: int = Field(default=5, ge=1)

    # === Resolver ===
    auto_accept_threshold: float = 80.0
    min_match_score: float = 30.0
    shortlist_size: int = Field(default=3, ge=1)
    inter_candidate_delay: float = Field(default=0.1, ge=0.0)

    # === Playlist ===
    default_track_count: int = Field(default=3, ge=1)
    max_tracks_per_artist: int = Field(default=5, ge=1, le=10)
    # Spotify rejects more than 100 URIs per add-tracks request.
    playlist_batch_size: int = Field(default=100, ge=1, le=100)

    # === OCR / uploads ===
    ocr_min_confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    max_upload_bytes: int = 10 * 1024 * 1024

    # === Runs ===
    max_retained_runs: int = Field(default=200, ge=1)

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]
