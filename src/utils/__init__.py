"""Utility modules for festivalPlaylist.

Available utility modules (re-exported here for convenience):

- **errors** -- Domain exception hierarchy rooted at FestivalPlaylistError;
  each stage raises its own subclass so callers can handle failures
  granularly without broad ``except Exception`` blocks.
- **text_normalizer** -- Lineup text to candidate artist names, Spotify
  query variants, and OCR glyph corrections for poster typography.
- **match_scoring** -- Confidence of a candidate name against an artist
  record, and shortlist construction.
- **concurrency** -- asyncio semaphore throttling for fan-out calls.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **image_preprocessor** -- OpenCV/PIL preprocessing passes for OCR.
- **ocr_helpers** (not re-exported here) -- Cross-pass fuzzy line
  deduplication used by the Tesseract provider.
"""

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import throttled_gather

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    CancellationRequested,
    ConfigurationError,
    DisambiguationError,
    FestivalPlaylistError,
    OCRExtractionError,
    PlaylistError,
    SearchError,
    SearchErrorKind,
)

# -- Image preprocessing for OCR -------------------------------------------
from src.utils.image_preprocessor import ImagePreprocessor

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import bind_run_context, configure_logging, get_logger

# -- Match scoring ---------------------------------------------------------
from src.utils.match_scoring import build_shortlist, score_match

# -- Lineup text normalization ---------------------------------------------
from src.utils.text_normalizer import build_query_variants, dedupe_names, normalize_lineup

__all__ = [
    "CancellationRequested",
    "ConfigurationError",
    "DisambiguationError",
    "FestivalPlaylistError",
    "ImagePreprocessor",
    "OCRExtractionError",
    "PlaylistError",
    "SearchError",
    "SearchErrorKind",
    "bind_run_context",
    "build_query_variants",
    "build_shortlist",
    "configure_logging",
    "dedupe_names",
    "get_logger",
    "normalize_lineup",
    "score_match",
    "throttled_gather",
]
