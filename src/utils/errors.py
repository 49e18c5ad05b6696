"""Custom exception hierarchy for festivalPlaylist.

All application exceptions inherit from :class:`FestivalPlaylistError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "spotify", "tesseract") caused the failure.

The hierarchy is organized by pipeline stage:

    FestivalPlaylistError  (base -- catch-all for any festivalPlaylist error)
    +-- OCRExtractionError     (image-to-text extraction)
    +-- SearchError            (artist search; kind tells auth from transient)
    +-- DisambiguationError    (invalid or late decision at the gate)
    +-- CancellationRequested  (cooperative early termination, not a failure)
    +-- PlaylistError          (top tracks / playlist creation)
    +-- ConfigurationError     (startup / missing config)

Per-candidate search failures are absorbed by the resolver; only an
authorization failure is allowed to end a run early, because every
following search would fail the same way.
"""

from enum import Enum


class FestivalPlaylistError(Exception):
    """Base exception for all festivalPlaylist errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[spotify] Search request failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class OCRExtractionError(FestivalPlaylistError):
    """Raised when OCR text extraction fails or yields no usable text.

    The upload flow treats this as "zero candidates found" rather than a
    hard failure.
    """

    def __init__(
        self,
        message: str = "OCR text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Artist search errors
# ---------------------------------------------------------------------------

class SearchErrorKind(str, Enum):  # noqa: UP042
    """Why an artist search failed."""

    AUTH = "auth"                  # token missing, expired, or lacking scope
    RATE_LIMITED = "rate_limited"  # HTTP 429 from the search API
    TRANSIENT = "transient"        # network error, 5xx, or any other status


class SearchError(FestivalPlaylistError):
    """Raised when the artist-search capability errors or returns non-2xx.

    ``kind`` lets the resolver distinguish an exhausted token (abort the
    run, prompt re-authentication) from a one-off failure (mark the
    candidate as not found and keep going).
    """

    def __init__(
        self,
        message: str = "Artist search failed",
        provider_name: str | None = None,
        kind: SearchErrorKind = SearchErrorKind.TRANSIENT,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._kind = kind
        self._status_code = status_code

    @property
    def kind(self) -> SearchErrorKind:
        return self._kind

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def is_auth_failure(self) -> bool:
        return self._kind is SearchErrorKind.AUTH


# ---------------------------------------------------------------------------
# Resolution errors
# ---------------------------------------------------------------------------

class DisambiguationError(FestivalPlaylistError):
    """Raised for a decision the gate cannot accept.

    Examples: choosing an artist that is not on the shortlist, answering a
    gate that was already resolved, or answering when no gate is pending.
    """

    def __init__(
        self,
        message: str = "Invalid disambiguation decision",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class CancellationRequested(FestivalPlaylistError):
    """Signals that the user stopped the run.

    Raised inside the resolver at its cancellation checkpoints and caught by
    the run loop, which then emits whatever was already accepted.
    """

    def __init__(
        self,
        message: str = "Run cancelled by user",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Playlist errors
# ---------------------------------------------------------------------------

class PlaylistError(FestivalPlaylistError):
    """Raised when fetching top tracks or creating a playlist fails."""

    def __init__(
        self,
        message: str = "Playlist operation failed",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status_code = status_code

    @property
    def status_code(self) -> int | None:
        return self._status_code


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(FestivalPlaylistError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
