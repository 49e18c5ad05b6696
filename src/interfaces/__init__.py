"""Public interface definitions for all external service providers.

Every external API used by festivalPlaylist is accessed through the
abstract base classes in this package.  Concrete adapters live in
``src/providers/`` and are wired together in ``src/main.py``.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    IArtistSearchProvider      →  SpotifyProvider
    IPlaylistProvider          →  SpotifyProvider
    IOCRProvider               →  TesseractOCRProvider
"""

from src.interfaces.artist_search_provider import IArtistSearchProvider
from src.interfaces.ocr_provider import IOCRProvider
from src.interfaces.playlist_provider import IPlaylistProvider

__all__ = [
    "IArtistSearchProvider",
    "IOCRProvider",
    "IPlaylistProvider",
]
