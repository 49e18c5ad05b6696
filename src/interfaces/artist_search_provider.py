"""Abstract base class for artist-search providers.

The resolver only ever needs one capability from the streaming service:
"search artists by free text with this user's token".  Keeping it behind an
interface lets tests drive the resolver with a scripted fake and keeps the
Spotify wire format out of the pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.artist import ArtistRecord


class IArtistSearchProvider(ABC):
    """Contract for services that look up artist identities by name."""

    @abstractmethod
    async def search_artists(self, query: str, auth_token: str) -> list[ArtistRecord]:
        """Return artists matching *query*, in the provider's relevance order.

        Parameters
        ----------
        query:
            Free-text search string (one query variant of a candidate name).
        auth_token:
            The caller's bearer token, forwarded verbatim.

        Returns
        -------
        list[ArtistRecord]
            Zero or more records; an empty list is a normal "no hits" answer.

        Raises
        ------
        src.utils.errors.SearchError
            On transport failure or a non-2xx response.  ``kind`` is
            ``AUTH`` for 401/403, ``RATE_LIMITED`` for 429 and
            ``TRANSIENT`` otherwise.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"spotify"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured for use."""
