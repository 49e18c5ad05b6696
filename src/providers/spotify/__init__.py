"""Spotify Web API adapter implementing artist search and playlist creation."""

from src.providers.spotify.spotify_provider import SpotifyProvider

__all__ = ["SpotifyProvider"]
