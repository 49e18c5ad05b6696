"""CLI tools for festivalPlaylist.

- ``python -m src.cli`` / ``python -m src.cli.resolve`` - resolve a lineup
  poster or text file against Spotify in the terminal, answering ambiguous
  names interactively, and optionally build a playlist.
"""
