"""Standalone CLI for resolving a festival lineup in the terminal.

Usage::

    python -m src.cli.resolve lineup.jpg --token "$SPOTIFY_ACCESS_TOKEN"
    python -m src.cli.resolve lineup.txt --tracks 5 --playlist-name "Primavera 2026"
    python -m src.cli.resolve lineup.png --json

Accepts a JPEG, PNG or WEBP poster (OCR'd with Tesseract) or a plain text
file.  Every candidate name is resolved against Spotify; whenever a name is
ambiguous the shortlist is printed and the answer is read from stdin:

    1..N  choose that artist
    0     none of these (the shortlist is never offered again this run)
    q     stop; artists accepted so far are kept

With ``--playlist-name`` a private playlist is created from the resolved
artists once the run completes.
"""

from __future__ import annotations

import argparse
import asyncio
import hashlib
import json
import logging
import os
import sys
from collections.abc import Callable
from pathlib import Path

import structlog

from src.models.artist import ScoredCandidate
from src.models.lineup import LineupImage
from src.models.playlist import ArtistTrackSelection
from src.models.run import DisambiguationNeeded, RunComplete
from src.utils.errors import PlaylistError

_IMAGE_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}
_TOKEN_ENV_VAR = "SPOTIFY_ACCESS_TOKEN"

CHOOSE = "choose"
REJECT = "reject"
CANCEL = "cancel"


# ---------------------------------------------------------------------------
# Formatting and input helpers
# ---------------------------------------------------------------------------


def format_shortlist(query_name: str, shortlist: list[ScoredCandidate]) -> str:
    """Render a shortlist as a numbered menu."""
    lines = [f'\n"{query_name}" is ambiguous. Which artist did you mean?']
    for index, candidate in enumerate(shortlist, start=1):
        artist = candidate.artist
        genres = ", ".join(sorted(artist.genres)[:3]) or "no genres"
        lines.append(
            f"  {index}. {artist.name}  ({artist.follower_count:,} followers; {genres})"
        )
    lines.append("  0. None of these")
    lines.append("  q. Stop processing")
    return "\n".join(lines)


def parse_choice(answer: str, shortlist_size: int) -> tuple[str, int | None]:
    """Interpret one line of user input at a shortlist prompt.

    Returns ``(CHOOSE, index)`` with a zero-based index, ``(REJECT, None)``
    or ``(CANCEL, None)``.

    Raises:
        ValueError: If the answer is not a valid menu entry.
    """
    cleaned = answer.strip().lower()
    if cleaned in ("q", "quit"):
        return CANCEL, None
    if cleaned == "0":
        return REJECT, None
    if cleaned.isdigit() and 1 <= int(cleaned) <= shortlist_size:
        return CHOOSE, int(cleaned) - 1
    raise ValueError(f"Enter a number between 0 and {shortlist_size}, or q")


def load_lineup_input(path: Path, max_bytes: int) -> LineupImage | str:
    """Read *path* as a poster image or as lineup text, by extension."""
    suffix = path.suffix.lower()
    if suffix not in _IMAGE_CONTENT_TYPES:
        return path.read_text(encoding="utf-8")

    image_data = path.read_bytes()
    if len(image_data) > max_bytes:
        raise ValueError(
            f"File too large: {len(image_data):,} bytes. Maximum: {max_bytes:,} bytes."
        )
    image = LineupImage(
        filename=path.name,
        content_type=_IMAGE_CONTENT_TYPES[suffix],
        file_size=len(image_data),
        image_hash=hashlib.sha256(image_data).hexdigest(),
    )
    image.__pydantic_private__["_image_data"] = image_data
    return image


def _configure_cli_logging(verbose: bool) -> None:
    """Send logs to stderr so stdout only carries the run's output."""
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Run driver
# ---------------------------------------------------------------------------


async def _ask(prompt: Callable[[str], str], shortlist_size: int) -> tuple[str, int | None]:
    while True:
        answer = await asyncio.to_thread(prompt, "> ")
        try:
            return parse_choice(answer, shortlist_size)
        except ValueError as exc:
            print(exc, file=sys.stderr)


async def drive_run(
    manager,  # noqa: ANN001
    raw_text: str,
    auth_token: str,
    track_count: int | None = None,
    prompt: Callable[[str], str] = input,
) -> RunComplete:
    """Start a run and answer its shortlists interactively until it completes."""
    state = await manager.start_run(raw_text, auth_token, default_track_count=track_count)
    print(f"Found {len(state.candidates)} candidate names.", file=sys.stderr)

    async for event in manager.events(state.run_id):
        if isinstance(event, DisambiguationNeeded):
            print(format_shortlist(event.query_name, event.shortlist), file=sys.stderr)
            action, index = await _ask(prompt, len(event.shortlist))
            if action == CANCEL:
                manager.cancel_run(state.run_id)
            elif action == REJECT:
                manager.resolve_disambiguation(state.run_id, None)
            else:
                manager.resolve_disambiguation(state.run_id, event.shortlist[index].artist.id)
        elif isinstance(event, RunComplete):
            return event

    return await manager.wait(state.run_id)


def _format_result(complete: RunComplete) -> str:
    lines = [complete.summary, ""]
    for resolved in complete.artists:
        lines.append(f"  {resolved.query_name:<30} -> {resolved.artist.name} ({resolved.outcome.value})")
    return "\n".join(lines)


async def _run(args: argparse.Namespace) -> int:
    """Resolve the lineup and optionally build a playlist; returns the exit code."""
    # Deferred import: src.main assembles the whole application.
    from src.main import _build_all, settings

    _configure_cli_logging(args.verbose)

    auth_token = args.token or os.environ.get(_TOKEN_ENV_VAR, "")
    if not auth_token:
        print(f"Error: pass --token or set {_TOKEN_ENV_VAR}", file=sys.stderr)
        return 1

    path = Path(args.input)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    try:
        lineup = load_lineup_input(path, settings.max_upload_bytes)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    components = _build_all(settings)
    try:
        if isinstance(lineup, LineupImage):
            print(f"Reading poster: {path.name}", file=sys.stderr)
            raw_text = await components["ocr_service"].extract_lineup_text(lineup)
        else:
            raw_text = lineup

        complete = await drive_run(
            components["run_manager"], raw_text, auth_token, track_count=args.tracks
        )

        output: dict = {"run": complete.model_dump(mode="json")}
        if args.playlist_name and complete.artists:
            selections = [
                ArtistTrackSelection(artist_id=r.artist.id, track_count=r.track_count)
                for r in complete.artists
            ]
            try:
                playlist = await components["playlist_builder"].build(
                    args.playlist_name, selections, auth_token
                )
            except PlaylistError as exc:
                print(f"Error: playlist not created: {exc}", file=sys.stderr)
            else:
                output["playlist"] = playlist.model_dump(mode="json")

        if args.json:
            print(json.dumps(output, indent=2, default=str))
        else:
            print(_format_result(complete))
            if "playlist" in output:
                print(f"\nPlaylist: {output['playlist']['url'] or output['playlist']['playlist_id']}")
    finally:
        await components["run_manager"].shutdown()
        await components["http_client"].aclose()

    return 0 if complete.failure_reason is None else 2


def main() -> None:
    """Parse CLI arguments and run the resolver."""
    parser = argparse.ArgumentParser(
        prog="festival-playlist",
        description="Resolve a festival lineup to Spotify artists and build a playlist.",
    )
    parser.add_argument("input", help="Poster image (JPEG, PNG, WEBP) or a text file")
    parser.add_argument("--token", default=None, help=f"Spotify bearer token (or ${_TOKEN_ENV_VAR})")
    parser.add_argument("--tracks", type=int, default=None, help="Top tracks per artist")
    parser.add_argument("--playlist-name", default=None, help="Create a playlist with this name")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs on stderr")
    args = parser.parse_args()

    if args.tracks is not None and not 1 <= args.tracks <= 10:
        parser.error("--tracks must be between 1 and 10")

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
