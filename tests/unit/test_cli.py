"""Unit tests for the terminal resolver CLI (src.cli.resolve)."""

from __future__ import annotations

import asyncio
import sys
from argparse import Namespace
from collections.abc import Callable
from pathlib import Path

import pytest

from src.cli.resolve import (
    CANCEL,
    CHOOSE,
    REJECT,
    _run,
    drive_run,
    format_shortlist,
    load_lineup_input,
    main,
    parse_choice,
)
from src.models.artist import ArtistRecord, ScoredCandidate
from src.models.lineup import LineupImage
from src.pipeline.run_manager import RunManager

TOKEN = "Bearer test-token"


def _answers(*values: str) -> Callable[[str], str]:
    """A prompt function that replays *values* in order."""
    remaining = list(values)

    def _prompt(_: str) -> str:
        return remaining.pop(0)

    return _prompt


@pytest.fixture
def rose_scripted(search_provider, make_artist: Callable[..., ArtistRecord]) -> None:
    search_provider.results["Rose"] = [
        make_artist("rosetta", "Rosetta"),
        make_artist("gray", "Rose Gray", popularity=30),
    ]
    search_provider.results["Bicep"] = [make_artist("bicep", "Bicep")]


# ======================================================================
# Input helpers
# ======================================================================


class TestParseChoice:
    @pytest.mark.parametrize(
        "answer, expected",
        [
            ("1", (CHOOSE, 0)),
            (" 3 ", (CHOOSE, 2)),
            ("0", (REJECT, None)),
            ("q", (CANCEL, None)),
            ("QUIT", (CANCEL, None)),
        ],
    )
    def test_valid_answers(self, answer: str, expected: tuple) -> None:
        assert parse_choice(answer, 3) == expected

    @pytest.mark.parametrize("answer", ["4", "-1", "", "rose", "1.5"])
    def test_invalid_answers(self, answer: str) -> None:
        with pytest.raises(ValueError, match="between 0 and 3"):
            parse_choice(answer, 3)


class TestFormatShortlist:
    def test_numbered_menu(self, make_artist: Callable[..., ArtistRecord]) -> None:
        shortlist = [
            ScoredCandidate(
                artist=make_artist("gray", "Rose Gray", followers=12000, genres=("pop", "dance")),
                score=78.0,
            ),
            ScoredCandidate(artist=make_artist("rosetta", "Rosetta"), score=77.0),
        ]

        menu = format_shortlist("Rose", shortlist)

        assert '"Rose" is ambiguous' in menu
        assert "1. Rose Gray  (12,000 followers; dance, pop)" in menu
        assert "2. Rosetta  (0 followers; no genres)" in menu
        assert "0. None of these" in menu
        assert "q. Stop processing" in menu


class TestLoadLineupInput:
    def test_text_file(self, tmp_path: Path) -> None:
        path = tmp_path / "lineup.txt"
        path.write_text("Bicep\nFour Tet\n", encoding="utf-8")
        assert load_lineup_input(path, max_bytes=1024) == "Bicep\nFour Tet\n"

    def test_image_file(self, tmp_path: Path, png_bytes: bytes) -> None:
        path = tmp_path / "poster.PNG"
        path.write_bytes(png_bytes)

        lineup = load_lineup_input(path, max_bytes=len(png_bytes))

        assert isinstance(lineup, LineupImage)
        assert lineup.content_type == "image/png"
        assert lineup.file_size == len(png_bytes)
        assert lineup.image_data == png_bytes

    def test_oversized_image(self, tmp_path: Path, png_bytes: bytes) -> None:
        path = tmp_path / "poster.jpg"
        path.write_bytes(png_bytes)
        with pytest.raises(ValueError, match="File too large"):
            load_lineup_input(path, max_bytes=10)


# ======================================================================
# Interactive run driver
# ======================================================================


class TestDriveRun:
    @pytest.mark.asyncio
    async def test_choice_is_forwarded(self, run_manager: RunManager, rose_scripted) -> None:
        complete = await drive_run(run_manager, "Rose\nBicep", TOKEN, prompt=_answers("1"))

        assert [r.artist.id for r in complete.artists] == ["gray", "bicep"]

    @pytest.mark.asyncio
    async def test_invalid_answer_is_asked_again(
        self, run_manager: RunManager, rose_scripted, capsys: pytest.CaptureFixture[str]
    ) -> None:
        complete = await drive_run(
            run_manager, "Rose", TOKEN, prompt=_answers("7", "2")
        )

        assert complete.artists[0].artist.id == "rosetta"
        assert "between 0 and 2" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_zero_rejects_shortlist(self, run_manager: RunManager, rose_scripted) -> None:
        complete = await drive_run(run_manager, "Rose", TOKEN, prompt=_answers("0"))
        assert complete.resolved_count == 0
        assert complete.unresolved_count == 1

    @pytest.mark.asyncio
    async def test_quit_cancels_and_keeps_accepted(
        self, run_manager: RunManager, rose_scripted
    ) -> None:
        complete = await drive_run(run_manager, "Bicep\nRose\nOvermono", TOKEN, prompt=_answers("q"))

        assert complete.cancelled
        assert [r.artist.id for r in complete.artists] == ["bicep"]
        assert complete.skipped_count == 1

    @pytest.mark.asyncio
    async def test_track_count_passed_through(
        self, run_manager: RunManager, rose_scripted
    ) -> None:
        complete = await drive_run(run_manager, "Bicep", TOKEN, track_count=6)
        assert complete.artists[0].track_count == 6


# ======================================================================
# Entry points
# ======================================================================


class TestEntryPoints:
    def test_missing_token(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.delenv("SPOTIFY_ACCESS_TOKEN", raising=False)
        path = tmp_path / "lineup.txt"
        path.write_text("Bicep")
        args = Namespace(
            input=str(path), token=None, tracks=None, playlist_name=None, json=False, verbose=False
        )

        assert asyncio.run(_run(args)) == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        args = Namespace(
            input=str(tmp_path / "absent.txt"),
            token="abc",
            tracks=None,
            playlist_name=None,
            json=False,
            verbose=False,
        )
        assert asyncio.run(_run(args)) == 1

    def test_tracks_out_of_range(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "argv", ["festival-playlist", "lineup.txt", "--tracks", "11"])
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 2
