"""Unit tests for candidate/artist match scoring and shortlist construction."""

from __future__ import annotations

import math
from collections.abc import Callable

import pytest

from src.models.artist import ArtistRecord
from src.utils.match_scoring import build_shortlist, normalize_for_match, score_match


class TestNormalizeForMatch:
    def test_lowercases_and_strips_punctuation(self) -> None:
        assert normalize_for_match("  Mr. Oizo!! ") == "mr oizo"

    def test_collapses_whitespace(self) -> None:
        assert normalize_for_match("Bicep  &  Hammer") == "bicep hammer"


class TestScoreMatch:
    def test_exact_match_of_a_big_artist_clears_auto_accept(
        self, make_artist: Callable[..., ArtistRecord]
    ) -> None:
        weeknd = make_artist("weeknd", "The Weeknd", followers=90_000_000, popularity=95)
        expected = 100 + 30 + 9.5 + math.log(90_000_001) / 2
        assert score_match("The Weeknd", weeknd) == pytest.approx(expected)
        assert score_match("The Weeknd", weeknd) >= 80

    def test_exact_match_is_case_and_punctuation_insensitive(
        self, make_artist: Callable[..., ArtistRecord]
    ) -> None:
        assert score_match("MR OIZO", make_artist("a", "Mr. Oizo")) == pytest.approx(130.0)

    def test_candidate_inside_artist_name(self, make_artist: Callable[..., ArtistRecord]) -> None:
        # 50 containment + 30 overlap - 7 length difference
        assert score_match("Bicep", make_artist("a", "Bicep & Hammer")) == pytest.approx(73.0)

    def test_artist_inside_candidate_name(self, make_artist: Callable[..., ArtistRecord]) -> None:
        # 40 containment + 15 for one of two tokens - 5 length difference
        assert score_match("Bicep Live", make_artist("a", "Bicep")) == pytest.approx(50.0)

    def test_exact_beats_longer_name(self, make_artist: Callable[..., ArtistRecord]) -> None:
        exact = score_match("Bicep", make_artist("a", "Bicep"))
        longer = score_match("Bicep", make_artist("b", "Bicep & Hammer"))
        assert exact > longer

    def test_unrelated_name_scores_negative(self, make_artist: Callable[..., ArtistRecord]) -> None:
        assert score_match("Bicep", make_artist("a", "Completely Different")) < 0

    def test_missing_popularity_scores_zero(self, make_artist: Callable[..., ArtistRecord]) -> None:
        with_none = score_match("Bicep", make_artist("a", "Bicep", popularity=None))
        with_zero = score_match("Bicep", make_artist("a", "Bicep", popularity=0))
        assert with_none == with_zero

    @pytest.mark.parametrize("low, high", [(0, 1), (10, 10_000), (5_000, 5_000_000)])
    def test_more_followers_never_lowers_score(
        self, make_artist: Callable[..., ArtistRecord], low: int, high: int
    ) -> None:
        fewer = score_match("Rose", make_artist("a", "Rose Gray", followers=low))
        more = score_match("Rose", make_artist("a", "Rose Gray", followers=high))
        assert more >= fewer


class TestBuildShortlist:
    def test_sorted_descending_and_truncated(
        self, make_artist: Callable[..., ArtistRecord]
    ) -> None:
        artists = [
            make_artist("gray", "Rose Gray"),       # 75
            make_artist("rosetta", "Rosetta"),      # 77
            make_artist("rose", "Rose"),            # 130
            make_artist("rosebud", "Rosebud"),      # 77
        ]
        shortlist = build_shortlist("Rose", artists, limit=3)
        assert [c.artist.id for c in shortlist] == ["rose", "rosetta", "rosebud"]

    def test_ties_keep_provider_order(self, make_artist: Callable[..., ArtistRecord]) -> None:
        artists = [make_artist("first", "Bicep"), make_artist("second", "Bicep")]
        shortlist = build_shortlist("Bicep", artists)
        assert [c.artist.id for c in shortlist] == ["first", "second"]

    def test_score_at_minimum_is_excluded(self, make_artist: Callable[..., ArtistRecord]) -> None:
        # Token overlap only: exactly 30 points.
        reversed_name = make_artist("a", "Tet Four")
        assert score_match("Four Tet", reversed_name) == pytest.approx(30.0)
        assert build_shortlist("Four Tet", [reversed_name], min_score=30.0) == []

    def test_empty_results(self) -> None:
        assert build_shortlist("Bicep", []) == []

    def test_scores_are_attached(self, make_artist: Callable[..., ArtistRecord]) -> None:
        shortlist = build_shortlist("Bicep", [make_artist("a", "Bicep")])
        assert shortlist[0].score == pytest.approx(130.0)
