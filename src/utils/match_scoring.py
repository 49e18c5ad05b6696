"""Match scoring between a candidate name and an artist record.

The score is additive and unbounded, built from five signals:

1. **Name containment** -- +100 for an exact normalized match, +50 when
   the candidate is a substring of the artist name, +40 when the artist
   name is a substring of the candidate.
2. **Token overlap** -- up to +30, the share of candidate tokens found
   inside (or containing) some artist token.
3. **Popularity** -- ``popularity / 10``, so at most +10.
4. **Audience size** -- ``ln(followers + 1) / 2``, roughly +8 for an artist
   with ten million followers.
5. **Length penalty** -- minus the absolute difference in normalized name
   lengths, so "Bicep" beats "Bicep & Hammer" for the query "Bicep".

With the default thresholds a score of 80 or more is accepted without
asking, and anything at or below 30 never reaches the shortlist.
"""

from __future__ import annotations

import math
import re

from src.models.artist import ArtistRecord, ScoredCandidate

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

EXACT_MATCH_POINTS = 100.0
CANDIDATE_IN_ARTIST_POINTS = 50.0
ARTIST_IN_CANDIDATE_POINTS = 40.0
TOKEN_OVERLAP_POINTS = 30.0

DEFAULT_MIN_SCORE = 30.0
DEFAULT_SHORTLIST_LIMIT = 3


def normalize_for_match(text: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace and trim.

    Args:
        text: A candidate name or an artist name.

    Returns:
        The comparison form of *text*.
    """
    lowered = _NON_WORD.sub("", text.lower())
    return _WHITESPACE.sub(" ", lowered).strip()


def score_match(candidate_name: str, artist: ArtistRecord) -> float:
    """Score how well *artist* matches *candidate_name*.

    Args:
        candidate_name: Name taken from the lineup.
        artist: A record returned by the search provider.

    Returns:
        The match score; higher is better and the value may be negative.
    """
    norm_candidate = normalize_for_match(candidate_name)
    norm_artist = normalize_for_match(artist.name)

    score = 0.0
    if norm_artist == norm_candidate:
        score += EXACT_MATCH_POINTS
    elif norm_candidate in norm_artist:
        score += CANDIDATE_IN_ARTIST_POINTS
    elif norm_artist in norm_candidate:
        score += ARTIST_IN_CANDIDATE_POINTS

    score += _token_overlap(norm_candidate, norm_artist) * TOKEN_OVERLAP_POINTS

    if artist.popularity:
        score += artist.popularity / 10

    score += math.log(artist.follower_count + 1) / 2

    score -= abs(len(norm_artist) - len(norm_candidate))
    return score


def _token_overlap(norm_candidate: str, norm_artist: str) -> float:
    """Share of candidate tokens matched by any artist token, in [0, 1]."""
    candidate_tokens = norm_candidate.split(" ")
    artist_tokens = norm_artist.split(" ")
    matching = sum(
        1
        for ct in candidate_tokens
        if any(at in ct or ct in at for at in artist_tokens)
    )
    return matching / len(candidate_tokens)


def build_shortlist(
    candidate_name: str,
    artists: list[ArtistRecord],
    *,
    min_score: float = DEFAULT_MIN_SCORE,
    limit: int = DEFAULT_SHORTLIST_LIMIT,
) -> list[ScoredCandidate]:
    """Score *artists* against *candidate_name* and keep the best few.

    Records scoring at or below *min_score* are dropped.  The sort is
    stable, so equal scores keep the provider's ranking.

    Args:
        candidate_name: Name taken from the lineup.
        artists: Search results, already filtered of rejected identities.
        min_score: Exclusive lower bound for inclusion.
        limit: Maximum shortlist length.

    Returns:
        Scored candidates in descending score order.
    """
    scored = [
        ScoredCandidate(artist=artist, score=score_match(candidate_name, artist))
        for artist in artists
    ]
    shortlisted = [candidate for candidate in scored if candidate.score > min_score]
    shortlisted.sort(key=lambda candidate: candidate.score, reverse=True)
    return shortlisted[:limit]
