"""Cross-pass line merging for the Tesseract provider.

Each preprocessing pass (see ``image_preprocessor``) produces its own set
of line regions, so the same lineup row ("BICEP - FOUR TET - ROSE") shows
up in several passes with slightly different misreads.  Two helpers:

1. **deduplicate_lines** -- Fuzzy-matches line regions across passes and
   keeps the highest-confidence reading of each line.
2. **merge_passes** -- Applies a confidence floor, deduplicates, and
   reassembles the survivors in reading order (top to bottom, then left to
   right) so the normalizer sees rows in poster order.
"""

from __future__ import annotations

from typing import NamedTuple

from rapidfuzz import fuzz

from src.models.lineup import TextRegion

# Two lines differing by more than this length ratio cannot be duplicates.
_MIN_LENGTH_RATIO = 0.5


class MergedText(NamedTuple):
    raw_text: str
    confidence: float
    regions: list[TextRegion]


def deduplicate_lines(
    regions: list[TextRegion],
    similarity_threshold: float = 0.85,
) -> list[TextRegion]:
    """Remove near-duplicate line regions, keeping the highest-confidence one.

    Uses ``fuzz.ratio`` rather than a token-sorted comparison: on a lineup
    the order of names within a row is meaningful, and "A - B" and "B - A"
    from two different rows must both survive.

    Args:
        regions: Line regions, possibly from different OCR passes.
        similarity_threshold: Minimum similarity (0.0--1.0) for two lines to
            count as the same line.

    Returns:
        Deduplicated regions in first-seen order.
    """
    kept: list[TextRegion] = []
    kept_keys: list[str] = []

    for region in regions:
        key = " ".join(region.text.lower().split())
        if not key:
            continue

        for idx, existing in enumerate(kept_keys):
            shorter, longer = sorted((len(key), len(existing)))
            if shorter / longer < _MIN_LENGTH_RATIO:
                continue
            if fuzz.ratio(key, existing) / 100.0 >= similarity_threshold:
                if region.confidence > kept[idx].confidence:
                    kept[idx] = region
                    kept_keys[idx] = key
                break
        else:
            kept.append(region)
            kept_keys.append(key)

    return kept


def merge_passes(
    passes: list[list[TextRegion]],
    min_region_confidence: float = 0.15,
    similarity_threshold: float = 0.85,
) -> MergedText | None:
    """Merge line regions from several preprocessing passes.

    Args:
        passes: One list of line regions per pass; empty lists are allowed.
        min_region_confidence: Regions below this are treated as noise.
        similarity_threshold: Passed to :func:`deduplicate_lines`.

    Returns:
        The merged text, its average confidence and the kept regions, or
        ``None`` when no region clears the confidence floor.
    """
    candidates = [
        region
        for regions in passes
        for region in regions
        if region.confidence >= min_region_confidence
    ]
    merged = deduplicate_lines(candidates, similarity_threshold)
    if not merged:
        return None

    merged.sort(key=lambda r: (r.y, r.x))
    confidence = sum(r.confidence for r in merged) / len(merged)
    return MergedText(
        raw_text="\n".join(r.text for r in merged),
        confidence=min(1.0, confidence),
        regions=merged,
    )
