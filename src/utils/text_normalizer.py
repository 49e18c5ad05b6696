"""Text normalization for festival lineup posters.

This module handles three concerns:

1. **Lineup normalization** -- Turns raw OCR text from a poster into an
   ordered, case-insensitively deduplicated list of candidate artist
   names.  Banner lines (day and month headers, promotional phrases),
   stage numbers and years are stripped, punctuation is reduced to a
   single separator, and "A x B" collaborations are split into one
   candidate per artist.

2. **OCR error correction** -- Fixes systematic character substitutions
   that Tesseract makes on stylised poster typography (e.g. "rn" -> "m",
   "0" -> "O", "VV" -> "W").

3. **Query variants** -- Builds the search strings tried for one
   candidate, so that an OCR-mangled multi-word name still has a chance
   to match through its first word alone.

Fragments that fail a filter are dropped silently: a missed artist costs
less than a wasted search that may surface a spurious match.
"""

import re

# ------------------------------------------------------------------
# Lineup vocabulary
# ------------------------------------------------------------------

_DAY_NAMES = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)
_MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
)
_PROMO_WORDS = ("presents", "present", "debut", "premiere", "world", "bunker")
_CONNECTOR_WORDS = ("of", "the", "and", "or", "feat", "ft")
# Words that showed up as whole fragments on real posters without ever
# being an act ("... & FRIENDS", "ULTRA").
_DENYLIST_WORDS = ("friends", "ultra")
_VENUE_NOUNS = ("stage", "tent", "arena", "hall", "room", "zone", "area", "lineup", "festival")

# Tokens Tesseract reliably hallucinates from poster artwork.
_OCR_GARBAGE_TOKENS = ("INBLQ", "BIEBANG", "lallfw", "Mainrlazer", "vﬂllllgThllg")

# The delimiter token quote-like glyphs are rewritten to.  Collaborations
# printed as "A x B" use the same token.
COLLAB_DELIMITER = "x"

# ------------------------------------------------------------------
# Stage 1-3 patterns: banner stripping, codes, punctuation
# ------------------------------------------------------------------

# Day headers are matched in any case ("FRIDAY", "Friday"); everything
# from the header to the end of its line is dropped.
_DAY_BANNER = re.compile(
    r"\b(?:" + "|".join(_DAY_NAMES) + r")\b.*$",
    re.IGNORECASE | re.MULTILINE,
)
_PROMO_BANNER = re.compile(
    r"\b(?:presents?|debut|premiere|world|bunker)\b.*$",
    re.IGNORECASE | re.MULTILINE,
)
# Month headers only in capitals: "MAY 24" is a banner, "Tove May" is not.
_MONTH_BANNER = re.compile(
    r"\b(?:" + "|".join(m.upper() for m in _MONTH_NAMES) + r")\b.*$",
    re.MULTILINE,
)
_GARBAGE_TOKENS = re.compile(
    r"\b(?:" + "|".join(re.escape(t) for t in _OCR_GARBAGE_TOKENS) + r")\b"
)

# Multi-digit numbers (years, times, stage numbers) and letter+digit codes ("B2").
_NUMBERS_AND_CODES = re.compile(r"\d{2,}|\b[A-Z]\d+\b")

_QUOTE_GLYPHS = re.compile(r"[\"«»“”„‟″]")
# ASCII punctuation except "+", which is joined back into a space later.
_PUNCTUATION = re.compile(r"[!#$%&'()*,./:;<=>?@\[\]\\^_`{|}~]")

# ------------------------------------------------------------------
# Stage 4-5 patterns: splitting and fragment cleanup
# ------------------------------------------------------------------

# Hyphen runs, line breaks, ampersands, and the standalone lowercase
# delimiter token.  "Alex" or "Xavier" are never split.
_SPLIT_PATTERN = re.compile(r"[-\r\n&]+|(?<!\S)x(?!\S)")
_WHITESPACE = re.compile(r"\s+")
_EDGE_DELIMITERS = re.compile(r"^(?:x\s+)+|(?:\s+x)+$")
_PLUS_JOIN = re.compile(r"\s*\+\s*")

# ------------------------------------------------------------------
# Stage 6 filters
# ------------------------------------------------------------------

_HAS_LETTER = re.compile(r"[A-Za-z]")
_ONLY_DELIMITERS = re.compile(r"^[x\s]+$")
_STOPWORD = re.compile(
    r"^(?:"
    + "|".join(_CONNECTOR_WORDS + _PROMO_WORDS + _DENYLIST_WORDS + _DAY_NAMES + _MONTH_NAMES)
    + r")$",
    re.IGNORECASE,
)
_VENUE_WORD = re.compile(r"\b(?:" + "|".join(_VENUE_NOUNS) + r")\b", re.IGNORECASE)
_ALL_CAPS = re.compile(r"^[A-Z\s]+$")
_CODE_TOKEN = re.compile(r"^(?=[A-Z0-9]*\d)[A-Z0-9]{5,}$", re.IGNORECASE)

# Stage 7: collaboration marker that survived splitting (e.g. "Bicep X Hammer").
_COLLAB_MARKER = re.compile(r"\s+x\s+", re.IGNORECASE)

_MIN_NAME_LENGTH = 2
_MAX_NAME_LENGTH = 50
# All-caps fragments longer than this are section headers, not acts.
_MAX_ALL_CAPS_LENGTH = 10


def normalize_lineup(raw_text: str) -> list[str]:
    """Extract candidate artist names from raw poster OCR text.

    Example:
        ``"FRIDAY\\nArtist One - Artist Two x Artist Three"`` ->
        ``["Artist One", "Artist Two", "Artist Three"]``

    Args:
        raw_text: Unstructured text as produced by OCR.

    Returns:
        Candidate names in order of first appearance, with no two entries
        equal under case-insensitive comparison.
    """
    if not raw_text:
        return []

    # 1. Banner lines and known OCR garbage
    cleaned = _DAY_BANNER.sub("", raw_text)
    cleaned = _PROMO_BANNER.sub("", cleaned)
    cleaned = _MONTH_BANNER.sub("", cleaned)
    cleaned = _GARBAGE_TOKENS.sub("", cleaned)

    # 2. Years, stage numbers, codes
    cleaned = _NUMBERS_AND_CODES.sub("", cleaned)

    # 3. Quote glyphs -> delimiter token, other punctuation -> separator
    cleaned = _QUOTE_GLYPHS.sub(f" {COLLAB_DELIMITER} ", cleaned)
    cleaned = _PUNCTUATION.sub("-", cleaned)

    # 4-5. Split and tidy each fragment
    fragments = [_clean_fragment(part) for part in _SPLIT_PATTERN.split(cleaned)]

    # 6-7. Filter, then expand collaborations
    names: list[str] = []
    for fragment in fragments:
        if not is_candidate_name(fragment):
            continue
        names.extend(_expand_collaboration(fragment))

    # 8. Case-insensitive dedup, first appearance wins
    return dedupe_names(names)


def _clean_fragment(fragment: str) -> str:
    cleaned = _WHITESPACE.sub(" ", fragment.strip())
    cleaned = _EDGE_DELIMITERS.sub("", cleaned)
    if cleaned == COLLAB_DELIMITER:
        return ""
    return _PLUS_JOIN.sub(" ", cleaned).strip()


def is_candidate_name(name: str) -> bool:
    """Return ``True`` if *name* could plausibly be a single act."""
    if not _MIN_NAME_LENGTH <= len(name) <= _MAX_NAME_LENGTH:
        return False
    if not _HAS_LETTER.search(name):
        return False
    if _ONLY_DELIMITERS.match(name):
        return False
    if _STOPWORD.match(name):
        return False
    if _VENUE_WORD.search(name):
        return False
    if _ALL_CAPS.match(name) and len(name) > _MAX_ALL_CAPS_LENGTH:
        return False
    if _CODE_TOKEN.match(name):
        return False
    return True


def _expand_collaboration(name: str) -> list[str]:
    parts = [part.strip() for part in _COLLAB_MARKER.split(name)]
    if len(parts) > 1 and all(len(p) > 1 and _HAS_LETTER.search(p) for p in parts):
        return parts
    return [name]


def dedupe_names(names: list[str]) -> list[str]:
    """Drop case-insensitive duplicates, keeping the first spelling seen."""
    seen: set[str] = set()
    unique: list[str] = []
    for name in names:
        key = name.casefold()
        if key in seen:
            continue
        seen.add(key)
        unique.append(name)
    return unique


# ------------------------------------------------------------------
# Query variants
# ------------------------------------------------------------------

_NON_WORD = re.compile(r"[^\w\s]")


def build_query_variants(name: str) -> list[str]:
    """Return the search strings to try for one candidate, in order.

    The full name first, then the name with punctuation replaced by
    spaces, then the first word alone.  Duplicates are removed, so a
    single-word name yields one query.
    """
    full = name.strip()
    spaced = _WHITESPACE.sub(" ", _NON_WORD.sub(" ", full)).strip()
    tokens = full.split()
    first = tokens[0] if tokens else ""

    variants: list[str] = []
    for query in (full, spaced, first):
        if query and query not in variants:
            variants.append(query)
    return variants


# ------------------------------------------------------------------
# OCR error correction
# ------------------------------------------------------------------

# Common character misreads produced by Tesseract on stylised poster text.
# Each tuple is (compiled_regex, replacement).
_OCR_CORRECTIONS: list[tuple[re.Pattern[str], str]] = [
    # "rn" read instead of "m" (e.g. "Arrning" -> "Arming")
    (re.compile(r"(?<=[a-zA-Z])rn(?=[a-zA-Z])"), "m"),
    # Leading "0" before 2+ letters -> "O" (e.g. "0PETH" -> "OPETH")
    (re.compile(r"\b0(?=[a-zA-Z]{2,})"), "O"),
    # Trailing "0" after 2+ letters -> "O" (e.g. "DIPL0" -> "DIPLO")
    (re.compile(r"(?<=[a-zA-Z][a-zA-Z])0\b"), "O"),
    # Leading "1" before 2+ letters -> "l" (e.g. "1orde" -> "lorde")
    (re.compile(r"\b1(?=[a-zA-Z]{2,})"), "l"),
    # Pipe before letters -> "l"
    (re.compile(r"\|(?=[a-zA-Z])"), "l"),
    # "VV" at word start -> "W" (wide display fonts)
    (re.compile(r"\bVV"), "W"),
]


def correct_ocr_errors(text: str) -> str:
    """Apply common OCR character-substitution corrections.

    Args:
        text: Raw OCR text.

    Returns:
        Corrected text.
    """
    corrected = text
    for pattern, replacement in _OCR_CORRECTIONS:
        corrected = pattern.sub(replacement, corrected)
    return corrected
