"""
Keyword-based preference extraction from free chat text.

extract_signals() is pure: the same text always yields the same ordered,
deduplicated list of SignalDraft values, and nothing touches storage.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, asdict
from typing import Optional

from movie_chat.models import SignalType


# (lowercase keyword, canonical genre label), checked in this order
GENRE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("action", "Action"),
    ("sci-fi", "Sci-Fi"),
    ("science fiction", "Sci-Fi"),
    ("comedy", "Comedy"),
    ("romance", "Romance"),
    ("horror", "Horror"),
    ("drama", "Drama"),
    ("thriller", "Thriller"),
    ("animation", "Animation"),
)

POSITIVE_MARKERS = re.compile(r"\b(like|love|enjoy|prefer)\b", re.IGNORECASE)
NEGATIVE_MARKERS = re.compile(
    r"\b(dislike|hate|don't like|do not like)\b", re.IGNORECASE
)

# "1990s" still yields 1990; a fifth digit means it is not a year
YEAR_MIN_PATTERNS = tuple(
    re.compile(rf"\b{word}\s+(\d{{4}})(?!\d)", re.IGNORECASE)
    for word in ("after", "since", "from")
)
YEAR_MAX_PATTERNS = tuple(
    re.compile(rf"\b{word}\s+(\d{{4}})(?!\d)", re.IGNORECASE)
    for word in ("before", "until")
)

EXPLICIT_CONFIDENCE = 0.9
BASELINE_CONFIDENCE = 0.6
YEAR_CONFIDENCE = 1.0


@dataclass(frozen=True)
class SignalDraft:
    signal_type: SignalType
    value: str
    confidence: float

    @property
    def key(self) -> tuple[str, str]:
        return (self.signal_type.value, self.value)

    def as_dict(self) -> dict:
        d = asdict(self)
        d["signal_type"] = self.signal_type.value
        return d


def _first_year(patterns, text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def extract_signals(
    text: Optional[str],
    genre_keywords: tuple[tuple[str, str], ...] = GENRE_KEYWORDS,
) -> list[SignalDraft]:
    """
    Map free text to preference signal drafts.

    Genre signals come first (keyword-table order), then year_min, then
    year_max. Two drafts never share (type, value).
    """
    raw = text or ""
    lowered = raw.lower()

    positive = bool(POSITIVE_MARKERS.search(raw))
    negative = bool(NEGATIVE_MARKERS.search(raw))

    genre_type = SignalType.DISLIKE_GENRE if negative else SignalType.LIKE_GENRE
    genre_confidence = (
        EXPLICIT_CONFIDENCE if positive or negative else BASELINE_CONFIDENCE
    )

    drafts: list[SignalDraft] = []
    for keyword, label in genre_keywords:
        if keyword in lowered:
            drafts.append(SignalDraft(genre_type, label, genre_confidence))

    year_min = _first_year(YEAR_MIN_PATTERNS, raw)
    if year_min:
        drafts.append(SignalDraft(SignalType.YEAR_MIN, year_min, YEAR_CONFIDENCE))

    year_max = _first_year(YEAR_MAX_PATTERNS, raw)
    if year_max:
        drafts.append(SignalDraft(SignalType.YEAR_MAX, year_max, YEAR_CONFIDENCE))

    # Unique + preserve order
    seen = set()
    unique = []
    for d in drafts:
        if d.key not in seen:
            seen.add(d.key)
            unique.append(d)

    return unique
