"""
Turn a session's accumulated preference signals into a movie list.

Genres accumulate across the session; year bounds are
last-occurrence-wins (a later "after 1990" replaces an earlier
"after 2010", it is not merged with it). Genre matching is substring
containment on the catalog's delimited genre string, so a label can
match inside a longer compound genre name.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, asdict, field
from typing import Iterable, Optional

from movie_chat import repository, tracing
from movie_chat.errors import ValidationError
from movie_chat.models import Movie, PreferenceSignal, SignalType

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION_LIMIT = 20
MAX_RECOMMENDATION_LIMIT = 50


@dataclass(frozen=True)
class RecommendationBasis:
    liked_genres: tuple[str, ...] = ()
    disliked_genres: tuple[str, ...] = ()
    year_min: Optional[int] = None
    year_max: Optional[int] = None

    @property
    def is_cold_start(self) -> bool:
        return not self.liked_genres and self.year_min is None and self.year_max is None

    def as_dict(self) -> dict:
        d = asdict(self)
        d["liked_genres"] = list(self.liked_genres)
        d["disliked_genres"] = list(self.disliked_genres)
        return d


@dataclass(frozen=True)
class FilterCriteria:
    """Parameters for repository.query_movies. Empty criteria match everything."""
    year_min: Optional[int] = None
    year_max: Optional[int] = None
    include_genres: tuple[str, ...] = ()
    exclude_genres: tuple[str, ...] = ()
    exclude_rated_by: Optional[int] = None

    @classmethod
    def from_basis(cls, basis: RecommendationBasis, user_id: int) -> "FilterCriteria":
        if basis.is_cold_start:
            return cls()
        return cls(
            year_min=basis.year_min,
            year_max=basis.year_max,
            include_genres=basis.liked_genres,
            exclude_genres=basis.disliked_genres,
            exclude_rated_by=user_id,
        )


@dataclass
class Recommendation:
    basis: RecommendationBasis
    movies: list[Movie] = field(default_factory=list)

    @property
    def cold_start(self) -> bool:
        return self.basis.is_cold_start


def _parse_year(signal: PreferenceSignal) -> Optional[int]:
    try:
        return int(signal.signal_value)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed year signal %s=%r", signal.signal_type, signal.signal_value)
        return None


def fold_signals(signals: Iterable[PreferenceSignal]) -> RecommendationBasis:
    """
    Fold signals (in creation order) into a RecommendationBasis.
    """
    liked: dict[str, None] = {}
    disliked: dict[str, None] = {}
    year_min = year_max = None

    for s in signals:
        if s.signal_type == SignalType.LIKE_GENRE.value:
            liked.setdefault(s.signal_value)
        elif s.signal_type == SignalType.DISLIKE_GENRE.value:
            disliked.setdefault(s.signal_value)
        elif s.signal_type in (SignalType.YEAR_MIN.value, SignalType.YEAR_MAX.value):
            year = _parse_year(s)
            if year is None:
                continue
            # last occurrence wins
            if s.signal_type == SignalType.YEAR_MIN.value:
                year_min = year
            else:
                year_max = year

    return RecommendationBasis(
        liked_genres=tuple(liked),
        disliked_genres=tuple(disliked),
        year_min=year_min,
        year_max=year_max,
    )


def clamp_limit(limit: int) -> int:
    """Reject limits below 1; cap the rest at MAX_RECOMMENDATION_LIMIT."""
    if limit < 1:
        raise ValidationError("limit must be a positive integer")
    return min(limit, MAX_RECOMMENDATION_LIMIT)


def recommend(session_id: int, user_id: int,
              limit: int = DEFAULT_RECOMMENDATION_LIMIT) -> Recommendation:
    """
    Recommend movies for the session owned by user_id.

    Raises ValidationError for a limit below 1, NotFoundError /
    ForbiddenError for a missing or foreign session.
    """
    limit = clamp_limit(limit)
    repository.get_owned_session(session_id, user_id)

    basis = fold_signals(repository.list_signals_by_session(session_id))
    criteria = FilterCriteria.from_basis(basis, user_id)
    movies = repository.query_movies(criteria, limit)

    logger.info(
        "Recommended %d movies for session %s (cold_start=%s)",
        len(movies), session_id, basis.is_cold_start,
    )
    tracing.trace_recommendation(
        user_id=user_id,
        session_id=session_id,
        basis=basis.as_dict(),
        cold_start=basis.is_cold_start,
        movie_ids=[m.id for m in movies],
    )

    return Recommendation(basis=basis, movies=movies)
