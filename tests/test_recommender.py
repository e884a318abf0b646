import pytest

from movie_chat import repository, service
from movie_chat.errors import ForbiddenError, NotFoundError, ValidationError
from movie_chat.models import PreferenceSignal
from movie_chat.recommender import (
    MAX_RECOMMENDATION_LIMIT,
    FilterCriteria,
    RecommendationBasis,
    fold_signals,
    recommend,
)


def _sig(signal_type, value):
    return PreferenceSignal(
        session_id=1, user_id=1, message_id=1,
        signal_type=signal_type, signal_value=value, confidence=1.0,
    )


def _ids(rec):
    return [m.id for m in rec.movies]


# ------------------------------------------------------------
# fold_signals
# ------------------------------------------------------------
def test_fold_empty_is_cold_start():
    basis = fold_signals([])
    assert basis == RecommendationBasis()
    assert basis.is_cold_start


def test_fold_dedups_genres_in_insertion_order():
    basis = fold_signals([
        _sig("like_genre", "Drama"),
        _sig("like_genre", "Action"),
        _sig("like_genre", "Drama"),
        _sig("dislike_genre", "Horror"),
    ])
    assert basis.liked_genres == ("Drama", "Action")
    assert basis.disliked_genres == ("Horror",)


def test_fold_years_last_occurrence_wins():
    basis = fold_signals([
        _sig("year_min", "2010"),
        _sig("year_max", "2000"),
        _sig("year_min", "1990"),
        _sig("year_max", "2020"),
    ])
    assert basis.year_min == 1990
    assert basis.year_max == 2020


def test_fold_skips_malformed_year():
    basis = fold_signals([_sig("year_min", "2010"), _sig("year_min", "soon")])
    assert basis.year_min == 2010


def test_dislikes_alone_stay_cold_start():
    basis = fold_signals([_sig("dislike_genre", "Horror")])
    assert basis.is_cold_start
    assert FilterCriteria.from_basis(basis, user_id=1) == FilterCriteria()


def test_criteria_from_basis():
    basis = RecommendationBasis(liked_genres=("Action",), disliked_genres=("Horror",), year_min=2000)
    assert FilterCriteria.from_basis(basis, user_id=9) == FilterCriteria(
        year_min=2000, include_genres=("Action",), exclude_genres=("Horror",), exclude_rated_by=9,
    )


# ------------------------------------------------------------
# recommend
# ------------------------------------------------------------
def test_cold_start_top_rated_with_id_tiebreak(catalog, add_ratings):
    chat = service.create_session(1)
    add_ratings((1, 7, 5.0))

    rec = recommend(chat.id, 1, limit=3)

    # rated movies are not excluded on cold start; 2 and 6 tie on 8.7
    assert _ids(rec) == [7, 2, 6]
    assert rec.cold_start
    assert rec.basis.as_dict() == {
        "liked_genres": [], "disliked_genres": [], "year_min": None, "year_max": None,
    }


def test_filters_genres_years_and_rated(catalog, add_ratings):
    chat = service.create_session(1)
    service.append_message(chat.id, 1, "user", "I love action and thriller movies after 2000")
    service.append_message(chat.id, 1, "user", "but I hate horror")
    add_ratings((1, 6, 4.0), (2, 1, 3.0))

    rec = recommend(chat.id, 1)

    # 6 rated by user 1, 3 too old, 5 is horror
    assert _ids(rec) == [1]
    assert rec.basis.liked_genres == ("Action", "Thriller")
    assert rec.basis.disliked_genres == ("Horror",)
    assert rec.basis.year_min == 2000


def test_year_only_preferences(catalog):
    chat = service.create_session(1)
    service.append_message(chat.id, 1, "user", "something before 2010")

    assert _ids(recommend(chat.id, 1)) == [7, 3]


def test_never_returns_rated_movies(catalog, add_ratings):
    add_ratings((3, 2, 5.0), (3, 6, 1.0), (3, 1, 2.0))
    chat = service.create_session(3)
    service.append_message(chat.id, 3, "user", "sci-fi or action please")

    rec = recommend(chat.id, 3, limit=50)
    assert set(_ids(rec)).isdisjoint({2, 6, 1})
    assert _ids(rec) == [3]


def test_substring_match_is_accepted_approximation(add_movies):
    add_movies(
        {"id": 1, "title": "Cartoon", "year": 2000, "rating": 5.0, "genres": "Animation"},
        {"id": 2, "title": "Doc", "year": 2000, "rating": 6.0, "genres": "Documentary-Drama"},
    )
    chat = service.create_session(1)
    service.append_message(chat.id, 1, "user", "drama")

    assert _ids(recommend(chat.id, 1)) == [2]


def test_limit_is_capped(add_movies):
    add_movies(*[
        {"id": i, "title": f"M{i}", "year": 2000, "rating": float(i % 7), "genres": "Comedy"}
        for i in range(1, 71)
    ])
    chat = service.create_session(1)

    rec = recommend(chat.id, 1, limit=500)
    assert len(rec.movies) == MAX_RECOMMENDATION_LIMIT
    ratings = [m.rating for m in rec.movies]
    assert ratings == sorted(ratings, reverse=True)


def test_recommend_is_idempotent(catalog, add_ratings):
    add_ratings((1, 2, 4.0))
    chat = service.create_session(1)
    service.append_message(chat.id, 1, "user", "I like drama and sci-fi")

    first = recommend(chat.id, 1)
    second = recommend(chat.id, 1)
    assert _ids(first) == _ids(second) == [7, 6]
    assert first.basis == second.basis


def test_recommend_missing_session():
    with pytest.raises(NotFoundError):
        recommend(999, 1)


def test_recommend_foreign_session():
    chat = service.create_session(1)
    with pytest.raises(ForbiddenError):
        recommend(chat.id, 2)


def test_query_movies_with_empty_criteria(catalog):
    movies = repository.query_movies(FilterCriteria(), 2)
    assert [m.id for m in movies] == [7, 2]


@pytest.mark.parametrize("limit", [0, -1, -50])
def test_limit_below_one_is_rejected(catalog, limit):
    chat = service.create_session(1)

    with pytest.raises(ValidationError):
        recommend(chat.id, 1, limit=limit)


def test_limit_of_one(catalog):
    chat = service.create_session(1)
    assert _ids(recommend(chat.id, 1, limit=1)) == [7]
