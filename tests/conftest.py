"""
Pytest configuration and fixtures
"""
import os
import tempfile
from pathlib import Path

import pytest

# Point the engine at a throwaway SQLite file before movie_chat.db is imported
_test_db = Path(tempfile.gettempdir()) / "movie_chat_test.db"
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", f"sqlite:///{_test_db}")
os.environ.pop("LANGFUSE_PUBLIC_KEY", None)
os.environ.pop("LANGFUSE_SECRET_KEY", None)

import movie_chat.models  # noqa: E402,F401
from movie_chat.db import engine, get_session, reset_db  # noqa: E402
from movie_chat.models import Movie, Rating  # noqa: E402


@pytest.fixture(autouse=True)
def db():
    """Fresh schema for every test."""
    reset_db()
    yield engine


@pytest.fixture
def add_movies():
    def _add(*movies):
        with get_session() as session:
            for m in movies:
                session.add(Movie(**m))
            session.commit()
    return _add


@pytest.fixture
def add_ratings():
    def _add(*ratings):
        with get_session() as session:
            for user_id, movie_id, score in ratings:
                session.add(Rating(user_id=user_id, movie_id=movie_id, score=score))
            session.commit()
    return _add


@pytest.fixture
def catalog(add_movies):
    add_movies(
        {"id": 1, "title": "Blast Zone", "year": 2018, "rating": 8.1, "genres": "Action|Thriller"},
        {"id": 2, "title": "Star Drift", "year": 2016, "rating": 8.7, "genres": "Sci-Fi|Drama"},
        {"id": 3, "title": "Old Punch", "year": 1995, "rating": 7.9, "genres": "Action"},
        {"id": 4, "title": "Laugh Track", "year": 2019, "rating": 6.5, "genres": "Comedy"},
        {"id": 5, "title": "Night Fog", "year": 2020, "rating": 7.2, "genres": "Horror|Thriller"},
        {"id": 6, "title": "Robot Heist", "year": 2021, "rating": 8.7, "genres": "Action|Sci-Fi"},
        {"id": 7, "title": "Quiet Years", "year": 2005, "rating": 9.0, "genres": "Drama"},
    )
