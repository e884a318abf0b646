import os
from typing import List

import pandas as pd
from tqdm import tqdm
from sqlalchemy import delete

from movie_chat.db import get_session, init_db
from movie_chat.logging_config import setup_logging
from movie_chat.models import Movie, Rating, utc_now


# -----------------------------
# Environment configuration
# -----------------------------
CATALOG_DIR = os.getenv("CATALOG_DIR", "data")

MOVIES_FILE = "movies.csv"      # movie_id,title,year,rating,genres
RATINGS_FILE = "ratings.csv"    # user_id,movie_id,score[,rated_at]

BATCH_SIZE = 500


# -----------------------------
# Helper functions
# -----------------------------
MOVIE_DTYPES = {
    "movie_id": "int64",
    "title": "string",
    "year": "Int64",
    "rating": "float64",
    "genres": "string",
}
RATING_DTYPES = {"user_id": "int64", "movie_id": "int64", "score": "float64"}


def load_movies(path: str) -> pd.DataFrame:
    """Load movies.csv; blank year/rating/genres become NA."""
    df = pd.read_csv(path, dtype=MOVIE_DTYPES)
    df["title"] = df["title"].str.strip()
    df["genres"] = df["genres"].str.strip().replace("", pd.NA)
    return df


def load_ratings(path: str) -> pd.DataFrame:
    """Load ratings.csv; rated_at is optional and parsed as UTC."""
    df = pd.read_csv(path, dtype=RATING_DTYPES)
    if "rated_at" in df.columns:
        df["rated_at"] = pd.to_datetime(df["rated_at"], utc=True)
    else:
        df["rated_at"] = pd.NaT
    return df


def to_records(df: pd.DataFrame) -> List[dict]:
    """DataFrame rows as plain dicts, NA/NaN/NaT mapped to None."""
    return df.astype(object).where(df.notna(), None).to_dict("records")


def _opt(value, cast):
    return None if value is None else cast(value)


def row_to_movie(row: dict) -> Movie:
    return Movie(
        id=int(row["movie_id"]),
        title=str(row["title"]),
        year=_opt(row["year"], int),
        rating=_opt(row["rating"], float),
        genres=_opt(row["genres"], str),
    )


def row_to_rating(row: dict) -> Rating:
    rated_at = row.get("rated_at")
    return Rating(
        user_id=int(row["user_id"]),
        movie_id=int(row["movie_id"]),
        score=float(row["score"]),
        rated_at=pd.Timestamp(rated_at).to_pydatetime() if rated_at is not None else utc_now(),
    )


def save_batches(items: list, desc: str):
    """Merge items into the database in batches."""
    for i in tqdm(range(0, len(items), BATCH_SIZE), desc=desc):
        batch = items[i:i + BATCH_SIZE]
        with get_session() as session:
            for item in batch:
                session.merge(item)
            session.commit()


# -----------------------------
# Main import function
# -----------------------------
def main(catalog_dir: str = CATALOG_DIR, replace: bool = False) -> dict:
    movies_path = os.path.join(catalog_dir, MOVIES_FILE)
    ratings_path = os.path.join(catalog_dir, RATINGS_FILE)

    if not os.path.exists(movies_path):
        print(f"⚠️ No `{MOVIES_FILE}` found in `{catalog_dir}`.")
        return {"movies": 0, "ratings": 0}

    init_db()

    print(f"\n📥 Loading movies from `{movies_path}`...")
    movies = [
        row_to_movie(r)
        for r in tqdm(to_records(load_movies(movies_path)), desc="Parsing movies", unit="movie")
    ]

    ratings = []
    if os.path.exists(ratings_path):
        print(f"\n📥 Loading ratings from `{ratings_path}`...")
        ratings = [
            row_to_rating(r)
            for r in tqdm(to_records(load_ratings(ratings_path)), desc="Parsing ratings", unit="rating")
        ]

    if replace:
        print("\n🧹 Clearing existing catalog...")
        with get_session() as session:
            session.execute(delete(Rating))
            session.execute(delete(Movie))
            session.commit()

    print("\n🚀 Writing catalog...")
    save_batches(movies, "Writing movies")
    save_batches(ratings, "Writing ratings")

    print(f"\n✅ Imported {len(movies)} movies and {len(ratings)} ratings.")
    return {"movies": len(movies), "ratings": len(ratings)}


if __name__ == "__main__":
    setup_logging()
    main()
