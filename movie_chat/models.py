from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SignalType(str, Enum):
    LIKE_GENRE = "like_genre"
    DISLIKE_GENRE = "dislike_genre"
    YEAR_MIN = "year_min"
    YEAR_MAX = "year_max"


class ChatSession(SQLModel, table=True):
    """
    A user-owned conversation. Only ended_at changes after creation.
    """
    __tablename__ = "chat_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    title: str
    started_at: datetime = Field(default_factory=utc_now)
    ended_at: Optional[datetime] = None


class ChatMessage(SQLModel, table=True):
    """
    Conversation message stored in Postgres.
    """
    __tablename__ = "chat_messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="chat_sessions.id", index=True)
    user_id: int
    role: str                        # "user" or "assistant"
    content: str
    created_at: datetime = Field(default_factory=utc_now)


class PreferenceSignal(SQLModel, table=True):
    """
    Preference inferred from a user message. Append-only.
    """
    __tablename__ = "chat_signals"

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="chat_sessions.id", index=True)
    user_id: int
    message_id: int = Field(foreign_key="chat_messages.id")
    signal_type: str                 # a SignalType value
    signal_value: str                # genre label, or a 4-digit year
    confidence: float = Field(ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=utc_now)


# ------------------------------------------------------------
# Catalog tables, owned by the catalog/rating service.
# This package only reads them (ingest.py seeds them for local use).
# ------------------------------------------------------------
class Movie(SQLModel, table=True):
    __tablename__ = "movies"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    year: Optional[int] = None
    rating: Optional[float] = None
    genres: Optional[str] = None     # delimited, e.g. "Action|Sci-Fi"


class Rating(SQLModel, table=True):
    __tablename__ = "ratings"

    user_id: int = Field(primary_key=True)
    movie_id: int = Field(foreign_key="movies.id", primary_key=True)
    score: float
    rated_at: datetime = Field(default_factory=utc_now)
