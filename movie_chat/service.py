"""
Session and message orchestration.

Every user message is run through the signal extractor and stored
together with its signals. Functions here raise ChatError subclasses;
api.py turns them into Outcome values.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional

from movie_chat import repository, tracing
from movie_chat.errors import NotFoundError, ValidationError
from movie_chat.models import ChatMessage, ChatSession, Movie, PreferenceSignal, utc_now
from movie_chat.recommender import (
    DEFAULT_RECOMMENDATION_LIMIT,
    Recommendation,
    recommend,
)
from movie_chat.signals import SignalDraft, extract_signals

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TITLE = "Chat session"
MAX_SESSIONS_LISTED = 50
MAX_MOVIES_LISTED = 100
MAX_RATINGS_LISTED = 100

ROLES = ("user", "assistant")


@dataclass
class PostedMessage:
    message_id: int
    inserted_signals: list[SignalDraft] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "message_id": self.message_id,
            "inserted_signals": [s.as_dict() for s in self.inserted_signals],
        }


# ============================================================
# Sessions
# ============================================================
def create_session(user_id: int, title: Optional[str] = None) -> ChatSession:
    title = (title or "").strip() or DEFAULT_SESSION_TITLE
    chat = repository.create_chat_session(user_id, title)
    logger.info("Created chat session %s for user %s", chat.id, user_id)
    return chat


def list_sessions(user_id: int) -> list[ChatSession]:
    return repository.get_sessions_for_user(user_id, limit=MAX_SESSIONS_LISTED)


def end_session(session_id: int, user_id: int) -> ChatSession:
    repository.get_owned_session(session_id, user_id)
    return repository.mark_session_ended(session_id, utc_now())


# ============================================================
# Messages
# ============================================================
def append_message(session_id: int, user_id: int, role: str,
                   content: str) -> PostedMessage:
    """
    Store a message in a session owned by user_id.

    User messages also store their extracted signals, in the same
    transaction as the message.
    """
    if role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(ROLES)}")
    if not content or not content.strip():
        raise ValidationError("message content is required")

    repository.get_owned_session(session_id, user_id)

    signals = extract_signals(content) if role == "user" else []
    msg = repository.save_message(session_id, user_id, role, content, signals)

    logger.info(
        "Stored %s message %s in session %s with %d signals",
        role, msg.id, session_id, len(signals),
    )
    if role == "user":
        tracing.trace_extraction(
            user_id=user_id,
            session_id=session_id,
            message_id=msg.id,
            content=content,
            signals=[s.as_dict() for s in signals],
        )

    return PostedMessage(message_id=msg.id, inserted_signals=signals)


def list_messages(session_id: int, user_id: int) -> list[ChatMessage]:
    repository.get_owned_session(session_id, user_id)
    return repository.get_conversation(session_id)


def list_signals(session_id: int, user_id: int) -> list[PreferenceSignal]:
    repository.get_owned_session(session_id, user_id)
    return repository.list_signals_by_session(session_id)


def get_recommendations(session_id: int, user_id: int,
                        limit: int = DEFAULT_RECOMMENDATION_LIMIT) -> Recommendation:
    return recommend(session_id, user_id, limit)


# ============================================================
# Catalog reads
# ============================================================
def search_movies(query: str = "", limit: int = 20, offset: int = 0) -> list[Movie]:
    if limit < 1:
        raise ValidationError("limit must be a positive integer")
    if offset < 0:
        raise ValidationError("offset must not be negative")
    return repository.search_movies(
        (query or "").strip(), min(limit, MAX_MOVIES_LISTED), offset
    )


def get_movie(movie_id: int) -> Movie:
    movie = repository.get_movie(movie_id)
    if movie is None:
        raise NotFoundError(f"Movie {movie_id} not found")
    return movie


def list_user_ratings(user_id: int) -> list[dict]:
    return repository.get_ratings_for_user(user_id, limit=MAX_RATINGS_LISTED)
