import functools
import logging
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select, col

from movie_chat.db import get_session
from movie_chat.errors import ForbiddenError, NotFoundError, StorageError
from movie_chat.models import ChatMessage, ChatSession, Movie, PreferenceSignal, Rating
from movie_chat.signals import SignalDraft

if TYPE_CHECKING:
    from movie_chat.recommender import FilterCriteria

logger = logging.getLogger(__name__)


def storage_call(fn):
    """Translate database failures into StorageError. Nothing is retried."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error("Storage failure in %s: %s", fn.__name__, e)
            raise StorageError(f"{fn.__name__} failed: {e.__class__.__name__}") from e

    return wrapper


# ============================================================
# Sessions
# ============================================================
@storage_call
def create_chat_session(user_id: int, title: str) -> ChatSession:
    chat = ChatSession(user_id=user_id, title=title)

    with get_session() as session:
        session.add(chat)
        session.commit()
        session.refresh(chat)

    return chat


@storage_call
def get_chat_session(session_id: int) -> Optional[ChatSession]:
    with get_session() as session:
        return session.get(ChatSession, session_id)


def get_owned_session(session_id: int, user_id: int) -> ChatSession:
    """
    Load a session and check that user_id owns it.
    Raises NotFoundError / ForbiddenError.
    """
    chat = get_chat_session(session_id)
    if chat is None:
        raise NotFoundError(f"Session {session_id} not found")
    if chat.user_id != user_id:
        raise ForbiddenError(f"Session {session_id} does not belong to user {user_id}")
    return chat


@storage_call
def get_sessions_for_user(user_id: int, limit: int = 50) -> List[ChatSession]:
    """
    Return the user's sessions, most recent first.
    """
    with get_session() as session:
        return list(session.exec(
            select(ChatSession)
            .where(ChatSession.user_id == user_id)
            .order_by(col(ChatSession.started_at).desc(), col(ChatSession.id).desc())
            .limit(limit)
        ).all())


@storage_call
def mark_session_ended(session_id: int, ended_at: datetime) -> ChatSession:
    with get_session() as session:
        chat = session.get(ChatSession, session_id)
        if chat.ended_at is None:
            chat.ended_at = ended_at
            session.add(chat)
            session.commit()
            session.refresh(chat)
        return chat


# ============================================================
# Messages
# ============================================================
def _add_signals(session, session_id: int, message_id: int, user_id: int,
                 signals: Sequence[SignalDraft]) -> List[PreferenceSignal]:
    rows = [
        PreferenceSignal(
            session_id=session_id,
            user_id=user_id,
            message_id=message_id,
            signal_type=s.signal_type.value,
            signal_value=s.value,
            confidence=s.confidence,
        )
        for s in signals
    ]
    session.add_all(rows)
    return rows


@storage_call
def save_message(session_id: int, user_id: int, role: str, content: str,
                 signals: Sequence[SignalDraft] = ()) -> ChatMessage:
    """
    Save a message and its derived signals in one transaction.
    """
    msg = ChatMessage(
        session_id=session_id,
        user_id=user_id,
        role=role,
        content=content,
    )

    with get_session() as session:
        session.add(msg)
        session.flush()              # assigns msg.id for the signal rows
        _add_signals(session, session_id, msg.id, user_id, signals)
        session.commit()
        session.refresh(msg)

    return msg


@storage_call
def get_conversation(session_id: int) -> List[ChatMessage]:
    """
    Return conversation messages for a session.
    Ordered oldest → newest.
    """
    with get_session() as session:
        return list(session.exec(
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(col(ChatMessage.created_at), col(ChatMessage.id))
        ).all())


# ============================================================
# Signal store
# ============================================================
@storage_call
def append_signals(session_id: int, message_id: int, user_id: int,
                   signals: Sequence[SignalDraft]) -> List[PreferenceSignal]:
    """
    Bulk-persist signals for a message. Ownership is the caller's job.
    """
    if not signals:
        return []

    with get_session() as session:
        rows = _add_signals(session, session_id, message_id, user_id, signals)
        session.commit()
        for row in rows:
            session.refresh(row)

    return rows


@storage_call
def list_signals_by_session(session_id: int) -> List[PreferenceSignal]:
    with get_session() as session:
        return list(session.exec(
            select(PreferenceSignal)
            .where(PreferenceSignal.session_id == session_id)
            .order_by(col(PreferenceSignal.created_at), col(PreferenceSignal.id))
        ).all())


# ============================================================
# Catalog (read-only)
# ============================================================
@storage_call
def query_movies(criteria: "FilterCriteria", limit: int) -> List[Movie]:
    """
    Run a FilterCriteria against the catalog.
    Ordered by rating (desc), then id (asc).
    """
    genres = func.coalesce(Movie.genres, "")

    stmt = select(Movie)
    if criteria.year_min is not None:
        stmt = stmt.where(Movie.year >= criteria.year_min)
    if criteria.year_max is not None:
        stmt = stmt.where(Movie.year <= criteria.year_max)
    if criteria.include_genres:
        stmt = stmt.where(
            or_(*[genres.contains(g, autoescape=True) for g in criteria.include_genres])
        )
    for g in criteria.exclude_genres:
        stmt = stmt.where(~genres.contains(g, autoescape=True))
    if criteria.exclude_rated_by is not None:
        rated = select(Rating.movie_id).where(Rating.user_id == criteria.exclude_rated_by)
        stmt = stmt.where(col(Movie.id).not_in(rated))

    stmt = stmt.order_by(
        col(Movie.rating).desc().nulls_last(), col(Movie.id)
    ).limit(limit)

    with get_session() as session:
        return list(session.exec(stmt).all())


@storage_call
def search_movies(query: str, limit: int, offset: int) -> List[Movie]:
    stmt = select(Movie)
    if query:
        stmt = stmt.where(col(Movie.title).icontains(query, autoescape=True)).order_by(
            col(Movie.rating).desc().nulls_last(), col(Movie.id)
        )
    else:
        stmt = stmt.order_by(col(Movie.id))

    with get_session() as session:
        return list(session.exec(stmt.offset(offset).limit(limit)).all())


@storage_call
def get_movie(movie_id: int) -> Optional[Movie]:
    with get_session() as session:
        return session.get(Movie, movie_id)


@storage_call
def get_ratings_for_user(user_id: int, limit: int = 100) -> List[dict]:
    """
    Return the user's ratings with movie titles, newest first.
    """
    with get_session() as session:
        result = session.exec(
            select(Rating, Movie.title)
            .join(Movie, Movie.id == Rating.movie_id)
            .where(Rating.user_id == user_id)
            .order_by(col(Rating.rated_at).desc(), col(Rating.movie_id))
            .limit(limit)
        ).all()

    return [
        {
            "user_id": r.user_id,
            "movie_id": r.movie_id,
            "score": r.score,
            "rated_at": r.rated_at,
            "title": title,
        }
        for r, title in result
    ]
