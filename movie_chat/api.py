"""
Transport-agnostic operation surface.

Callers pass an already-authenticated Identity plus raw parameters (ids
may arrive as strings from a query string or form). Each operation
returns an Outcome: a value on success, or a categorized ChatError that
the transport can map to a status code via ErrorKind.http_status.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from movie_chat import service
from movie_chat.errors import ChatError, Outcome, StorageError, ValidationError
from movie_chat.recommender import DEFAULT_RECOMMENDATION_LIMIT

logger = logging.getLogger(__name__)

IDENTITY_ROLES = ("user", "admin")


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: str = "user"


# ------------------------------------------------------------
# Parameter parsing
# ------------------------------------------------------------
def parse_id(value: Any, name: str) -> int:
    """Accept a positive int or a numeric string."""
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a positive integer")
    if isinstance(value, str):
        value = value.strip()
        # isdigit() alone accepts "²" and other digits int() rejects
        if not (value.isascii() and value.isdigit()):
            raise ValidationError(f"{name} must be a positive integer")
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be a positive integer")
    return value


def parse_limit(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return parse_id(value, "limit")
    except ValidationError:
        raise ValidationError("limit must be a positive integer") from None


def parse_offset(value: Any) -> int:
    if value is None or value == "" or value == 0:
        return 0
    return parse_id(value, "offset")


def _check_identity(identity: Identity) -> int:
    if identity is None:
        raise ValidationError("identity is required")
    if identity.role not in IDENTITY_ROLES:
        raise ValidationError(f"unknown role {identity.role!r}")
    return parse_id(identity.user_id, "user_id")


def _run(operation: Callable[[], Any]) -> Outcome:
    try:
        return Outcome(value=operation())
    except StorageError as e:
        logger.error("Storage error: %s", e.message)
        return Outcome(error=e)
    except ChatError as e:
        logger.info("%s: %s", e.kind.value, e.message)
        return Outcome(error=e)


# ------------------------------------------------------------
# Operations
# ------------------------------------------------------------
def create_session(identity: Identity, title: Optional[str] = None) -> Outcome:
    """Outcome value: the new session id."""
    return _run(lambda: service.create_session(_check_identity(identity), title).id)


def list_sessions(identity: Identity) -> Outcome:
    return _run(lambda: service.list_sessions(_check_identity(identity)))


def end_session(identity: Identity, session_id: Any) -> Outcome:
    return _run(lambda: service.end_session(
        parse_id(session_id, "session_id"), _check_identity(identity)
    ))


def list_messages(identity: Identity, session_id: Any) -> Outcome:
    return _run(lambda: service.list_messages(
        parse_id(session_id, "session_id"), _check_identity(identity)
    ))


def list_signals(identity: Identity, session_id: Any) -> Outcome:
    return _run(lambda: service.list_signals(
        parse_id(session_id, "session_id"), _check_identity(identity)
    ))


def post_message(identity: Identity, session_id: Any, content: Optional[str],
                 role: str = "user") -> Outcome:
    """Outcome value: PostedMessage(message_id, inserted_signals)."""
    return _run(lambda: service.append_message(
        parse_id(session_id, "session_id"),
        _check_identity(identity),
        role,
        content if isinstance(content, str) else "",
    ))


def get_recommendations(identity: Identity, session_id: Any,
                        limit: Any = DEFAULT_RECOMMENDATION_LIMIT) -> Outcome:
    """Outcome value: Recommendation(basis, movies)."""
    return _run(lambda: service.get_recommendations(
        parse_id(session_id, "session_id"),
        _check_identity(identity),
        parse_limit(limit, DEFAULT_RECOMMENDATION_LIMIT),
    ))


def search_movies(query: str = "", limit: Any = 20, offset: Any = 0) -> Outcome:
    return _run(lambda: service.search_movies(
        query or "", parse_limit(limit, 20), parse_offset(offset)
    ))


def get_movie(movie_id: Any) -> Outcome:
    return _run(lambda: service.get_movie(parse_id(movie_id, "movie_id")))


def list_ratings(identity: Identity) -> Outcome:
    return _run(lambda: service.list_user_ratings(_check_identity(identity)))
