from datetime import timezone
from unittest.mock import patch

from movie_chat import repository, service
from movie_chat.ingest import row_to_rating
from movie_chat.models import ChatMessage, ChatSession, PreferenceSignal, Rating, utc_now


def test_utc_now_is_timezone_aware():
    assert utc_now().tzinfo is timezone.utc


def test_timestamp_defaults_are_timezone_aware():
    stamps = [
        ChatSession(user_id=1, title="t").started_at,
        ChatMessage(session_id=1, user_id=1, role="user", content="x").created_at,
        PreferenceSignal(
            session_id=1, user_id=1, message_id=1,
            signal_type="like_genre", signal_value="Drama", confidence=0.6,
        ).created_at,
        Rating(user_id=1, movie_id=1, score=3.0).rated_at,
    ]
    assert all(s.tzinfo is not None for s in stamps)


def test_end_session_stamps_aware_time():
    chat = service.create_session(1)
    with patch.object(repository, "mark_session_ended", wraps=repository.mark_session_ended) as mark:
        service.end_session(chat.id, 1)

    ended_at = mark.call_args.args[1]
    assert ended_at.tzinfo is not None


def test_imported_rating_without_timestamp_is_aware():
    rating = row_to_rating({"user_id": 1, "movie_id": 2, "score": 4.0, "rated_at": None})
    assert rating.rated_at.tzinfo is not None
