from sqlalchemy import text

from movie_chat import service
from movie_chat.db import CHAT_TABLES, engine, init_db, missing_chat_tables, reset_db


def test_init_db_creates_chat_tables():
    with engine.begin() as conn:
        conn.execute(text("DROP TABLE chat_signals"))

    assert missing_chat_tables() == ["chat_signals"]
    init_db()
    assert missing_chat_tables() == []


def test_reset_db_clears_rows():
    service.create_session(1)
    reset_db()

    assert service.list_sessions(1) == []
    assert missing_chat_tables() == []


def test_chat_table_names_match_models():
    from sqlmodel import SQLModel

    assert set(CHAT_TABLES) <= set(SQLModel.metadata.tables)
