import logging
import os

from sqlalchemy import inspect
from sqlmodel import SQLModel, create_engine, Session

logger = logging.getLogger(__name__)

PG_HOST = os.getenv("PG_HOST", "postgres")
PG_PORT = os.getenv("PG_PORT", "5432")
PG_USER = os.getenv("PG_USER", "appuser")
PG_PASSWORD = os.getenv("PG_PASSWORD", "apppass")
PG_DB = os.getenv("PG_DB", "appdb")

# DATABASE_URL wins over the PG_* parts (tests point it at SQLite)
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{PG_USER}:{PG_PASSWORD}@{PG_HOST}:{PG_PORT}/{PG_DB}",
)

# SQLite connections are shared across Streamlit/pytest threads
_connect_args = (
    {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(DATABASE_URL, echo=False, connect_args=_connect_args)

CHAT_TABLES = ("chat_sessions", "chat_messages", "chat_signals")


def _register_models():
    import movie_chat.models  # noqa: F401


def init_db():
    """Create the chat and catalog tables if they don't exist."""
    _register_models()
    SQLModel.metadata.create_all(engine)


def reset_db():
    """Drop and recreate every table. Only for tests and local seeding."""
    _register_models()
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    logger.debug("Recreated schema on %s", engine.url.render_as_string(hide_password=True))


def missing_chat_tables() -> list[str]:
    """Chat tables absent from the connected database."""
    existing = set(inspect(engine).get_table_names())
    return [t for t in CHAT_TABLES if t not in existing]


def get_session():
    """Provide a new SQLModel session."""
    return Session(engine)
