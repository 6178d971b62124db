from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


CREATE_UUID_EXTENSION = 'CREATE EXTENSION IF NOT EXISTS "uuid-ossp"'

CREATE_SUBSCRIPTIONS_TABLE = """
CREATE TABLE IF NOT EXISTS subscriptions (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    subscription JSONB NOT NULL
)
"""


def build_database_url(raw_url: str) -> str:
    """Normalize DATABASE_URL for SQLAlchemy.

    Heroku-style ``postgres://`` URLs are rewritten to the ``postgresql``
    dialect, and ``sslmode=disable`` is appended when no sslmode is given.
    """
    url = raw_url.strip()
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]

    if url.startswith("postgresql") and "sslmode=" not in url:
        url += "&sslmode=disable" if "?" in url else "?sslmode=disable"
    return url


def create_db_engine(database_url: str) -> Engine:
    return create_engine(build_database_url(database_url), pool_pre_ping=True)


def check_connection(engine: Engine) -> None:
    """Raise if the database cannot be reached."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def init_db(engine: Engine) -> None:
    """Create the subscriptions table (and uuid-ossp on PostgreSQL) if absent."""
    if engine.dialect.name == "postgresql":
        with engine.begin() as conn:
            conn.execute(text(CREATE_UUID_EXTENSION))
            conn.execute(text(CREATE_SUBSCRIPTIONS_TABLE))
    else:
        # Import registers the model on Base.metadata
        from boss_alert.models import SubscriptionRecord  # noqa: F401

        Base.metadata.create_all(engine)
    logger.info("Database initialized")
