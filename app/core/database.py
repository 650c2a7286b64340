# app/core/database.py
from databases import Database
from sqlalchemy import create_engine

from app.core.config import Settings
from app.models.db import Base

settings = Settings()
database = Database(settings.DATABASE_URL)


def _sync_url(url: str) -> str:
    # create_all needs a blocking driver
    return url.replace("+aiosqlite", "").replace("+asyncpg", "")


def init_db() -> None:
    """Create the activity_logs and clients tables if they don't exist."""
    sync_url = _sync_url(settings.DATABASE_URL)
    connect_args = {"check_same_thread": False} if sync_url.startswith("sqlite") else {}
    engine = create_engine(sync_url, connect_args=connect_args)
    Base.metadata.create_all(engine)
    engine.dispose()
