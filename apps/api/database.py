"""
Async SQLAlchemy engine, declarative base and session helpers.
"""

from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from config import settings

Base = declarative_base()

engine = create_async_engine(settings.DATABASE_URL)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Columns added after the first release of the reels table.
LEGACY_REEL_COLUMNS = {
    "title": "TEXT",
}


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a database session."""
    async with async_session_maker() as session:
        yield session


def _ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite"):
        return
    database = url.database or ""
    if not database or database == ":memory:":
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def _add_legacy_columns(sync_conn) -> None:
    inspector = inspect(sync_conn)
    if "reels" not in inspector.get_table_names():
        return
    existing = {column["name"] for column in inspector.get_columns("reels")}
    for name, column_type in LEGACY_REEL_COLUMNS.items():
        if name not in existing:
            sync_conn.execute(text(f"ALTER TABLE reels ADD COLUMN {name} {column_type}"))


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create tables and patch reels tables created before later columns existed."""
    import models  # noqa: F401

    _ensure_sqlite_directory(str(bind.url))
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.run_sync(_add_legacy_columns)
