"""Async SQLAlchemy engine, session factory, and FastAPI dependency.

Import this module (and ``db_models``) before calling ``create_tables()``
so that all ORM models are registered with ``Base.metadata``.

SQLite only enforces ``ON DELETE CASCADE`` (session exercises and set logs)
when ``PRAGMA foreign_keys`` is on, so every engine built here turns it on
for each new connection.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from fitplan.config import settings

DATA_DIR = Path(__file__).parent.parent / "data"
DATABASE_URL = settings.database_url or f"sqlite+aiosqlite:///{DATA_DIR}/fitplan.db"


def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str = DATABASE_URL) -> AsyncEngine:
    """Build an async engine for ``url``.

    An in-memory SQLite URL gets a single shared connection, so every session
    from the same engine sees the same database.
    """
    kwargs: dict[str, Any] = {"echo": False}
    if url.rstrip("/").endswith(":memory:") or url.endswith("://"):
        kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    async_engine = create_async_engine(url, **kwargs)
    if async_engine.dialect.name == "sqlite":
        event.listen(async_engine.sync_engine, "connect", _enable_foreign_keys)
    return async_engine


engine = make_engine()
AsyncSessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""

    pass


async def create_tables(target: AsyncEngine = engine) -> None:
    """Create all database tables that do not yet exist.

    Must be called after all ORM models have been imported so that
    ``Base.metadata`` contains every table definition. The default data
    directory is created on first use.
    """
    if target is engine and not settings.database_url:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields one session per request.

    Anything left uncommitted when the handler raises is rolled back.

    Usage::

        async def my_endpoint(db: AsyncSession = Depends(get_db)) -> ...:
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
