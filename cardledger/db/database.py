"""
Async database wiring for CardLedger.

One engine per process, built from `settings.database_url`. PostgreSQL
(asyncpg) in deployment; a `sqlite+aiosqlite` URL works for local runs.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cardledger.config import settings
from cardledger.models.db import Base


def _engine_options(database_url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.debug}
    # SQLite has no server connection to go stale
    if make_url(database_url).get_backend_name() != "sqlite":
        options["pool_pre_ping"] = True
    return options


def build_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, **_engine_options(database_url))


engine = build_engine(settings.database_url)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    The whole request is one transaction: committed after the handler
    returns, rolled back if the database raises.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the collections and cards tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    """Close pooled connections at shutdown."""
    await engine.dispose()
