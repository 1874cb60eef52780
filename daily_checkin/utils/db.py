"""Async engine and request-scoped sessions.

PostgreSQL through asyncpg in deployment, SQLite through aiosqlite in tests
and local runs. Sessions do not expire on commit: services keep reading the
rows they just committed, e.g. the check-in record returned to the caller.
"""

from collections.abc import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from daily_checkin.config import Settings, get_settings

SQLITE_BUSY_TIMEOUT = 30


def build_engine(config: Settings) -> AsyncEngine:
    if config.is_sqlite:
        # Writers queue on the database lock instead of failing immediately
        return create_async_engine(
            config.database_url,
            connect_args={"timeout": SQLITE_BUSY_TIMEOUT},
        )
    return create_async_engine(
        config.database_url,
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_pre_ping=True,
    )


engine = build_engine(get_settings())

async_session_factory = async_sessionmaker(
    engine,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request, committed when the handler returns normally."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ping_database(session: AsyncSession) -> None:
    """Round-trip to the database; raises ``SQLAlchemyError`` if it is down."""
    await session.execute(text("SELECT 1"))


async def verify_connection() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    await engine.dispose()
