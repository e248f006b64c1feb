"""PostgreSQL access: one async engine per process, sessions on demand.

Lifecycle operations commit or roll back the session they are handed. The
sweeps open their own sessions from `async_session_factory`, one per item.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the few ORM-mapped tables (principals)."""


def build_engine(url: str) -> AsyncEngine:
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


engine: AsyncEngine = build_engine(settings.DATABASE_URL)

# Rows returned by a committed operation stay readable after commit.
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def check_database() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session for FastAPI routes."""
    async with async_session_factory() as session:
        yield session
