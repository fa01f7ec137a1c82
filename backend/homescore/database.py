"""
Async SQLAlchemy setup for the preference store.

Only preference profiles live in the database; scores are computed per
request and never written.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from homescore.config import settings


def build_engine(url: str) -> AsyncEngine:
    return create_async_engine(url, echo=settings.debug, future=True)


engine = build_engine(settings.async_database_url)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base for the preference tables."""

    pass


async def init_db() -> None:
    """Create the preference tables if they do not exist yet."""
    async with engine.begin() as conn:
        from homescore.models import preference  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One transaction per request: committed when the handler returns, rolled
    back if it raises.
    """
    async with async_session_maker() as session:
        async with session.begin():
            yield session
