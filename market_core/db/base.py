from typing import AsyncIterator
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from market_core.core.config import settings


def build_engine(url: str = settings.DB_URL, **kwargs) -> AsyncEngine:
    # pre_ping drops connections the database closed between requests
    return create_async_engine(url, echo=settings.DB_ECHO, pool_pre_ping=True, **kwargs)


engine = build_engine()
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request; nothing is committed unless a service commits."""
    async with AsyncSessionLocal() as session:
        yield session
