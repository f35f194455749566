"""Async engine, session factory and schema bootstrap for the realty platform."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from realty_platform.app.config import get_settings


class Base(DeclarativeBase):
    pass


settings = get_settings()

_is_sqlite = settings.database_url.startswith("sqlite")

engine = create_async_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency yielding one session per request."""
    async with async_session() as session:
        yield session


async def init_db():
    """Create all tables on startup (no migrations)."""
    import realty_platform.domain.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Analytics writes must not block behind a chat turn's write lock
    if _is_sqlite:
        async with engine.connect() as conn:
            await conn.execute(text("PRAGMA journal_mode=WAL"))
