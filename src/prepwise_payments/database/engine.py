"""Database engine and async session factory."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from prepwise_payments.config import settings
from prepwise_payments.models.challenge import VerificationChallenge  # noqa: F401  (registers table)
from prepwise_payments.models.training import Base


def connect_args_for(url: str) -> dict:
    """Driver arguments for *url*.

    Concurrent consumes and supersedes on SQLite wait on the file lock for
    up to ``database_busy_timeout_seconds`` instead of failing fast.
    """
    if url.startswith("sqlite"):
        return {"timeout": settings.database_busy_timeout_seconds}
    return {}


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    return create_async_engine(url, echo=echo, connect_args=connect_args_for(url))


engine = build_engine(settings.database_url, echo=settings.debug)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create all tables that don't yet exist."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session; commit on success, roll back on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
