"""
Document AI Assistant — Database Session Management
====================================================

What:  Async SQLAlchemy engine, session factory and FastAPI dependencies.
How:   One engine per process; one session per request that commits on
       success and rolls back on error. Handlers that need independent
       sessions (concurrent reads) receive the factory itself.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from docassist.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    """Pool sizing only applies to server databases; SQLite manages its own pool."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# expire_on_commit=False: attributes stay readable after commit; lazy loads
# are not possible in async code.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Shared metadata for all ORM models (read by Alembic)."""
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency providing one session per request.

    Commits when the handler returns, rolls back and re-raises on any error,
    and always returns the connection to the pool.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker:
    """Dependency for handlers that open their own short-lived sessions."""
    return async_session_factory


async def dispose_engine() -> None:
    """Closes all pooled connections (application shutdown)."""
    await engine.dispose()
