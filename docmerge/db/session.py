"""Async database engine and sessions.

One engine per process, created lazily from ``Settings.database_url``.
Request handlers receive sessions through ``get_async_session``.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from docmerge.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Return the process-wide async engine, creating it on first use."""
    global _engine

    if _engine is None:
        settings = settings or get_settings()
        url = make_url(settings.database_url)
        logger.info(f"Creating database engine for {url.render_as_string(hide_password=True)}")
        _engine = create_async_engine(
            url,
            echo=settings.log_level == "DEBUG",
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
        )

    return _engine


def get_session_maker(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(settings),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _session_factory


async def get_async_session(settings: Settings | None = None) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session that is rolled back if the caller fails.

    Args:
        settings: Optional settings. If None, uses global settings.

    Yields:
        An async database session.
    """
    async with get_session_maker(settings)() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error(f"Database error, rolling back: {e}", exc_info=True)
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise


async def init_db(settings: Settings | None = None) -> None:
    """Create the templates, template_variables and entries tables if missing.

    Schema changes beyond table creation are out of scope here; use a
    migration tool for those.
    """
    # registers the tables on SQLModel.metadata
    from docmerge.db import models  # noqa: F401

    async with get_engine(settings).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    logger.info(f"Database ready: {sorted(SQLModel.metadata.tables)}")


async def close_db(settings: Settings | None = None) -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _session_factory

    if _engine is None:
        return

    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database engine disposed")
