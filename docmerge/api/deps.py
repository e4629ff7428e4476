"""FastAPI dependencies for dependency injection.

Provides reusable dependencies for routes including:
- Database sessions
- The template repository
- Engine components from the factory
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from docmerge.core.config import Settings, get_settings
from docmerge.core.factory import get_factory
from docmerge.db.repository import SqlTemplateRepository
from docmerge.db.session import get_async_session
from docmerge.interfaces.errors import DocMergeError
from docmerge.interfaces.repository import BaseTemplateRepository
from docmerge.strategies.template_engine import MergeEngine, PreviewRenderer, TemplateImporter

logger = logging.getLogger(__name__)


async def get_db(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    Args:
        settings: Application settings.

    Yields:
        An async database session.
    """
    try:
        async for session in get_async_session(settings):
            yield session
    except (HTTPException, DocMergeError):
        raise
    except Exception as e:
        logger.error(f"Error getting database session: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database connection error",
        ) from e


async def get_repository(
    session: AsyncSession = Depends(get_db),
) -> BaseTemplateRepository:
    return SqlTemplateRepository(session)


def get_importer() -> TemplateImporter:
    return get_factory().get_importer()


def get_merge_engine() -> MergeEngine:
    return get_factory().get_merge_engine()


def get_preview_renderer() -> PreviewRenderer:
    return get_factory().get_preview_renderer()
