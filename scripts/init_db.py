"""Database initialization script.

Run this script to create the template, variable and entry tables.

Usage:
    python -m scripts.init_db
"""

import asyncio
import logging

from docmerge.core.config import get_settings
from docmerge.db.session import close_db, init_db

logger = logging.getLogger(__name__)


async def main() -> None:
    """Initialize the database."""
    settings = get_settings()
    try:
        await init_db(settings)
        logger.info("Database initialized successfully")
    finally:
        await close_db(settings)


if __name__ == "__main__":
    asyncio.run(main())
