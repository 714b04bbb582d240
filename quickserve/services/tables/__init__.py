"""
Table Directory Factory

Returns the in-memory or SQL table directory based on ENV_MODE.
"""

import logging
from functools import lru_cache

from quickserve.core.config import get_settings
from quickserve.services.tables.base import BaseTableDirectory, TableRecord
from quickserve.services.tables.memory import DEMO_TABLES, InMemoryTableDirectory

logger = logging.getLogger(__name__)


@lru_cache()
def get_table_directory() -> BaseTableDirectory:
    """Get the configured table directory."""
    settings = get_settings()

    if settings.uses_database:
        from quickserve.database import async_session_maker
        from quickserve.services.tables.sql import SqlTableDirectory

        logger.info(f"Table Directory: Using SqlTableDirectory ({settings.env_mode.value} mode)")
        return SqlTableDirectory(async_session_maker)

    logger.info("Table Directory: Using InMemoryTableDirectory (development mode)")
    return InMemoryTableDirectory(DEMO_TABLES)


def reset_table_directory() -> None:
    """Clear the cached directory instance."""
    get_table_directory.cache_clear()


__all__ = [
    "get_table_directory",
    "reset_table_directory",
    "BaseTableDirectory",
    "InMemoryTableDirectory",
    "TableRecord",
]
