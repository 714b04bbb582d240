"""
Order Store Factory

Picks the order store from configuration:
    - SAVE_ORDERS=false → DisabledOrderStore (degraded mode)
    - ENV_MODE=development → InMemoryOrderStore
    - ENV_MODE=staging/production → SqlOrderStore
"""

import logging
from functools import lru_cache

from quickserve.core.config import get_settings
from quickserve.services.store.base import BaseOrderStore
from quickserve.services.store.disabled import DisabledOrderStore
from quickserve.services.store.memory import InMemoryOrderStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_store() -> BaseOrderStore:
    """Get the configured order store."""
    settings = get_settings()
    prefix, width = settings.order_number_prefix, settings.order_number_width

    if not settings.save_orders:
        logger.info("Order Store: Using DisabledOrderStore (SAVE_ORDERS=false)")
        return DisabledOrderStore(prefix, width)

    if settings.uses_database:
        from quickserve.database import async_session_maker
        from quickserve.services.store.sql import SqlOrderStore

        logger.info(f"Order Store: Using SqlOrderStore ({settings.env_mode.value} mode)")
        return SqlOrderStore(async_session_maker, prefix, width)

    logger.info("Order Store: Using InMemoryOrderStore (development mode)")
    return InMemoryOrderStore(prefix, width)


def reset_order_store() -> None:
    """Clear the cached store instance."""
    get_order_store.cache_clear()


__all__ = [
    "get_order_store",
    "reset_order_store",
    "BaseOrderStore",
    "DisabledOrderStore",
    "InMemoryOrderStore",
]
