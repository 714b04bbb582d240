"""
Inventory Ledger Factory

Returns the in-memory or SQL ledger based on ENV_MODE.

Usage:
    from quickserve.services.inventory import get_inventory_ledger

    ledger = get_inventory_ledger()
    reservation = await ledger.reserve("margherita-pizza", 2)
"""

import logging
from functools import lru_cache

from quickserve.core.config import get_settings
from quickserve.services.inventory.base import (
    BaseInventoryLedger,
    MenuItemSnapshot,
    Reservation,
)
from quickserve.services.inventory.memory import DEMO_MENU, InMemoryInventoryLedger

logger = logging.getLogger(__name__)


@lru_cache()
def get_inventory_ledger() -> BaseInventoryLedger:
    """Get the configured inventory ledger."""
    settings = get_settings()

    if settings.uses_database:
        from quickserve.database import async_session_maker
        from quickserve.services.inventory.sql import SqlInventoryLedger

        logger.info(f"Inventory Ledger: Using SqlInventoryLedger ({settings.env_mode.value} mode)")
        return SqlInventoryLedger(async_session_maker)

    logger.info("Inventory Ledger: Using InMemoryInventoryLedger (development mode)")
    return InMemoryInventoryLedger(DEMO_MENU)


def reset_inventory_ledger() -> None:
    """Clear the cached ledger instance."""
    get_inventory_ledger.cache_clear()


__all__ = [
    "get_inventory_ledger",
    "reset_inventory_ledger",
    "BaseInventoryLedger",
    "InMemoryInventoryLedger",
    "MenuItemSnapshot",
    "Reservation",
]
