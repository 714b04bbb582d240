"""
SQL Inventory Ledger

Stock counters in the `menu_items` table. A reservation is one conditional
UPDATE that only matches when the item is available and has enough units,
so the database serializes concurrent reservations for the same item.
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quickserve.core.exceptions import LineItemInvalid, MenuItemNotFound, OutOfStock
from quickserve.models import MenuItem
from quickserve.services.inventory.base import (
    BaseInventoryLedger,
    MenuItemSnapshot,
    Reservation,
)

logger = logging.getLogger(__name__)


def _snapshot(row: MenuItem) -> MenuItemSnapshot:
    return MenuItemSnapshot(
        id=row.id,
        name=row.name,
        price=row.price,
        available=row.available,
        inventory_count=row.inventory_count,
        low_stock_threshold=row.low_stock_threshold,
    )


class SqlInventoryLedger(BaseInventoryLedger):
    """Inventory ledger backed by SQLAlchemy async sessions."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    @property
    def provider_name(self) -> str:
        return "sql"

    async def get_menu_item(self, menu_item_id: str) -> Optional[MenuItemSnapshot]:
        async with self._session_maker() as session:
            row = await session.get(MenuItem, menu_item_id)
            return _snapshot(row) if row else None

    async def reserve(self, menu_item_id: str, quantity: int) -> Reservation:
        stmt = (
            update(MenuItem)
            .where(
                MenuItem.id == menu_item_id,
                MenuItem.available.is_(True),
                MenuItem.inventory_count >= quantity,
            )
            .values(inventory_count=MenuItem.inventory_count - quantity)
            .returning(MenuItem.inventory_count, MenuItem.low_stock_threshold)
            .execution_options(synchronize_session=False)
        )

        async with self._session_maker() as session, session.begin():
            row = (await session.execute(stmt)).first()
            if row is None:
                item = await session.get(MenuItem, menu_item_id)
                if item is None:
                    raise LineItemInvalid(menu_item_id)
                logger.warning(
                    f"Reservation refused: {item.name} requested={quantity} "
                    f"stock={item.inventory_count} available={item.available}"
                )
                raise OutOfStock(item.id, item.name, quantity, item.inventory_count)

        remaining, threshold = row
        return Reservation(
            menu_item_id=menu_item_id,
            quantity=quantity,
            remaining=remaining,
            low_stock=remaining <= threshold,
        )

    async def release(self, menu_item_id: str, quantity: int) -> None:
        stmt = (
            update(MenuItem)
            .where(MenuItem.id == menu_item_id)
            .values(inventory_count=MenuItem.inventory_count + quantity)
            .execution_options(synchronize_session=False)
        )
        async with self._session_maker() as session, session.begin():
            await session.execute(stmt)

    async def restock(self, menu_item_id: str, inventory_count: int) -> MenuItemSnapshot:
        async with self._session_maker() as session, session.begin():
            row = await session.get(MenuItem, menu_item_id)
            if row is None:
                raise MenuItemNotFound(menu_item_id)
            row.inventory_count = inventory_count
            await session.flush()
            return _snapshot(row)

    async def health_check(self) -> bool:
        try:
            async with self._session_maker() as session:
                await session.execute(select(1))
            return True
        except Exception as e:
            logger.error(f"Inventory database health check failed: {e}")
            return False
