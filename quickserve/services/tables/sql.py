"""
SQL Table Directory

Reads dining tables from the `tables` table.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quickserve.models import RestaurantTable
from quickserve.services.tables.base import BaseTableDirectory, TableRecord


class SqlTableDirectory(BaseTableDirectory):
    """Table directory backed by SQLAlchemy async sessions."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    @property
    def provider_name(self) -> str:
        return "sql"

    async def find_table(self, table_id: str) -> Optional[TableRecord]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(RestaurantTable).where(RestaurantTable.table_id == table_id)
            )
            row = result.scalar_one_or_none()

        if row is None:
            return None
        return TableRecord(
            table_id=row.table_id,
            table_name=row.table_name,
            is_active=row.is_active,
            seats=row.seats,
            location=row.location,
        )
