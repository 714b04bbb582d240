"""
In-Memory Table Directory

Fixed table list for development mode and tests.
"""

import logging
from dataclasses import replace
from typing import Iterable, Optional

from quickserve.services.tables.base import BaseTableDirectory, TableRecord

logger = logging.getLogger(__name__)


DEMO_TABLES = [
    TableRecord(f"T{n}", f"Table {n}", seats=2 if n <= 2 else 4)
    for n in range(1, 11)
]


class InMemoryTableDirectory(BaseTableDirectory):
    """Table directory backed by a dict keyed by table id."""

    def __init__(self, tables: Iterable[TableRecord] = ()):
        self._tables: dict[str, TableRecord] = {t.table_id: replace(t) for t in tables}
        logger.info(f"InMemoryTableDirectory initialized ({len(self._tables)} tables)")

    @property
    def provider_name(self) -> str:
        return "memory"

    def add_table(self, table: TableRecord) -> None:
        self._tables[table.table_id] = replace(table)

    async def find_table(self, table_id: str) -> Optional[TableRecord]:
        table = self._tables.get(table_id)
        return replace(table) if table else None
