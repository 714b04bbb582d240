"""
Table Directory Abstract Base Class

Lookup of dining tables by their structured id (e.g. "T4").
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class TableRecord:
    """Dining table as the ordering core sees it."""
    table_id: str
    table_name: str
    is_active: bool = True
    seats: int = 4
    location: Optional[str] = None


class BaseTableDirectory(ABC):
    """Abstract base class for table directories."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def find_table(self, table_id: str) -> Optional[TableRecord]:
        """Return the table, or None if no table has this id."""
        pass
