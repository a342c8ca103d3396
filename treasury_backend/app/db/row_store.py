"""
Positional row store.

A row store holds one row (list of primitive cell values) per payment and
addresses rows by 1-based position. It has no id index; callers locate a
record's position by scanning list_rows().
"""

from abc import ABC, abstractmethod
from typing import Any, List

from treasury_backend.app.core.exceptions import StoreError

Row = List[Any]


class RowStore(ABC):
    """Abstract row-oriented record store."""

    async def initialize(self) -> None:
        """Resolve any remote handle. Called once before first use."""

    async def close(self) -> None:
        """Release resources held by the store."""

    @abstractmethod
    async def list_rows(self) -> List[Row]:
        ...

    @abstractmethod
    async def append_row(self, row: Row) -> None:
        ...

    @abstractmethod
    async def update_row(self, position: int, row: Row) -> None:
        """Overwrite the row at a 1-based position."""

    @abstractmethod
    async def delete_row(self, position: int) -> None:
        """Remove the row at a 1-based position, shifting later rows up."""


class InMemoryRowStore(RowStore):
    """List-backed store for development and tests."""

    def __init__(self, rows: List[Row] = None):
        self._rows: List[Row] = [list(row) for row in rows or []]

    async def list_rows(self) -> List[Row]:
        return [list(row) for row in self._rows]

    async def append_row(self, row: Row) -> None:
        self._rows.append(list(row))

    async def update_row(self, position: int, row: Row) -> None:
        self._check_position(position)
        self._rows[position - 1] = list(row)

    async def delete_row(self, position: int) -> None:
        self._check_position(position)
        del self._rows[position - 1]

    def _check_position(self, position: int) -> None:
        if not 1 <= position <= len(self._rows):
            raise StoreError(
                f"Row position {position} out of range",
                details={"position": position, "rows": len(self._rows)}
            )
