"""
Payment repositories.

The ledger service talks to a PaymentRepository and never sees how records
are indexed. Row-backed repositories scan for the id to find a position;
the SQL repository looks records up by primary key.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from treasury_backend.app.core.exceptions import StoreError
from treasury_backend.app.db.row_codec import record_to_row, row_to_record
from treasury_backend.app.db.row_store import Row, RowStore
from treasury_backend.app.models.payment import Payment
from treasury_backend.app.schemas.payment import PaymentRecord


class PaymentRepository(ABC):
    """Id-addressed access to stored payments. Each mutator is one store write."""

    @abstractmethod
    async def list_all(self) -> List[PaymentRecord]:
        ...

    @abstractmethod
    async def get(self, payment_id: str) -> Optional[PaymentRecord]:
        ...

    @abstractmethod
    async def add(self, record: PaymentRecord) -> None:
        ...

    @abstractmethod
    async def replace(self, record: PaymentRecord) -> bool:
        """Overwrite the stored record with the same id. Returns False if it is gone."""

    @abstractmethod
    async def remove(self, payment_id: str) -> bool:
        """Delete the record. Returns False if it is gone."""


class RowPaymentRepository(PaymentRepository):
    """Repository over a positional RowStore (spreadsheet or in-memory)."""

    def __init__(self, store: RowStore):
        self.store = store

    async def _locate(self, payment_id: str) -> Optional[Tuple[int, Row]]:
        rows = await self.store.list_rows()
        for position, row in enumerate(rows, start=1):
            if row and str(row[0]) == payment_id:
                return position, row
        return None

    async def list_all(self) -> List[PaymentRecord]:
        rows = await self.store.list_rows()
        return [row_to_record(row) for row in rows if row and str(row[0]).strip()]

    async def get(self, payment_id: str) -> Optional[PaymentRecord]:
        found = await self._locate(payment_id)
        return row_to_record(found[1]) if found else None

    async def add(self, record: PaymentRecord) -> None:
        await self.store.append_row(record_to_row(record))

    async def replace(self, record: PaymentRecord) -> bool:
        found = await self._locate(record.id)
        if not found:
            return False
        await self.store.update_row(found[0], record_to_row(record))
        return True

    async def remove(self, payment_id: str) -> bool:
        found = await self._locate(payment_id)
        if not found:
            return False
        await self.store.delete_row(found[0])
        return True


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class SqlPaymentRepository(PaymentRepository):
    """Repository over the payments table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _to_record(payment: Payment) -> PaymentRecord:
        record = PaymentRecord.model_validate(payment)
        return record.model_copy(update={
            "created_at": _as_utc(record.created_at),
            "updated_at": _as_utc(record.updated_at),
        })

    @staticmethod
    def _columns(record: PaymentRecord) -> dict:
        columns = record.model_dump(exclude={"line_items"})
        columns["line_items"] = (
            [item.model_dump(mode="json", by_alias=True) for item in record.line_items]
            if record.line_items else None
        )
        return columns

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StoreError("Failed to write payment", details={"reason": str(exc)}) from exc

    async def list_all(self) -> List[PaymentRecord]:
        try:
            result = await self.db.execute(select(Payment).order_by(Payment.created_at))
        except SQLAlchemyError as exc:
            raise StoreError("Failed to read payments", details={"reason": str(exc)}) from exc
        return [self._to_record(payment) for payment in result.scalars().all()]

    async def _fetch(self, payment_id: str) -> Optional[Payment]:
        try:
            return await self.db.get(Payment, payment_id)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to read payment", details={"id": payment_id, "reason": str(exc)}) from exc

    async def get(self, payment_id: str) -> Optional[PaymentRecord]:
        payment = await self._fetch(payment_id)
        return self._to_record(payment) if payment else None

    async def add(self, record: PaymentRecord) -> None:
        self.db.add(Payment(**self._columns(record)))
        await self._commit()

    async def replace(self, record: PaymentRecord) -> bool:
        payment = await self._fetch(record.id)
        if not payment:
            return False
        for key, value in self._columns(record).items():
            setattr(payment, key, value)
        await self._commit()
        return True

    async def remove(self, payment_id: str) -> bool:
        payment = await self._fetch(payment_id)
        if not payment:
            return False
        await self.db.delete(payment)
        await self._commit()
        return True
