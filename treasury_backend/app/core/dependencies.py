"""
Service dependencies for FastAPI.

Wires the configured payment repository into a LedgerService per request.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from treasury_backend.app.core.config import settings
from treasury_backend.app.core.exceptions import StoreError
from treasury_backend.app.db.repository import PaymentRepository, RowPaymentRepository, SqlPaymentRepository
from treasury_backend.app.db.session import get_db
from treasury_backend.app.domain.ledger.ledger_service import LedgerService


async def get_payment_repository(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> PaymentRepository:
    """
    Select the repository for the configured storage backend.

    The "sheets" and "memory" backends share one row store created at startup
    and kept on the application state.
    """
    if settings.storage_backend == "database":
        return SqlPaymentRepository(db)

    row_store = getattr(request.app.state, "row_store", None)
    if row_store is None:
        raise StoreError(f"Row store for backend '{settings.storage_backend}' is not initialized")
    return RowPaymentRepository(row_store)


async def get_ledger_service(
    repository: PaymentRepository = Depends(get_payment_repository)
) -> LedgerService:
    return LedgerService(repository)
