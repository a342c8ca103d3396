"""
Payment API Endpoints.

CRUD and settlement for treasury payments. Request bodies are validated by
the ledger service so that every failure carries field-level detail.
"""

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status
from typing import Any, Dict, List, Optional

from treasury_backend.app.core.dependencies import get_ledger_service
from treasury_backend.app.domain.ledger.ledger_service import DEFAULT_RECENT_LIMIT, LedgerService
from treasury_backend.app.models.payment_enums import PaymentType, SettlementStatus
from treasury_backend.app.schemas.payment import PaymentRecord

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("", response_model=List[PaymentRecord])
async def list_payments(
    search: Optional[str] = Query(None, description="Matches party name, quotation or purchase order number"),
    payment_type: Optional[PaymentType] = Query(None, alias="type"),
    settlement_status: Optional[SettlementStatus] = Query(None, alias="status"),
    ledger: LedgerService = Depends(get_ledger_service)
):
    """
    List all payments.
    """
    settled = None
    if settlement_status is not None:
        settled = settlement_status == SettlementStatus.SETTLED
    return await ledger.list_all(search=search, payment_type=payment_type, settled=settled)


@router.get("/recent", response_model=List[PaymentRecord])
async def list_recent_payments(
    limit: int = Query(DEFAULT_RECENT_LIMIT, ge=1),
    ledger: LedgerService = Depends(get_ledger_service)
):
    """
    List the most recently created payments, newest first.
    """
    return await ledger.list_recent(limit)


@router.get("/{payment_id}", response_model=PaymentRecord)
async def get_payment(
    payment_id: str = Path(..., description="Payment ID"),
    ledger: LedgerService = Depends(get_ledger_service)
):
    return await ledger.get_by_id(payment_id)


@router.post("", response_model=PaymentRecord, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: Dict[str, Any] = Body(...),
    ledger: LedgerService = Depends(get_ledger_service)
):
    """
    Record a new payment. VAT, base and total amounts are derived from the
    entered amount and the includesVAT flag.
    """
    return await ledger.create(payload)


@router.patch("/{payment_id}", response_model=PaymentRecord)
async def update_payment(
    payment_id: str = Path(..., description="Payment ID"),
    payload: Dict[str, Any] = Body(...),
    ledger: LedgerService = Depends(get_ledger_service)
):
    """
    Update a payment. Sending amount or includesVAT re-derives the amounts.
    """
    return await ledger.update(payment_id, payload)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(
    payment_id: str = Path(..., description="Payment ID"),
    ledger: LedgerService = Depends(get_ledger_service)
):
    """
    Permanently delete a payment.
    """
    await ledger.delete(payment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{payment_id}/settle", response_model=PaymentRecord)
async def settle_payment(
    payment_id: str = Path(..., description="Payment ID"),
    payload: Dict[str, Any] = Body(...),
    correction: bool = Query(False, description="Overwrite an existing settlement"),
    ledger: LedgerService = Depends(get_ledger_service)
):
    """
    Record the final settlement of a payment.
    """
    return await ledger.settle(payment_id, payload, correction=correction)
