"""
Treasury API Endpoints.

Read-only dashboard and report data.
"""

from datetime import date
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from treasury_backend.app.core.dependencies import get_ledger_service
from treasury_backend.app.core.exceptions import ValidationError
from treasury_backend.app.domain.ledger.ledger_service import LedgerService
from treasury_backend.app.domain.treasury.aggregator import (
    compute_treasury_stats, expenses_by_category, filter_by_period,
)
from treasury_backend.app.schemas.treasury import CategoryBreakdown, TreasuryStats

router = APIRouter(prefix="/treasury", tags=["Treasury"])


@router.get("/stats", response_model=TreasuryStats)
async def get_treasury_stats(
    ledger: LedgerService = Depends(get_ledger_service)
):
    """Get balance, income, expense and VAT totals over all payments."""
    return compute_treasury_stats(await ledger.list_all())


@router.get("/categories", response_model=List[CategoryBreakdown])
async def get_expense_categories(
    start: Optional[date] = Query(None, alias="from"),
    end: Optional[date] = Query(None, alias="to"),
    ledger: LedgerService = Depends(get_ledger_service)
):
    """Get expense totals per category for an optional payment-date window."""
    if start and end and start > end:
        raise ValidationError(
            message="Validation failed: 'from' must not be after 'to'",
            errors={"from": "Must not be after 'to'"}
        )
    records = filter_by_period(await ledger.list_all(), start, end)
    return expenses_by_category(records)
