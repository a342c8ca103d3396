"""
Payment Record transitions and predicates.

Builds new records, merges updates and records settlements. Nothing here
touches storage; the ledger service persists whatever these return.
"""

import uuid
from datetime import datetime
from decimal import InvalidOperation
from typing import Dict, Iterable, Optional

from treasury_backend.app.core.exceptions import InvalidAmountError, ValidationError
from treasury_backend.app.domain.ledger.vat_calculator import compute_amounts, quantize_money
from treasury_backend.app.models.payment_enums import ExpenseCategory, PaymentType
from treasury_backend.app.schemas.payment import InsertPayment, LineItem, PaymentRecord, SettlementRequest


def classification_errors(
    payment_type: PaymentType,
    expense_category: Optional[ExpenseCategory],
    line_items: Optional[Iterable[LineItem]],
) -> Dict[str, str]:
    """Cross-field rules: categories belong to expenses, line items to supplier expenses."""
    errors = {}
    if payment_type == PaymentType.INCOME and expense_category is not None:
        errors["expenseCategory"] = "Expense category only applies to expense payments"
    if line_items and expense_category != ExpenseCategory.SUPPLIER:
        errors["lineItems"] = "Line items only apply to supplier expenses"
    return errors


def is_consistent(record: PaymentRecord) -> bool:
    """Check the amount, VAT presence, settlement and classification invariants."""
    vat = record.vat_amount or 0
    if record.total_amount != record.amount + vat:
        return False
    if record.vat_amount is not None and record.vat_amount <= 0:
        return False
    if record.is_settled and (record.settlement_amount is None or record.settlement_date is None):
        return False
    return not classification_errors(record.payment_type, record.expense_category, record.line_items)


def matches_filters(
    record: PaymentRecord,
    search: Optional[str] = None,
    payment_type: Optional[PaymentType] = None,
    settled: Optional[bool] = None,
) -> bool:
    """Listing filter: text search over party and reference numbers, type and settlement status."""
    if payment_type is not None and record.payment_type != payment_type:
        return False
    if settled is not None and record.is_settled != settled:
        return False
    if search:
        needle = search.strip().lower()
        haystack = (record.party_name, record.quotation_number, record.purchase_order_number)
        return any(needle in value.lower() for value in haystack if value)
    return True


def new_payment_record(data: InsertPayment, now: datetime, payment_id: str = None) -> PaymentRecord:
    """Create an unsettled record with derived amounts from validated input."""
    breakdown = compute_amounts(data.amount, data.includes_vat)

    return PaymentRecord(
        id=payment_id or str(uuid.uuid4()),
        party_name=data.party_name,
        amount=breakdown.base_amount,
        payment_date=data.payment_date,
        description=data.description,
        quotation_number=data.quotation_number,
        purchase_order_number=data.purchase_order_number,
        includes_vat=data.includes_vat,
        vat_amount=breakdown.stored_vat_amount,
        total_amount=breakdown.total_amount,
        is_settled=False,
        payment_type=data.payment_type,
        expense_category=data.expense_category,
        payment_method=data.payment_method,
        line_items=data.line_items,
        created_at=now,
        updated_at=now,
    )


def apply_update(record: PaymentRecord, changes: Dict, now: datetime) -> PaymentRecord:
    """
    Merge a partial update onto a record.

    Amounts are re-derived when the amount or the VAT flag is part of the
    update. Without a new amount, the figure re-fed to the calculator is the
    stored total when the (possibly new) flag says VAT is included, otherwise
    the stored base amount.

    Raises:
        ValidationError: If the merged record breaks a classification rule.
    """
    updates = {k: v for k, v in changes.items() if k not in ("id", "created_at")}

    if "amount" in updates or "includes_vat" in updates:
        includes_vat = updates.get("includes_vat", record.includes_vat)
        if "amount" in updates:
            entered = updates["amount"]
        elif includes_vat:
            entered = record.total_amount
        else:
            entered = record.amount

        breakdown = compute_amounts(entered, includes_vat)
        updates["amount"] = breakdown.base_amount
        updates["vat_amount"] = breakdown.stored_vat_amount
        updates["total_amount"] = breakdown.total_amount

    merged = PaymentRecord.model_validate({**record.model_dump(), **updates, "updated_at": now})

    errors = classification_errors(merged.payment_type, merged.expense_category, merged.line_items)
    if errors:
        raise ValidationError(message="Validation failed: inconsistent classification", errors=errors)
    return merged


def apply_settlement(record: PaymentRecord, settlement: SettlementRequest, now: datetime) -> PaymentRecord:
    """
    Record the final invoiced figure. Base, VAT and total amounts are left untouched.

    Raises:
        InvalidAmountError: If the settlement amount cannot be held to the cent.
    """
    try:
        settlement_amount = quantize_money(settlement.settlement_amount)
    except InvalidOperation:
        raise InvalidAmountError(settlement.settlement_amount, "settlementAmount")

    return record.model_copy(update={
        "is_settled": True,
        "settlement_amount": settlement_amount,
        "settlement_date": settlement.settlement_date,
        "settlement_notes": settlement.settlement_notes,
        "updated_at": now,
    })
