"""
Unit tests for payment validation, transitions and invariants.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from treasury_backend.app.core.exceptions import ValidationError
from treasury_backend.app.domain.ledger.payment_record import (
    apply_settlement, apply_update, classification_errors, is_consistent, matches_filters, new_payment_record,
)
from treasury_backend.app.domain.ledger.validation import (
    validate_insert_payment, validate_line_item, validate_payment_update, validate_settlement,
)
from treasury_backend.app.models.payment_enums import ExpenseCategory, PaymentType

CREATED = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
LATER = datetime(2025, 1, 2, 9, 0, tzinfo=timezone.utc)


def make_record(amount="500", includes_vat=False, **overrides):
    payload = {
        "partyName": "Delta Transport",
        "amount": amount,
        "paymentDate": "2025-01-15",
        "includesVAT": includes_vat,
    }
    payload.update(overrides)
    data = validate_insert_payment(payload).unwrap()
    return new_payment_record(data, CREATED)


# Validation

def test_insert_payment_accepts_legacy_field_names():
    result = validate_insert_payment({
        "supplierName": "Cairo Paper",
        "baseAmount": "75.5",
        "paymentDate": "2025-02-01",
        "referenceNumber1": "Q-7",
        "referenceNumber2": "PO-9",
    })

    assert result.ok
    assert result.value.party_name == "Cairo Paper"
    assert result.value.amount == Decimal("75.5")
    assert result.value.quotation_number == "Q-7"
    assert result.value.purchase_order_number == "PO-9"
    assert result.value.payment_type == PaymentType.EXPENSE
    assert result.value.includes_vat is False


def test_insert_payment_reports_missing_required_fields():
    result = validate_insert_payment({})

    assert not result.ok
    assert result.value is None
    assert set(result.errors) & {"partyName", "party_name", "supplierName"}
    assert len(result.errors) == 3  # party, amount, date

    with pytest.raises(ValidationError) as exc_info:
        result.unwrap()
    assert exc_info.value.status_code == 400
    assert exc_info.value.details["errors"] == result.errors


@pytest.mark.parametrize("field, value", [
    ("partyName", "   "),
    ("amount", "-5"),
    ("amount", "twelve"),
    ("amount", "Infinity"),
    ("paymentDate", "not-a-date"),
    ("paymentType", "transfer"),
    ("expenseCategory", "fuel"),
    ("paymentMethod", "cheque"),
])
def test_insert_payment_rejects_invalid_values(field, value):
    payload = {"partyName": "Delta", "amount": "10", "paymentDate": "2025-01-15", field: value}

    result = validate_insert_payment(payload)

    assert not result.ok


def test_blank_optional_text_becomes_null():
    result = validate_insert_payment({
        "partyName": "  Delta  ",
        "amount": 10,
        "paymentDate": "2025-01-15",
        "description": "   ",
        "expenseCategory": "",
    })

    assert result.ok
    assert result.value.party_name == "Delta"
    assert result.value.description is None
    assert result.value.expense_category is None


def test_income_cannot_carry_expense_category():
    result = validate_insert_payment({
        "partyName": "Client A",
        "amount": 1000,
        "paymentDate": "2025-01-15",
        "paymentType": "income",
        "expenseCategory": "rent",
    })

    assert result.errors == {"expenseCategory": "Expense category only applies to expense payments"}


def test_line_items_only_for_supplier_expenses():
    items = [{"lineNumber": 1, "description": "Cable", "quantity": 3}]

    supplier = validate_insert_payment({
        "partyName": "Supplier", "amount": 10, "paymentDate": "2025-01-15",
        "expenseCategory": "supplier", "lineItems": items,
    })
    rent = validate_insert_payment({
        "partyName": "Landlord", "amount": 10, "paymentDate": "2025-01-15",
        "expenseCategory": "rent", "lineItems": items,
    })

    assert supplier.ok
    assert supplier.value.line_items[0].description == "Cable"
    assert "lineItems" in rent.errors


def test_line_item_validation():
    assert validate_line_item({"lineNumber": 2, "partNumber": "P-1", "description": "Bolt", "unit": "pcs", "quantity": "4"}).ok
    assert not validate_line_item({"lineNumber": 0, "description": "Bolt", "quantity": 1}).ok
    assert not validate_line_item({"lineNumber": 1, "description": " ", "quantity": 1}).ok
    assert not validate_line_item({"lineNumber": 1, "description": "Bolt", "quantity": -1}).ok


def test_insert_payment_reports_line_item_errors_by_position():
    result = validate_insert_payment({
        "partyName": "Supplier", "amount": 10, "paymentDate": "2025-01-15", "expenseCategory": "supplier",
        "lineItems": [
            {"lineNumber": 1, "description": "Cable", "quantity": 3},
            {"lineNumber": 0, "description": " ", "quantity": 1},
        ],
    })

    assert not result.ok
    assert "lineItems.1.lineNumber" in result.errors
    assert "lineItems.1.description" in result.errors
    assert not any(key.startswith("lineItems.0") for key in result.errors)


def test_update_reports_line_item_errors():
    result = validate_payment_update({"lineItems": [{"lineNumber": 1, "quantity": 2}]})

    assert not result.ok
    assert "lineItems.0.description" in result.errors


def test_update_rejects_null_for_required_fields():
    assert validate_payment_update({"description": None}).ok
    assert not validate_payment_update({"partyName": None}).ok
    assert not validate_payment_update({"amount": None}).ok


def test_update_changes_only_contain_sent_fields():
    update = validate_payment_update({"includesVAT": True}).unwrap()

    assert update.changes() == {"includes_vat": True}


def test_settlement_validation():
    result = validate_settlement({"settlementAmount": "600.00", "settlementDate": "2025-02-01"})

    assert result.ok
    assert result.value.settlement_notes is None
    assert not validate_settlement({"settlementAmount": "600.00"}).ok
    assert not validate_settlement({"settlementAmount": "-1", "settlementDate": "2025-02-01"}).ok


def test_classification_errors_predicate():
    assert classification_errors(PaymentType.EXPENSE, ExpenseCategory.RENT, None) == {}
    assert classification_errors(PaymentType.INCOME, None, None) == {}
    assert "expenseCategory" in classification_errors(PaymentType.INCOME, ExpenseCategory.RENT, None)


# Transitions

def test_new_record_derives_amounts():
    record = make_record("500")

    assert record.amount == Decimal("500.00")
    assert record.vat_amount == Decimal("70.00")
    assert record.total_amount == Decimal("570.00")
    assert record.is_settled is False
    assert record.settlement_amount is None
    assert record.created_at == record.updated_at == CREATED
    assert is_consistent(record)


def test_flipping_vat_flag_on_keeps_entered_total():
    """Without a new amount, switching to VAT-inclusive re-derives from the stored total."""
    record = make_record("500", includes_vat=False)

    updated = apply_update(record, {"includes_vat": True}, LATER)

    assert updated.includes_vat is True
    assert updated.total_amount == Decimal("570.00")
    assert updated.amount == Decimal("500.00")
    assert updated.vat_amount == Decimal("70.00")
    assert updated.updated_at == LATER
    assert updated.created_at == CREATED


def test_flipping_vat_flag_off_keeps_base_amount():
    """Switching to VAT-exclusive re-derives from the stored base amount."""
    record = make_record("114", includes_vat=True)
    assert record.amount == Decimal("100.00")

    updated = apply_update(record, {"includes_vat": False}, LATER)

    assert updated.includes_vat is False
    assert updated.amount == Decimal("100.00")
    assert updated.total_amount == Decimal("114.00")


def test_flip_then_new_amount_uses_new_amount():
    record = make_record("114", includes_vat=True)

    updated = apply_update(record, {"amount": Decimal("228")}, LATER)

    assert updated.includes_vat is True
    assert updated.total_amount == Decimal("228.00")
    assert updated.amount == Decimal("200.00")
    assert updated.vat_amount == Decimal("28.00")


def test_new_amount_and_flag_together():
    record = make_record("114", includes_vat=True)

    updated = apply_update(record, {"amount": Decimal("50"), "includes_vat": False}, LATER)

    assert updated.amount == Decimal("50.00")
    assert updated.vat_amount == Decimal("7.00")
    assert updated.total_amount == Decimal("57.00")


def test_update_without_amount_fields_leaves_amounts_alone():
    record = make_record("500")

    updated = apply_update(record, {"description": "Cement", "payment_date": date(2025, 3, 1)}, LATER)

    assert updated.description == "Cement"
    assert updated.payment_date == date(2025, 3, 1)
    assert (updated.amount, updated.vat_amount, updated.total_amount) == (
        record.amount, record.vat_amount, record.total_amount
    )
    assert updated.id == record.id


def test_update_to_income_with_category_is_rejected():
    record = make_record("500", expenseCategory="rent")

    with pytest.raises(ValidationError) as exc_info:
        apply_update(record, {"payment_type": PaymentType.INCOME}, LATER)

    assert "expenseCategory" in exc_info.value.errors


def test_settlement_keeps_derived_amounts():
    record = make_record("500")
    settlement = validate_settlement({
        "settlementAmount": "600", "settlementDate": "2025-02-01", "settlementNotes": "Final invoice",
    }).unwrap()

    settled = apply_settlement(record, settlement, LATER)

    assert settled.is_settled is True
    assert settled.settlement_amount == Decimal("600.00")
    assert settled.settlement_date == date(2025, 2, 1)
    assert settled.settlement_notes == "Final invoice"
    assert (settled.amount, settled.vat_amount, settled.total_amount) == (
        record.amount, record.vat_amount, record.total_amount
    )
    assert is_consistent(settled)


def test_is_consistent_detects_broken_invariants():
    record = make_record("500")

    assert not is_consistent(record.model_copy(update={"total_amount": Decimal("571.00")}))
    assert not is_consistent(record.model_copy(update={"is_settled": True}))


def test_matches_filters():
    record = make_record("500", quotationNumber="Q-55", purchaseOrderNumber="PO-77")

    assert matches_filters(record)
    assert matches_filters(record, search="delta")
    assert matches_filters(record, search="po-77")
    assert not matches_filters(record, search="nile")
    assert matches_filters(record, payment_type=PaymentType.EXPENSE, settled=False)
    assert not matches_filters(record, payment_type=PaymentType.INCOME)
    assert not matches_filters(record, settled=True)
