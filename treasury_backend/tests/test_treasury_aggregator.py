"""
Treasury aggregation tests.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from treasury_backend.app.domain.treasury.aggregator import (
    UNCATEGORIZED, compute_treasury_stats, expenses_by_category, filter_by_period,
)
from treasury_backend.app.models.payment_enums import ExpenseCategory, PaymentType
from treasury_backend.app.schemas.payment import PaymentRecord

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


def record(total, payment_type=PaymentType.EXPENSE, vat=None, category=None, settled=False, day=15):
    total = Decimal(total)
    vat = Decimal(vat) if vat is not None else None
    return PaymentRecord(
        id=f"id-{total}-{day}",
        party_name="Party",
        amount=total - (vat or 0),
        payment_date=date(2025, 1, day),
        vat_amount=vat,
        total_amount=total,
        is_settled=settled,
        settlement_amount=total if settled else None,
        settlement_date=date(2025, 2, 1) if settled else None,
        payment_type=payment_type,
        expense_category=category,
        created_at=NOW,
        updated_at=NOW,
    )


def test_balance_is_income_minus_expenses():
    stats = compute_treasury_stats([
        record("1000", PaymentType.INCOME),
        record("400", PaymentType.EXPENSE),
    ])

    assert stats.total_balance == 600
    assert stats.total_income == 1000
    assert stats.total_expenses == 400


def test_empty_ledger_has_zero_stats():
    stats = compute_treasury_stats([])

    assert stats.total_balance == 0
    assert stats.total_vat == 0
    assert stats.payments_count == stats.settled_count == stats.pending_count == 0


def test_vat_and_settlement_counts():
    records = [
        record("114.00", vat="14.00", settled=True),
        record("57.00", PaymentType.INCOME, vat="7.00"),
        record("20.00"),
    ]

    stats = compute_treasury_stats(records)

    assert stats.total_vat == 21.0
    assert stats.payments_count == 3
    assert stats.settled_count == 1
    assert stats.pending_count == 2
    assert stats.settled_count + stats.pending_count == stats.payments_count


def test_sums_avoid_float_drift():
    stats = compute_treasury_stats([record("0.10"), record("0.20")])

    assert stats.total_expenses == 0.3


def test_stats_serialize_in_camel_case():
    body = compute_treasury_stats([record("1000", PaymentType.INCOME)]).model_dump(by_alias=True)

    assert set(body) == {
        "totalBalance", "totalIncome", "totalExpenses", "totalVAT",
        "paymentsCount", "settledCount", "pendingCount",
    }


def test_expenses_grouped_by_category():
    records = [
        record("300", category=ExpenseCategory.RENT, vat="36.84"),
        record("100", category=ExpenseCategory.SUPPLIER),
        record("100", category=ExpenseCategory.RENT),
        record("500", PaymentType.INCOME),
    ]

    breakdown = expenses_by_category(records)

    assert [(b.category, b.count, b.total) for b in breakdown] == [
        ("rent", 2, 400.0),
        ("supplier", 1, 100.0),
    ]
    assert breakdown[0].vat == 36.84
    assert breakdown[0].percentage == 80.0
    assert breakdown[1].percentage == 20.0


def test_percentages_are_rounded_to_one_decimal():
    records = [record("1", category=ExpenseCategory.RENT), record("2", category=ExpenseCategory.OFFICE_SUPPLIES)]

    breakdown = expenses_by_category(records)

    assert [b.percentage for b in breakdown] == [33.3, 66.7]


def test_missing_category_is_grouped_as_uncategorized():
    breakdown = expenses_by_category([record("50")])

    assert breakdown[0].category == UNCATEGORIZED
    assert breakdown[0].percentage == 100.0


def test_zero_expense_total_gives_zero_percentage():
    breakdown = expenses_by_category([record("0", category=ExpenseCategory.MISCELLANEOUS)])

    assert breakdown[0].percentage == 0


def test_income_only_ledger_has_no_categories():
    assert expenses_by_category([record("10", PaymentType.INCOME)]) == []


@pytest.mark.parametrize("start, end, expected_days", [
    (None, None, [1, 15, 31]),
    (date(2025, 1, 15), None, [15, 31]),
    (None, date(2025, 1, 15), [1, 15]),
    (date(2025, 1, 2), date(2025, 1, 30), [15]),
    (date(2025, 2, 1), None, []),
])
def test_filter_by_period_is_inclusive(start, end, expected_days):
    records = [record("10", day=day) for day in (1, 15, 31)]

    filtered = filter_by_period(records, start, end)

    assert [r.payment_date.day for r in filtered] == expected_days
