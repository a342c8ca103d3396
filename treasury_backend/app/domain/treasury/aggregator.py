"""
Treasury Aggregator.

Read-only summaries over a set of payments. Sums are accumulated as Decimal
and converted to float only in the returned schemas.
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from treasury_backend.app.models.payment_enums import PaymentType
from treasury_backend.app.schemas.payment import PaymentRecord
from treasury_backend.app.schemas.treasury import CategoryBreakdown, TreasuryStats

UNCATEGORIZED = "uncategorized"


def compute_treasury_stats(records: Iterable[PaymentRecord]) -> TreasuryStats:
    """Balance, income, expenses, VAT and settlement counts in a single pass."""
    total_income = Decimal("0")
    total_expenses = Decimal("0")
    total_vat = Decimal("0")
    count = settled = 0

    for record in records:
        count += 1
        if record.payment_type == PaymentType.INCOME:
            total_income += record.total_amount
        else:
            total_expenses += record.total_amount

        total_vat += record.vat_amount or 0
        if record.is_settled:
            settled += 1

    return TreasuryStats(
        total_balance=float(total_income - total_expenses),
        total_income=float(total_income),
        total_expenses=float(total_expenses),
        total_vat=float(total_vat),
        payments_count=count,
        settled_count=settled,
        pending_count=count - settled,
    )


def filter_by_period(
    records: Iterable[PaymentRecord],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[PaymentRecord]:
    """Keep payments whose payment date falls inside [start, end]; open ends are unbounded."""
    return [
        record for record in records
        if (start is None or record.payment_date >= start)
        and (end is None or record.payment_date <= end)
    ]


def expenses_by_category(records: Iterable[PaymentRecord]) -> List[CategoryBreakdown]:
    """
    Group expenses by category with count, total, VAT and share of all expenses.

    Categories appear in order of first occurrence. The percentage is 0 when
    there are no expenses.
    """
    groups = OrderedDict()
    total_expenses = Decimal("0")

    for record in records:
        if record.payment_type != PaymentType.EXPENSE:
            continue
        key = record.expense_category.value if record.expense_category else UNCATEGORIZED
        group = groups.setdefault(key, {"count": 0, "total": Decimal("0"), "vat": Decimal("0")})
        group["count"] += 1
        group["total"] += record.total_amount
        group["vat"] += record.vat_amount or 0
        total_expenses += record.total_amount

    breakdown = []
    for category, group in groups.items():
        percentage = group["total"] / total_expenses * 100 if total_expenses else Decimal("0")
        breakdown.append(CategoryBreakdown(
            category=category,
            count=group["count"],
            total=float(group["total"]),
            vat=float(group["vat"]),
            percentage=round(float(percentage), 1),
        ))
    return breakdown
