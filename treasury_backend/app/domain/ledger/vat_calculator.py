"""
VAT Calculator (Domain Logic).

Converts a user-entered amount into base, VAT and total amounts at the fixed
14% rate. The inclusion flag decides which figure the user typed:

    includes_vat=False  ->  entered amount is the base; VAT is added on top.
    includes_vat=True   ->  entered amount is the VAT-inclusive total; VAT is extracted.

Pure and synchronous. Amounts are kept at full Decimal precision until the
final half-up rounding to two places.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from treasury_backend.app.core.exceptions import InvalidAmountError

VAT_RATE = Decimal("0.14")
TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class VatBreakdown:
    base_amount: Decimal
    vat_amount: Decimal
    total_amount: Decimal

    @property
    def stored_vat_amount(self) -> Optional[Decimal]:
        """VAT as persisted on a payment: absent when no tax applies."""
        return self.vat_amount if self.vat_amount > 0 else None


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary value half-up to two decimal places."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Parse a numeric or string amount into a Decimal.

    Raises:
        InvalidAmountError: If the value is not a finite, non-negative number.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(value, field)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(value, field)

    if not amount.is_finite() or amount < 0:
        raise InvalidAmountError(value, field)
    return amount


def compute_amounts(entered_amount: Any, includes_vat: bool) -> VatBreakdown:
    """
    Derive base, VAT and total amounts from an entered amount.

    Base and total are rounded once from their exact values; VAT is their
    difference so that total == base + vat holds to the cent.

    Args:
        entered_amount: Amount as typed by the user (number or numeric string)
        includes_vat: Whether the entered amount already contains VAT

    Returns:
        VatBreakdown with all three figures rounded to two places
    """
    amount = to_amount(entered_amount)
    multiplier = 1 + VAT_RATE

    if includes_vat:
        total_amount = amount
        base_amount = amount / multiplier
    else:
        base_amount = amount
        total_amount = amount * multiplier

    try:
        base_amount = quantize_money(base_amount)
        total_amount = quantize_money(total_amount)
    except InvalidOperation:
        # Beyond the decimal context precision
        raise InvalidAmountError(entered_amount)

    return VatBreakdown(
        base_amount=base_amount,
        vat_amount=total_amount - base_amount,
        total_amount=total_amount,
    )
