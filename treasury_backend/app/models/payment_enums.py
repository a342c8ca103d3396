"""
Payment enumerations.
"""

import enum


class PaymentType(str, enum.Enum):
    """Direction of a treasury movement."""
    EXPENSE = "expense"  # Money paid out to a supplier, staff member, etc.
    INCOME = "income"  # Money received


class ExpenseCategory(str, enum.Enum):
    """Expense category enumeration. Only meaningful for expenses."""
    SUPPLIER = "supplier"
    TRANSPORT = "transport"
    SHIPPING = "shipping"
    SALARIES = "salaries"
    RENT = "rent"
    OFFICE_SUPPLIES = "office_supplies"
    MISCELLANEOUS = "miscellaneous"


class PaymentMethod(str, enum.Enum):
    """How the money moved."""
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    E_WALLET = "e_wallet"
    INSTAPAY = "instapay"


class SettlementStatus(str, enum.Enum):
    """Settlement filter used by payment listings."""
    SETTLED = "settled"
    PENDING = "pending"
