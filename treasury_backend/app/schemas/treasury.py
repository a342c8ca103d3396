"""
Treasury Schemas.
"""

from pydantic import Field

from treasury_backend.app.schemas.payment import CamelModel


class TreasuryStats(CamelModel):
    """Aggregate financial summary over all payments."""
    total_balance: float
    total_income: float
    total_expenses: float
    total_vat: float = Field(..., alias="totalVAT")
    payments_count: int
    settled_count: int
    pending_count: int


class CategoryBreakdown(CamelModel):
    """Expense totals for one category."""
    category: str
    count: int
    total: float
    vat: float
    percentage: float
