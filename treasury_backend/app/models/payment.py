"""
Payment database model.

Relational counterpart of the spreadsheet row layout, keyed by payment id.
"""

from sqlalchemy import Column, String, Text, Boolean, Date, DateTime, Enum, Numeric, JSON
from sqlalchemy.sql import func
from treasury_backend.app.db.session import Base
from treasury_backend.app.models.payment_enums import ExpenseCategory, PaymentMethod, PaymentType


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Payment(Base):
    """
    Payment model.

    One treasury movement (expense or income) with its derived VAT figures
    and optional settlement.
    """
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, index=True)

    # Counterparty and references
    party_name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    quotation_number = Column(Text, nullable=True)
    purchase_order_number = Column(Text, nullable=True)

    # Financials
    amount = Column(Numeric(12, 2), nullable=False)
    includes_vat = Column(Boolean, default=False, nullable=False)
    vat_amount = Column(Numeric(12, 2), nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False, index=True)

    # Settlement
    is_settled = Column(Boolean, default=False, nullable=False, index=True)
    settlement_amount = Column(Numeric(12, 2), nullable=True)
    settlement_date = Column(Date, nullable=True)
    settlement_notes = Column(Text, nullable=True)

    # Classification
    payment_type = Column(
        Enum(PaymentType, values_callable=_enum_values, native_enum=False),
        default=PaymentType.EXPENSE, nullable=False, index=True
    )
    expense_category = Column(Enum(ExpenseCategory, values_callable=_enum_values, native_enum=False), nullable=True)
    payment_method = Column(Enum(PaymentMethod, values_callable=_enum_values, native_enum=False), nullable=True)
    line_items = Column(JSON, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Payment(id={self.id}, type='{self.payment_type.value}', total={self.total_amount})>"
