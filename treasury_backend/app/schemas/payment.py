"""
Payment Schemas.

Input and record shapes for the payment ledger. JSON uses camelCase; inputs
also accept the legacy spreadsheet names (supplierName, referenceNumber1, ...).
"""

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from treasury_backend.app.models.payment_enums import ExpenseCategory, PaymentMethod, PaymentType


class CamelModel(BaseModel):
    """Base model serializing snake_case attributes as camelCase."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class LineItem(CamelModel):
    """One line of a supplier quotation or purchase order."""
    line_number: int = Field(..., ge=1)
    part_number: Optional[str] = None
    description: str = Field(..., min_length=1)
    unit: Optional[str] = None
    quantity: Decimal = Field(..., ge=0)

    @field_validator("part_number", "unit", mode="before")
    @classmethod
    def blank_optional_text(cls, value):
        return _blank_to_none(value)

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Description is required")
        return value


class _PaymentFields(CamelModel):
    """Optional text normalisation shared by create and update payloads."""

    @field_validator(
        "description", "quotation_number", "purchase_order_number",
        "expense_category", "payment_method",
        mode="before", check_fields=False,
    )
    @classmethod
    def blank_optional_fields(cls, value):
        return _blank_to_none(value)

    @field_validator("party_name", check_fields=False)
    @classmethod
    def strip_party_name(cls, value):
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Party name is required")
        return value


class InsertPayment(_PaymentFields):
    """User-supplied fields of a new payment (no id, timestamps or derived amounts)."""
    party_name: str = Field(..., validation_alias=AliasChoices("partyName", "supplierName", "party_name"))
    amount: Decimal = Field(..., ge=0, validation_alias=AliasChoices("amount", "baseAmount"))
    payment_date: date = Field(..., validation_alias=AliasChoices("paymentDate", "payment_date"))
    description: Optional[str] = None
    quotation_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("quotationNumber", "referenceNumber1", "quotation_number")
    )
    purchase_order_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("purchaseOrderNumber", "referenceNumber2", "purchase_order_number")
    )
    includes_vat: bool = Field(False, validation_alias=AliasChoices("includesVAT", "includes_vat"))
    payment_type: PaymentType = Field(PaymentType.EXPENSE, validation_alias=AliasChoices("paymentType", "payment_type"))
    expense_category: Optional[ExpenseCategory] = Field(
        None, validation_alias=AliasChoices("expenseCategory", "expense_category")
    )
    payment_method: Optional[PaymentMethod] = Field(
        None, validation_alias=AliasChoices("paymentMethod", "payment_method")
    )
    line_items: Optional[List[LineItem]] = Field(None, validation_alias=AliasChoices("lineItems", "line_items"))


# Fields an update may omit but never null out.
REQUIRED_UPDATE_FIELDS = ("party_name", "amount", "payment_date", "includes_vat", "payment_type")


class PaymentUpdate(_PaymentFields):
    """Partial update of a payment. Only the fields present in the payload are applied."""
    party_name: Optional[str] = Field(None, validation_alias=AliasChoices("partyName", "supplierName", "party_name"))
    amount: Optional[Decimal] = Field(None, ge=0, validation_alias=AliasChoices("amount", "baseAmount"))
    payment_date: Optional[date] = Field(None, validation_alias=AliasChoices("paymentDate", "payment_date"))
    description: Optional[str] = None
    quotation_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("quotationNumber", "referenceNumber1", "quotation_number")
    )
    purchase_order_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("purchaseOrderNumber", "referenceNumber2", "purchase_order_number")
    )
    includes_vat: Optional[bool] = Field(None, validation_alias=AliasChoices("includesVAT", "includes_vat"))
    payment_type: Optional[PaymentType] = Field(None, validation_alias=AliasChoices("paymentType", "payment_type"))
    expense_category: Optional[ExpenseCategory] = Field(
        None, validation_alias=AliasChoices("expenseCategory", "expense_category")
    )
    payment_method: Optional[PaymentMethod] = Field(
        None, validation_alias=AliasChoices("paymentMethod", "payment_method")
    )
    line_items: Optional[List[LineItem]] = Field(None, validation_alias=AliasChoices("lineItems", "line_items"))

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for name in REQUIRED_UPDATE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict:
        """Return only the fields the caller actually sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class SettlementRequest(CamelModel):
    """Final invoiced figure recorded against an advance payment."""
    settlement_amount: Decimal = Field(
        ..., ge=0, validation_alias=AliasChoices("settlementAmount", "settlement_amount")
    )
    settlement_date: date = Field(..., validation_alias=AliasChoices("settlementDate", "settlement_date"))
    settlement_notes: Optional[str] = Field(None, validation_alias=AliasChoices("settlementNotes", "settlement_notes"))

    @field_validator("settlement_notes", mode="before")
    @classmethod
    def blank_notes(cls, value):
        return _blank_to_none(value)


class PaymentRecord(CamelModel):
    """A persisted payment with derived amounts and settlement state."""
    id: str
    party_name: str
    amount: Decimal
    payment_date: date
    description: Optional[str] = None
    quotation_number: Optional[str] = None
    purchase_order_number: Optional[str] = None
    includes_vat: bool = Field(False, alias="includesVAT")
    vat_amount: Optional[Decimal] = None
    total_amount: Decimal
    is_settled: bool = False
    settlement_amount: Optional[Decimal] = None
    settlement_date: Optional[date] = None
    settlement_notes: Optional[str] = None
    payment_type: PaymentType = PaymentType.EXPENSE
    expense_category: Optional[ExpenseCategory] = None
    payment_method: Optional[PaymentMethod] = None
    line_items: Optional[List[LineItem]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
