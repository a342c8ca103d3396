"""
Row codec for spreadsheet-style stores.

Maps a PaymentRecord to a fixed column order and back. Empty cells stand for
null; booleans are written as TRUE/FALSE; line items are a JSON blob.
"""

import json
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError

from treasury_backend.app.core.exceptions import StoreError
from treasury_backend.app.schemas.payment import PaymentRecord

COLUMNS = [
    "ID",
    "Party Name",
    "Amount",
    "Payment Date",
    "Description",
    "Quotation Number",
    "Purchase Order Number",
    "Includes VAT",
    "VAT Amount",
    "Total Amount",
    "Is Settled",
    "Settlement Amount",
    "Settlement Date",
    "Settlement Notes",
    "Payment Type",
    "Expense Category",
    "Payment Method",
    "Line Items",
    "Created At",
    "Updated At",
]


def column_letter(index: int) -> str:
    """1-based column index to spreadsheet letters (1 -> A, 27 -> AA)."""
    letters = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


LAST_COLUMN = column_letter(len(COLUMNS))


def _text(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "value"):  # enums
        return value.value
    return str(value)


def _flag(value: bool) -> str:
    return "TRUE" if value else "FALSE"


def _cell(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_flag(value: Any) -> bool:
    return value is True or (isinstance(value, str) and value.strip().upper() == "TRUE")


def _parse_decimal(value: Any) -> Optional[Decimal]:
    text = _cell(value)
    return Decimal(text) if text is not None else None


def _parse_date(value: Any) -> Optional[date]:
    text = _cell(value)
    if text is None:
        return None
    # Older rows carry full ISO timestamps in date columns
    return datetime.fromisoformat(text.replace("Z", "+00:00")).date() if "T" in text else date.fromisoformat(text)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    text = _cell(value)
    if text is None:
        return None
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def record_to_row(record: PaymentRecord) -> List[str]:
    line_items = None
    if record.line_items:
        line_items = json.dumps([item.model_dump(mode="json", by_alias=True) for item in record.line_items])

    return [
        record.id,
        record.party_name,
        _text(record.amount),
        record.payment_date.isoformat(),
        _text(record.description),
        _text(record.quotation_number),
        _text(record.purchase_order_number),
        _flag(record.includes_vat),
        _text(record.vat_amount),
        _text(record.total_amount),
        _flag(record.is_settled),
        _text(record.settlement_amount),
        record.settlement_date.isoformat() if record.settlement_date else "",
        _text(record.settlement_notes),
        _text(record.payment_type),
        _text(record.expense_category),
        _text(record.payment_method),
        _text(line_items),
        record.created_at.isoformat(),
        record.updated_at.isoformat(),
    ]


def row_to_record(row: List[Any]) -> PaymentRecord:
    """
    Decode one stored row.

    Remote stores trim trailing empty cells, so short rows are padded.

    Raises:
        StoreError: If a cell cannot be decoded.
    """
    cells = list(row) + [""] * (len(COLUMNS) - len(row))
    try:
        created_at = _parse_timestamp(cells[18]) or datetime.now(timezone.utc)
        line_items = _cell(cells[17])
        return PaymentRecord(
            id=_cell(cells[0]) or "",
            party_name=_cell(cells[1]) or "",
            amount=_parse_decimal(cells[2]) or Decimal("0.00"),
            payment_date=_parse_date(cells[3]),
            description=_cell(cells[4]),
            quotation_number=_cell(cells[5]),
            purchase_order_number=_cell(cells[6]),
            includes_vat=_parse_flag(cells[7]),
            vat_amount=_parse_decimal(cells[8]),
            total_amount=_parse_decimal(cells[9]) or Decimal("0.00"),
            is_settled=_parse_flag(cells[10]),
            settlement_amount=_parse_decimal(cells[11]),
            settlement_date=_parse_date(cells[12]),
            settlement_notes=_cell(cells[13]),
            payment_type=_cell(cells[14]) or "expense",
            expense_category=_cell(cells[15]),
            payment_method=_cell(cells[16]),
            line_items=json.loads(line_items) if line_items else None,
            created_at=created_at,
            updated_at=_parse_timestamp(cells[19]) or created_at,
        )
    except (InvalidOperation, ValueError, TypeError, PydanticValidationError) as exc:
        raise StoreError(
            "Stored payment row has an unexpected shape",
            details={"id": cells[0], "reason": str(exc)}
        ) from exc
