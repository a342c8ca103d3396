"""
Per-operation input validation.

Each validator takes a raw payload (decoded JSON) and returns a tagged
Validated result instead of raising, so callers decide how to surface
field-level errors.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Mapping, Optional, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from treasury_backend.app.core.exceptions import ValidationError
from treasury_backend.app.domain.ledger.payment_record import classification_errors
from treasury_backend.app.schemas.payment import InsertPayment, LineItem, PaymentUpdate, SettlementRequest

T = TypeVar("T")


@dataclass(frozen=True)
class Validated(Generic[T]):
    """Either a validated value or a map of field -> error message."""
    value: Optional[T] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> T:
        """Return the value or raise ValidationError with the field errors."""
        if self.errors:
            summary = "; ".join(f"{name}: {message}" for name, message in self.errors.items())
            raise ValidationError(message=f"Validation failed: {summary}", errors=dict(self.errors))
        return self.value


def _field_errors(exc: PydanticValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "payload"
        errors.setdefault(location, error["msg"])
    return errors


def _validate(model: type, payload: Any) -> Validated:
    if isinstance(payload, model):
        return Validated(value=payload)
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_unset=True)
    try:
        return Validated(value=model.model_validate(payload))
    except PydanticValidationError as exc:
        return Validated(errors=_field_errors(exc))


def validate_line_item(payload: Mapping[str, Any]) -> Validated[LineItem]:
    return _validate(LineItem, payload)


def _line_item_errors(payload: Any) -> Dict[str, str]:
    """Field errors of each raw line item, keyed lineItems.<index>.<field>."""
    if not isinstance(payload, Mapping):
        return {}
    items = payload.get("lineItems", payload.get("line_items"))
    if not isinstance(items, list):
        return {}

    errors: Dict[str, str] = {}
    for index, item in enumerate(items):
        for name, message in validate_line_item(item).errors.items():
            errors[f"lineItems.{index}.{name}"] = message
    return errors


def validate_insert_payment(payload: Mapping[str, Any]) -> Validated[InsertPayment]:
    """Validate a new payment: required fields, amount, enums, line items and classification."""
    result = _validate(InsertPayment, payload)
    item_errors = _line_item_errors(payload)
    if item_errors:
        return Validated(errors={**result.errors, **item_errors})
    if not result.ok:
        return result

    data = result.value
    errors = classification_errors(data.payment_type, data.expense_category, data.line_items)
    if errors:
        return Validated(errors=errors)
    return result


def validate_payment_update(payload: Mapping[str, Any]) -> Validated[PaymentUpdate]:
    """Validate a partial update. Cross-field rules are checked after merging."""
    result = _validate(PaymentUpdate, payload)
    item_errors = _line_item_errors(payload)
    if item_errors:
        return Validated(errors={**result.errors, **item_errors})
    return result


def validate_settlement(payload: Mapping[str, Any]) -> Validated[SettlementRequest]:
    return _validate(SettlementRequest, payload)
