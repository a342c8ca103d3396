"""
Ledger Service (Domain Logic).

The only component that mutates stored payments. Validates input, derives
VAT figures and performs exactly one repository write per mutating call.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

from treasury_backend.app.core.exceptions import AlreadySettledError, ResourceNotFoundError, ValidationError
from treasury_backend.app.db.repository import PaymentRepository
from treasury_backend.app.domain.ledger.payment_record import (
    apply_settlement, apply_update, is_consistent, matches_filters, new_payment_record,
)
from treasury_backend.app.domain.ledger.validation import (
    validate_insert_payment, validate_payment_update, validate_settlement,
)
from treasury_backend.app.models.payment_enums import PaymentType
from treasury_backend.app.schemas.payment import InsertPayment, PaymentRecord, PaymentUpdate, SettlementRequest

logger = logging.getLogger("treasury.ledger")

DEFAULT_RECENT_LIMIT = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerService:

    def __init__(self, repository: PaymentRepository, clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.clock = clock

    async def _require(self, payment_id: str) -> PaymentRecord:
        record = await self.repository.get(payment_id)
        if record is None:
            raise ResourceNotFoundError("Payment", payment_id)
        return record

    @staticmethod
    def _ensure_consistent(record: PaymentRecord) -> PaymentRecord:
        """Refuse to persist a record whose amounts, settlement or classification disagree."""
        if not is_consistent(record):
            raise ValidationError(
                message="Validation failed: inconsistent payment record",
                errors={"payment": "Derived amounts, settlement or classification fields are inconsistent"}
            )
        return record

    async def list_all(
        self,
        search: Optional[str] = None,
        payment_type: Optional[PaymentType] = None,
        settled: Optional[bool] = None,
    ) -> List[PaymentRecord]:
        """Return all payments in store order, optionally filtered."""
        records = await self.repository.list_all()
        if search is None and payment_type is None and settled is None:
            return records
        return [r for r in records if matches_filters(r, search, payment_type, settled)]

    async def get_by_id(self, payment_id: str) -> PaymentRecord:
        return await self._require(payment_id)

    async def list_recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> List[PaymentRecord]:
        """Newest payments first by creation time; equal timestamps keep store order."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(
                message="Validation failed: limit must be a positive integer",
                errors={"limit": "Must be a positive integer"}
            )
        records = await self.repository.list_all()
        return sorted(records, key=lambda r: r.created_at, reverse=True)[:limit]

    async def create(self, payload: Union[InsertPayment, Mapping[str, Any]]) -> PaymentRecord:
        """
        Record a new payment.

        Raises:
            ValidationError: On missing or invalid fields (including the amount).
        """
        data = validate_insert_payment(payload).unwrap()
        record = self._ensure_consistent(new_payment_record(data, self.clock()))

        await self.repository.add(record)
        logger.info(
            "Payment created id=%s type=%s total=%s",
            record.id, record.payment_type.value, record.total_amount
        )
        return record

    async def update(self, payment_id: str, payload: Union[PaymentUpdate, Mapping[str, Any]]) -> PaymentRecord:
        """
        Apply a partial update, re-deriving amounts when the amount or VAT flag is sent.

        Raises:
            ResourceNotFoundError: If no payment has this id.
            ValidationError: On invalid fields or an inconsistent merged record.
        """
        changes = validate_payment_update(payload).unwrap().changes()
        current = await self._require(payment_id)
        updated = self._ensure_consistent(apply_update(current, changes, self.clock()))

        if not await self.repository.replace(updated):
            raise ResourceNotFoundError("Payment", payment_id)
        logger.info("Payment updated id=%s fields=%s", payment_id, ",".join(sorted(changes)))
        return updated

    async def delete(self, payment_id: str) -> None:
        if not await self.repository.remove(payment_id):
            raise ResourceNotFoundError("Payment", payment_id)
        logger.info("Payment deleted id=%s", payment_id)

    async def settle(
        self,
        payment_id: str,
        payload: Union[SettlementRequest, Mapping[str, Any]],
        correction: bool = False,
    ) -> PaymentRecord:
        """
        Record the final invoiced amount for a payment.

        The settlement amount is stored as given; base, VAT and total are not
        recalculated. A settled payment can only be settled again as an
        explicit correction.

        Raises:
            ResourceNotFoundError: If no payment has this id.
            AlreadySettledError: If the payment is settled and this is not a correction.
        """
        settlement = validate_settlement(payload).unwrap()
        current = await self._require(payment_id)
        if current.is_settled and not correction:
            raise AlreadySettledError(payment_id)

        settled = self._ensure_consistent(apply_settlement(current, settlement, self.clock()))
        if not await self.repository.replace(settled):
            raise ResourceNotFoundError("Payment", payment_id)

        if current.is_settled:
            logger.warning(
                "Settlement corrected id=%s previous=%s new=%s",
                payment_id, current.settlement_amount, settled.settlement_amount
            )
        else:
            logger.info("Payment settled id=%s amount=%s", payment_id, settled.settlement_amount)
        return settled
