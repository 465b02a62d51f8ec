"""
Payment aggregate — one attempt to settle an order.

A payment only references its order by id; it never owns it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any
from uuid import UUID, uuid4

from kungfu import Result, Ok, Error

from restopos.payments._errors import (
    InvalidAmount,
    InvalidCardDetails,
    InvalidPaymentType,
    InvalidStatusTransition,
)
from restopos.payments._status import PaymentProcessor, PaymentStatus, PaymentType

_STATUS_TEXT: dict[PaymentStatus, str] = {
    PaymentStatus.PENDING: "Payment pending",
    PaymentStatus.PROCESSING: "Processing payment",
    PaymentStatus.COMPLETED: "Payment completed",
    PaymentStatus.FAILED: "Payment failed",
    PaymentStatus.REFUNDED: "Payment refunded",
    PaymentStatus.PARTIALLY_REFUNDED: "Payment partially refunded",
    PaymentStatus.VOIDED: "Payment voided",
}


@dataclass(frozen=True, slots=True)
class Payment:
    order_id: UUID
    amount: Decimal
    payment_type: PaymentType
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None
    last_four_digits: str | None = None
    processor: PaymentProcessor | None = None
    created_at: datetime = field(default_factory=datetime.now)
    processed_at: datetime | None = None
    failed_at: datetime | None = None
    failure_reason: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise TypeError("amount must be a Decimal")
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    # ═══════════════════════════════════════════════════════════════════════════
    # Status
    # ═══════════════════════════════════════════════════════════════════════════

    def with_status(self, new_status: PaymentStatus) -> Result[Payment, InvalidStatusTransition]:
        """
        Move to new_status if the status machine allows it.

        Side effects:
            COMPLETED → processed_at set, failure cleared
            FAILED → failed_at set, processed_at cleared
            REFUNDED / PARTIALLY_REFUNDED / VOIDED → processed_at set
            PENDING (retry) → failure cleared
        """
        if not self.status.can_transition(new_status):
            return Error(InvalidStatusTransition(self.status, new_status))

        now = datetime.now()
        match new_status:
            case PaymentStatus.COMPLETED:
                return Ok(replace(
                    self,
                    status=new_status,
                    processed_at=now,
                    failed_at=None,
                    failure_reason=None,
                ))
            case PaymentStatus.FAILED:
                return Ok(replace(self, status=new_status, failed_at=now, processed_at=None))
            case PaymentStatus.REFUNDED | PaymentStatus.PARTIALLY_REFUNDED | PaymentStatus.VOIDED:
                return Ok(replace(self, status=new_status, processed_at=now))
            case PaymentStatus.PENDING:
                return Ok(replace(self, status=new_status, failed_at=None, failure_reason=None))
            case _:
                return Ok(replace(self, status=new_status))

    def with_failure_reason(self, reason: str) -> Payment:
        return replace(self, failure_reason=reason)

    def with_transaction_id(self, transaction_id: str) -> Payment:
        return replace(self, transaction_id=transaction_id)

    def with_metadata(self, **values: Any) -> Payment:
        return replace(self, metadata={**self.metadata, **values})

    # ═══════════════════════════════════════════════════════════════════════════
    # Validation
    # ═══════════════════════════════════════════════════════════════════════════

    def validate(self) -> Result[None, InvalidAmount | InvalidCardDetails | InvalidPaymentType]:
        if self.amount <= 0:
            return Error(InvalidAmount())

        if self.payment_type.requires_card_details:
            if self.last_four_digits is None or len(self.last_four_digits) != 4:
                return Error(InvalidCardDetails())

        if self.processor is not None and not self.processor.supports(self.payment_type):
            return Error(InvalidPaymentType())

        return Ok(None)

    # ═══════════════════════════════════════════════════════════════════════════
    # Display
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def status_text(self) -> str:
        if self.status is PaymentStatus.FAILED and self.failure_reason:
            return f"Payment failed: {self.failure_reason}"
        return _STATUS_TEXT[self.status]


__all__ = ("Payment",)
