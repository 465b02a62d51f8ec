"""
Authorization — the gateway seam.

PaymentService never decides whether a charge is approved; it asks an
AuthorizationClient. Production code plugs a gateway adapter in here,
tests plug in a scripted client.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Protocol
from uuid import UUID

from restopos.payments._errors import (
    CardDeclined,
    CardExpired,
    InsufficientFunds,
    PaymentError,
    ProcessorError,
)
from restopos.payments._payment import Payment
from restopos.payments._status import PaymentProcessor, PaymentType

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Request / Response
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class AuthorizationRequest:
    payment_id: UUID
    order_id: UUID
    amount: Decimal
    payment_type: PaymentType
    last_four_digits: str | None
    processor: PaymentProcessor | None

    @classmethod
    def for_payment(cls, payment: Payment) -> AuthorizationRequest:
        return cls(
            payment_id=payment.id,
            order_id=payment.order_id,
            amount=payment.amount,
            payment_type=payment.payment_type,
            last_four_digits=payment.last_four_digits,
            processor=payment.processor,
        )


class DeclineReason(Enum):
    INSUFFICIENT_FUNDS = "Insufficient funds"
    CARD_DECLINED = "Card declined"
    EXPIRED_CARD = "Expired card"
    PROCESSOR_ERROR = "Processor error"

    def as_error(self) -> PaymentError:
        match self:
            case DeclineReason.INSUFFICIENT_FUNDS:
                return InsufficientFunds()
            case DeclineReason.CARD_DECLINED:
                return CardDeclined()
            case DeclineReason.EXPIRED_CARD:
                return CardExpired()
            case DeclineReason.PROCESSOR_ERROR:
                return ProcessorError(self.value)


@dataclass(frozen=True, slots=True)
class Approved:
    transaction_id: str


@dataclass(frozen=True, slots=True)
class Declined:
    reason: DeclineReason


type Authorization = Approved | Declined

# ═══════════════════════════════════════════════════════════════════════════════
# Client Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class AuthorizationClient(Protocol):
    """
    Gateway adapter protocol.

    Transport failures are raised as exceptions; PaymentService turns them
    into ProcessorError.
    """

    async def authorize(self, request: AuthorizationRequest) -> Authorization:
        ...

    async def void(self, transaction_id: str) -> None:
        """Release an approved charge."""
        ...

    async def refund(self, transaction_id: str, amount: Decimal) -> None:
        """Return part or all of a settled charge."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Simulated Client — demos and local runs
# ═══════════════════════════════════════════════════════════════════════════════

DECLINING_CARDS: dict[str, DeclineReason] = {
    "0002": DeclineReason.CARD_DECLINED,
    "9995": DeclineReason.INSUFFICIENT_FUNDS,
    "0069": DeclineReason.EXPIRED_CARD,
    "0119": DeclineReason.PROCESSOR_ERROR,
}
"""Card endings that always decline, after the usual gateway test cards."""


class SimulatedAuthorizationClient:
    """
    Deterministic stand-in for a gateway.

    Declines the card endings in DECLINING_CARDS, approves everything else.
    """

    def __init__(self) -> None:
        self.voided: list[str] = []
        self.refunded: list[tuple[str, Decimal]] = []

    async def authorize(self, request: AuthorizationRequest) -> Authorization:
        reason = DECLINING_CARDS.get(request.last_four_digits or "")
        if reason is not None:
            logger.info("simulated gateway declined %s: %s", request.payment_id, reason.value)
            return Declined(reason)

        return Approved(f"txn_{uuid.uuid4().hex[:8]}")

    async def void(self, transaction_id: str) -> None:
        self.voided.append(transaction_id)

    async def refund(self, transaction_id: str, amount: Decimal) -> None:
        self.refunded.append((transaction_id, amount))


__all__ = (
    "AuthorizationRequest",
    "DeclineReason",
    "Approved",
    "Declined",
    "Authorization",
    "AuthorizationClient",
    "DECLINING_CARDS",
    "SimulatedAuthorizationClient",
)
