"""
Processor fees.
"""

from __future__ import annotations

from decimal import Decimal

from restopos.payments._payment import Payment
from restopos.payments._status import PaymentProcessor

# processor → (percentage rate, fixed fee per transaction)
FEE_SCHEDULE: dict[PaymentProcessor, tuple[Decimal, Decimal]] = {
    PaymentProcessor.STRIPE: (Decimal("0.029"), Decimal("0.30")),
    PaymentProcessor.SQUARE: (Decimal("0.026"), Decimal("0.10")),
    PaymentProcessor.PAYPAL: (Decimal("0.029"), Decimal("0.30")),
    PaymentProcessor.APPLE_PAY: (Decimal("0.015"), Decimal("0")),
}

_NO_FEE = (Decimal("0"), Decimal("0"))


def calculate_fees(payment: Payment, processor: PaymentProcessor) -> Decimal:
    """amount × rate + fixed fee. Internal, manual and unlisted processors charge nothing."""
    rate, fixed = FEE_SCHEDULE.get(processor, _NO_FEE)
    return payment.amount * rate + fixed


__all__ = ("FEE_SCHEDULE", "calculate_fees")
