"""
Payment enums — status machine, tender types, processors.
"""

from __future__ import annotations

from enum import Enum

# ═══════════════════════════════════════════════════════════════════════════════
# Payment Status
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentStatus(Enum):
    """
    Payment lifecycle.

        PENDING            → PROCESSING | FAILED | VOIDED
        PROCESSING         → COMPLETED | FAILED
        COMPLETED          → REFUNDED | PARTIALLY_REFUNDED | VOIDED
        FAILED             → PENDING (retry) | VOIDED
        PARTIALLY_REFUNDED → REFUNDED

    REFUNDED and VOIDED are terminal.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"
    VOIDED = "voided"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def allowed_transitions(self) -> frozenset[PaymentStatus]:
        return _TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]

    def can_transition(self, to: PaymentStatus) -> bool:
        return to in _TRANSITIONS[self]


_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({
        PaymentStatus.PROCESSING,
        PaymentStatus.FAILED,
        PaymentStatus.VOIDED,
    }),
    PaymentStatus.PROCESSING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset({
        PaymentStatus.REFUNDED,
        PaymentStatus.PARTIALLY_REFUNDED,
        PaymentStatus.VOIDED,
    }),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PENDING, PaymentStatus.VOIDED}),
    PaymentStatus.PARTIALLY_REFUNDED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.VOIDED: frozenset(),
}

# ═══════════════════════════════════════════════════════════════════════════════
# Payment Type
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentType(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    CASH = "cash"
    MOBILE_PAY = "mobile_pay"
    GIFT_CARD = "gift_card"
    CHECK = "check"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def requires_card_details(self) -> bool:
        return self in (PaymentType.CREDIT_CARD, PaymentType.DEBIT_CARD)


# ═══════════════════════════════════════════════════════════════════════════════
# Payment Processor
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentProcessor(Enum):
    STRIPE = "stripe"
    SQUARE = "square"
    PAYPAL = "paypal"
    APPLE_PAY = "apple_pay"
    GOOGLE_PAY = "google_pay"
    INTERNAL = "internal"
    MANUAL = "manual"

    @property
    def display_name(self) -> str:
        return _PROCESSOR_NAMES[self]

    @property
    def supported_payment_types(self) -> frozenset[PaymentType]:
        return _SUPPORTED_TYPES[self]

    def supports(self, payment_type: PaymentType) -> bool:
        return payment_type in _SUPPORTED_TYPES[self]


_PROCESSOR_NAMES: dict[PaymentProcessor, str] = {
    PaymentProcessor.STRIPE: "Stripe",
    PaymentProcessor.SQUARE: "Square",
    PaymentProcessor.PAYPAL: "PayPal",
    PaymentProcessor.APPLE_PAY: "Apple Pay",
    PaymentProcessor.GOOGLE_PAY: "Google Pay",
    PaymentProcessor.INTERNAL: "Internal",
    PaymentProcessor.MANUAL: "Manual",
}

_CARDS = frozenset({PaymentType.CREDIT_CARD, PaymentType.DEBIT_CARD})

_SUPPORTED_TYPES: dict[PaymentProcessor, frozenset[PaymentType]] = {
    PaymentProcessor.STRIPE: _CARDS | {PaymentType.MOBILE_PAY},
    PaymentProcessor.SQUARE: _CARDS | {PaymentType.MOBILE_PAY},
    PaymentProcessor.PAYPAL: _CARDS,
    PaymentProcessor.APPLE_PAY: frozenset({PaymentType.MOBILE_PAY}),
    PaymentProcessor.GOOGLE_PAY: frozenset({PaymentType.MOBILE_PAY}),
    PaymentProcessor.INTERNAL: frozenset(PaymentType),
    PaymentProcessor.MANUAL: frozenset(PaymentType),
}


__all__ = ("PaymentStatus", "PaymentType", "PaymentProcessor")
