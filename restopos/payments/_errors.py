"""
Payment errors — closed taxonomy, returned as values inside Error(...).
"""

from __future__ import annotations

from dataclasses import dataclass

from restopos.payments._status import PaymentStatus


@dataclass(frozen=True, slots=True)
class InvalidAmount:
    @property
    def message(self) -> str:
        return "Invalid payment amount"


@dataclass(frozen=True, slots=True)
class InvalidPaymentType:
    @property
    def message(self) -> str:
        return "Invalid payment type"


@dataclass(frozen=True, slots=True)
class InvalidCardDetails:
    @property
    def message(self) -> str:
        return "Invalid card details"


@dataclass(frozen=True, slots=True)
class ProcessorError:
    reason: str

    @property
    def message(self) -> str:
        return f"Payment processor error: {self.reason}"


@dataclass(frozen=True, slots=True)
class NetworkError:
    @property
    def message(self) -> str:
        return "Network error occurred"


@dataclass(frozen=True, slots=True)
class InvalidStatusTransition:
    from_status: PaymentStatus
    to_status: PaymentStatus

    @property
    def message(self) -> str:
        return (
            f"Cannot transition payment from {self.from_status.display_name} "
            f"to {self.to_status.display_name}"
        )


@dataclass(frozen=True, slots=True)
class PaymentNotFound:
    @property
    def message(self) -> str:
        return "Payment not found"


@dataclass(frozen=True, slots=True)
class DuplicatePayment:
    @property
    def message(self) -> str:
        return "Duplicate payment detected"


@dataclass(frozen=True, slots=True)
class InsufficientFunds:
    @property
    def message(self) -> str:
        return "Insufficient funds"


@dataclass(frozen=True, slots=True)
class CardExpired:
    @property
    def message(self) -> str:
        return "Card has expired"


@dataclass(frozen=True, slots=True)
class CardDeclined:
    @property
    def message(self) -> str:
        return "Card was declined"


@dataclass(frozen=True, slots=True)
class ProcessorUnavailable:
    @property
    def message(self) -> str:
        return "Payment processor is unavailable"


@dataclass(frozen=True, slots=True)
class InvalidOrder:
    @property
    def message(self) -> str:
        return "Invalid order"


@dataclass(frozen=True, slots=True)
class RefundExceededAmount:
    @property
    def message(self) -> str:
        return "Refund amount exceeds payment amount"


@dataclass(frozen=True, slots=True)
class PaymentAlreadyCompleted:
    @property
    def message(self) -> str:
        return "Payment has already been completed"


@dataclass(frozen=True, slots=True)
class PaymentAlreadyRefunded:
    @property
    def message(self) -> str:
        return "Payment has already been refunded"


type PaymentError = (
    InvalidAmount
    | InvalidPaymentType
    | InvalidCardDetails
    | ProcessorError
    | NetworkError
    | InvalidStatusTransition
    | PaymentNotFound
    | DuplicatePayment
    | InsufficientFunds
    | CardExpired
    | CardDeclined
    | ProcessorUnavailable
    | InvalidOrder
    | RefundExceededAmount
    | PaymentAlreadyCompleted
    | PaymentAlreadyRefunded
)


__all__ = (
    "InvalidAmount",
    "InvalidPaymentType",
    "InvalidCardDetails",
    "ProcessorError",
    "NetworkError",
    "InvalidStatusTransition",
    "PaymentNotFound",
    "DuplicatePayment",
    "InsufficientFunds",
    "CardExpired",
    "CardDeclined",
    "ProcessorUnavailable",
    "InvalidOrder",
    "RefundExceededAmount",
    "PaymentAlreadyCompleted",
    "PaymentAlreadyRefunded",
    "PaymentError",
)
