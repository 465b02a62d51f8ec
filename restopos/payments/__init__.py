"""
Payments — payment attempts, the gateway seam and checkout settlement.

    from restopos import payments as P

    payment = P.Payment(order.id, order.total_amount, P.PaymentType.CREDIT_CARD, last_four_digits="4242")
    service = P.PaymentService(payment_repo, order_repo, P.SimulatedAuthorizationClient())

    match await service.process_payment(payment):
        case Ok(p) if p.status is P.PaymentStatus.COMPLETED:
            ...  # charged, order completed
        case Ok(p):
            ...  # declined, p.failure_reason
        case Error(e):
            ...  # e.message
"""

from restopos.payments._status import PaymentStatus, PaymentType, PaymentProcessor
from restopos.payments._errors import (
    InvalidAmount,
    InvalidPaymentType,
    InvalidCardDetails,
    ProcessorError,
    NetworkError,
    InvalidStatusTransition,
    PaymentNotFound,
    DuplicatePayment,
    InsufficientFunds,
    CardExpired,
    CardDeclined,
    ProcessorUnavailable,
    InvalidOrder,
    RefundExceededAmount,
    PaymentAlreadyCompleted,
    PaymentAlreadyRefunded,
    PaymentError,
)
from restopos.payments._payment import Payment
from restopos.payments._method import PaymentMethod
from restopos.payments._fees import FEE_SCHEDULE, calculate_fees
from restopos.payments._authorization import (
    AuthorizationRequest,
    DeclineReason,
    Approved,
    Declined,
    Authorization,
    AuthorizationClient,
    DECLINING_CARDS,
    SimulatedAuthorizationClient,
)
from restopos.payments._settlement import (
    Compensator,
    CompensationFailed,
    RollbackReport,
    Settlement,
)
from restopos.payments._repository import PaymentRepository
from restopos.payments._service import PaymentService, REFUNDED_AMOUNT_KEY

__all__ = (
    # Enums
    "PaymentStatus",
    "PaymentType",
    "PaymentProcessor",
    # Errors
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
    # Aggregate
    "Payment",
    "PaymentMethod",
    "FEE_SCHEDULE",
    "calculate_fees",
    # Gateway
    "AuthorizationRequest",
    "DeclineReason",
    "Approved",
    "Declined",
    "Authorization",
    "AuthorizationClient",
    "DECLINING_CARDS",
    "SimulatedAuthorizationClient",
    # Settlement
    "Compensator",
    "CompensationFailed",
    "RollbackReport",
    "Settlement",
    # Service
    "PaymentRepository",
    "PaymentService",
    "REFUNDED_AMOUNT_KEY",
)
