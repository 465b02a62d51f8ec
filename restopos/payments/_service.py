"""
Payment service — checkout, refunds and voids, kept in step with the order.

Checkout runs as a Settlement:

    1. authorize at the gateway          (undo: void the charge)
    2. persist the COMPLETED payment     (undo: mark the payment VOIDED)
    3. complete the order

If step 3 fails, steps 2 and 1 are undone in that order and the caller
gets ProcessorError. A charge is never kept without a completed order.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from combinators import lift as L
from kungfu import Result, Ok, Error, LazyCoroResult

from restopos._types import ZERO, StaleWrite, StoreError
from restopos.config import Settings, get_settings
from restopos.orders import Order, OrderRepository, OrderStatus
from restopos.payments._authorization import (
    Approved,
    Authorization,
    AuthorizationClient,
    AuthorizationRequest,
    Declined,
)
from restopos.payments._errors import (
    DuplicatePayment,
    InvalidAmount,
    InvalidOrder,
    InvalidStatusTransition,
    PaymentAlreadyCompleted,
    PaymentError,
    PaymentNotFound,
    ProcessorError,
    RefundExceededAmount,
)
from restopos.payments._fees import calculate_fees
from restopos.payments._method import PaymentMethod
from restopos.payments._payment import Payment
from restopos.payments._repository import PaymentRepository
from restopos.payments._settlement import CompensationFailed, Settlement
from restopos.payments._status import PaymentProcessor, PaymentStatus, PaymentType

logger = logging.getLogger(__name__)

REFUNDED_AMOUNT_KEY = "refunded_amount"


class PaymentService:
    def __init__(
        self,
        payments: PaymentRepository,
        orders: OrderRepository,
        client: AuthorizationClient,
        settings: Settings | None = None,
        payment_methods: Sequence[PaymentMethod] = (),
    ) -> None:
        self._payments = payments
        self._orders = orders
        self._client = client
        self._settings = settings or get_settings()
        self._payment_methods = tuple(payment_methods)

    # ═══════════════════════════════════════════════════════════════════════════
    # Creation
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_payment(self, payment: Payment) -> Result[Payment, PaymentError]:
        """Record a payment attempt. Refused if the order is already paid."""
        match await self._ensure_not_paid(payment):
            case Error(e):
                return Error(e)

        match await self._payments.create(payment):
            case Ok(created):
                return Ok(created)
            case Error(e):
                return Error(self._storage_failed("create_payment", e))

    # ═══════════════════════════════════════════════════════════════════════════
    # Checkout
    # ═══════════════════════════════════════════════════════════════════════════

    async def process_payment(self, payment: Payment) -> Result[Payment, PaymentError]:
        """
        Charge a payment against its READY order.

        Returns:
            Ok(payment) COMPLETED — charged, order COMPLETED
            Ok(payment) FAILED — declined by the gateway, order untouched
            Error(...) — validation, order, storage or gateway failure
        """
        match payment.validate():
            case Error(e):
                return Error(e)

        match await self._load_order(payment.order_id):
            case Error(e):
                return Error(e)
            case Ok(order):
                pass

        if not order.status.can_transition(OrderStatus.COMPLETED):
            return Error(InvalidOrder())
        if abs(order.total_amount - payment.amount) > self._settings.currency_epsilon:
            return Error(InvalidAmount())

        match payment.with_status(PaymentStatus.PROCESSING):
            case Error(e):
                return Error(e)
            case Ok(processing):
                pass

        match await self._save_processing(processing):
            case Error(e):
                return Error(e)
            case Ok(processing):
                pass

        logger.info(
            "processing payment for %s",
            order.order_number,
            extra={"payment_id": str(processing.id), "amount": str(processing.amount)},
        )
        return await self._settle(processing, order)

    async def retry_payment(self, payment: Payment) -> Result[Payment, PaymentError]:
        """Put a FAILED payment back to PENDING and run checkout again."""
        match payment.with_status(PaymentStatus.PENDING):
            case Error(e):
                return Error(e)
            case Ok(pending):
                return await self.process_payment(pending)

    async def _settle(self, processing: Payment, order: Order) -> Result[Payment, PaymentError]:
        settlement = Settlement(f"checkout {order.order_number}")

        match await settlement.step(self._authorize(processing), compensate=self._release_charge):
            case Error(e):
                await self._record_failure(processing, e.message)
                return Error(e)
            case Ok(Declined(reason)):
                return await self._record_failure(processing, reason.value)
            case Ok(Approved(transaction_id)):
                pass

        completed = _transition(processing, PaymentStatus.COMPLETED).with_transaction_id(transaction_id)

        match await settlement.step(
            self._persist(completed, expected=PaymentStatus.PROCESSING),
            compensate=self._mark_voided,
        ):
            case Error(e):
                await settlement.rollback()
                return Error(e)
            case Ok(completed):
                pass

        match await settlement.step(self._complete_order(order.id)):
            case Ok(completed_order):
                logger.info(
                    "order %s settled",
                    completed_order.order_number,
                    extra={"payment_id": str(completed.id), "transaction_id": transaction_id},
                )
                return Ok(completed)
            case Error(e):
                report = await settlement.rollback()
                logger.warning(
                    "order %s could not be completed after charge %s; rollback %s",
                    order.order_number,
                    transaction_id,
                    "complete" if report.complete else "INCOMPLETE, reconcile manually",
                )
                return Error(ProcessorError(f"order completion failed: {e.message}"))

    def _authorize(self, payment: Payment) -> LazyCoroResult[Authorization, PaymentError]:
        request = AuthorizationRequest.for_payment(payment)
        return L.catching_async(
            lambda: self._client.authorize(request),
            on_error=lambda e: ProcessorError(str(e) or type(e).__name__),
        )

    async def _release_charge(self, authorization: Authorization) -> None:
        if isinstance(authorization, Approved):
            await self._client.void(authorization.transaction_id)

    async def _mark_voided(self, payment: Payment) -> None:
        voided = _transition(payment, PaymentStatus.VOIDED).with_failure_reason(
            "Voided: order could not be completed"
        )
        match await self._payments.update(voided, expected=PaymentStatus.COMPLETED):
            case Error(e):
                raise CompensationFailed(e.message)

    async def _record_failure(self, processing: Payment, reason: str) -> Result[Payment, PaymentError]:
        failed = _transition(processing, PaymentStatus.FAILED).with_failure_reason(reason)
        logger.info("payment %s failed: %s", processing.id, reason)
        return await self._persist(failed, expected=PaymentStatus.PROCESSING)

    async def _complete_order(self, order_id: UUID) -> Result[Order, PaymentError]:
        match await self._load_order(order_id):
            case Error(e):
                return Error(e)
            case Ok(order):
                pass

        match order.update_status(OrderStatus.COMPLETED):
            case Error(e):
                return Error(ProcessorError(e.message))
            case Ok(completed):
                pass

        match await self._orders.update(completed):
            case Ok(saved):
                return Ok(saved)
            case Error(e):
                return Error(self._storage_failed("complete_order", e))

    async def _save_processing(self, processing: Payment) -> Result[Payment, PaymentError]:
        """
        Claim the payment for this checkout: create it, or move a stored
        PENDING or FAILED attempt to PROCESSING.

        The write is conditional on the stored status, so of two concurrent
        checkouts of one payment only the first reaches the gateway.
        """
        match await self._ensure_not_paid(processing):
            case Error(e):
                return Error(e)

        match await self._payments.get(processing.id):
            case Error(e):
                return Error(self._storage_failed("process_payment", e))
            case Ok(None):
                stored = await self._payments.create(processing)
            case Ok(existing):
                # FAILED is claimable through retry_payment
                if existing.status not in (PaymentStatus.PENDING, PaymentStatus.FAILED):
                    logger.warning("payment %s is already %s", existing.id, existing.status.value)
                    return Error(InvalidStatusTransition(existing.status, PaymentStatus.PROCESSING))
                stored = await self._payments.update(processing, expected=existing.status)

        match stored:
            case Ok(saved):
                return Ok(saved)
            case Error(StaleWrite()):
                logger.warning("payment %s claimed by a concurrent checkout", processing.id)
                return Error(InvalidStatusTransition(PaymentStatus.PROCESSING, PaymentStatus.PROCESSING))
            case Error(e):
                return Error(self._storage_failed("process_payment", e))

    # ═══════════════════════════════════════════════════════════════════════════
    # Refund / Void
    # ═══════════════════════════════════════════════════════════════════════════

    async def refund_payment(self, payment: Payment, amount: Decimal) -> Result[Payment, PaymentError]:
        """
        Refund part or all of a COMPLETED payment.

        A full refund also cancels the order, when it still exists. If only
        the final order write fails, the refund stands and ProcessorError is
        returned.
        """
        match await self._load_payment(payment.id):
            case Error(e):
                return Error(e)
            case Ok(current):
                pass

        if current.status is not PaymentStatus.COMPLETED:
            return Error(PaymentAlreadyCompleted())
        if not ZERO < amount <= current.amount:
            return Error(RefundExceededAmount())

        full = amount == current.amount
        new_status = PaymentStatus.REFUNDED if full else PaymentStatus.PARTIALLY_REFUNDED
        refunded = _transition(current, new_status).with_metadata(**{REFUNDED_AMOUNT_KEY: str(amount)})

        cancelled: Order | None = None
        if full:
            match await self._prepare_order(current.order_id, lambda o: o.cancel_refunded()):
                case Error(e):
                    return Error(e)
                case Ok(cancelled):
                    pass

        if current.transaction_id is not None:
            match await self._gateway("refund", lambda: self._client.refund(current.transaction_id, amount)):
                case Error(e):
                    return Error(e)

        match await self._persist(refunded):
            case Error(e):
                return Error(e)
            case Ok(refunded):
                logger.info("payment %s %s: %s", refunded.id, new_status.value, amount)

        if cancelled is not None:
            match await self._save_order(cancelled, "cancel_order"):
                case Error(e):
                    return Error(e)
        return Ok(refunded)

    async def void_payment(self, payment: Payment) -> Result[Payment, PaymentError]:
        """
        Void a payment as if the attempt never happened.

        The order goes back to PENDING unless it is CANCELLED or gone, in
        which case it is left alone. A completed charge is released at the
        gateway first.
        """
        match await self._load_payment(payment.id):
            case Error(e):
                return Error(e)
            case Ok(current):
                pass

        match current.with_status(PaymentStatus.VOIDED):
            case Error(e):
                return Error(e)
            case Ok(voided):
                pass

        match await self._prepare_order(current.order_id, lambda o: o.reopen()):
            case Error(e):
                return Error(e)
            case Ok(reopened):
                pass

        if current.status is PaymentStatus.COMPLETED and current.transaction_id is not None:
            match await self._gateway("void", lambda: self._client.void(current.transaction_id)):
                case Error(e):
                    return Error(e)

        match await self._persist(voided):
            case Error(e):
                return Error(e)
            case Ok(voided):
                logger.info("payment %s voided", voided.id)

        if reopened is not None:
            match await self._save_order(reopened, "reopen_order"):
                case Error(e):
                    return Error(e)
        return Ok(voided)

    async def _prepare_order(
        self, order_id: UUID, transform: Callable[[Order], Result[Order, Any]]
    ) -> Result[Order | None, PaymentError]:
        """
        Load the order and apply the follow-up transition without saving it.

        Ok(None) when the order is gone or cannot make the move: the payment
        change still goes ahead and the order is left as it is.
        """
        match await self._orders.get(order_id):
            case Error(e):
                return Error(self._storage_failed("load_order", e))
            case Ok(None):
                logger.warning("order %s not found; payment change applied alone", order_id)
                return Ok(None)
            case Ok(order):
                pass

        match transform(order):
            case Ok(updated):
                return Ok(updated)
            case Error(e):
                logger.warning("order %s left %s: %s", order.order_number, order.status.value, e.message)
                return Ok(None)

    async def _save_order(self, order: Order, operation: str) -> Result[Order, PaymentError]:
        match await self._orders.update(order):
            case Ok(saved):
                logger.info("order %s now %s", saved.order_number, saved.status.value)
                return Ok(saved)
            case Error(e):
                return Error(self._storage_failed(operation, e))

    # ═══════════════════════════════════════════════════════════════════════════
    # Reconciliation
    # ═══════════════════════════════════════════════════════════════════════════

    async def reconcile_order(self, order_id: UUID) -> Result[Order, PaymentError]:
        """
        Complete a READY order that already holds a completed payment.

        Repairs the state left behind when a process dies between the
        charge and the order update.
        """
        match await self._load_order(order_id):
            case Error(e):
                return Error(e)
            case Ok(order):
                pass

        if order.status is OrderStatus.COMPLETED:
            return Ok(order)
        if not order.status.can_transition(OrderStatus.COMPLETED):
            return Error(InvalidOrder())

        match await self.is_payment_complete(order_id):
            case Error(e):
                return Error(e)
            case Ok(False):
                return Error(InvalidOrder())

        match await self._complete_order(order_id):
            case Ok(completed):
                logger.info("order %s reconciled", completed.order_number)
                return Ok(completed)
            case Error(e):
                return Error(e)

    # ═══════════════════════════════════════════════════════════════════════════
    # Queries
    # ═══════════════════════════════════════════════════════════════════════════

    def validate_payment(self, payment: Payment) -> Result[None, PaymentError]:
        return payment.validate()

    def calculate_fees(self, payment: Payment, processor: PaymentProcessor) -> Decimal:
        return calculate_fees(payment, processor)

    def list_payment_methods(self, processor: PaymentProcessor) -> list[PaymentMethod]:
        """Active stored methods for a processor, default first."""
        methods = [m for m in self._payment_methods if m.processor is processor and m.is_active]
        return sorted(methods, key=lambda m: not m.is_default)

    async def get_payment(self, payment_id: UUID) -> Result[Payment, PaymentError]:
        return await self._load_payment(payment_id)

    async def list_payments(self, order_id: UUID) -> Result[list[Payment], PaymentError]:
        match await self._payments.list_by_order(order_id):
            case Ok(payments):
                return Ok(payments)
            case Error(e):
                return Error(self._storage_failed("list_payments", e))

    async def is_payment_complete(self, order_id: UUID) -> Result[bool, PaymentError]:
        match await self.list_payments(order_id):
            case Ok(payments):
                return Ok(any(p.status is PaymentStatus.COMPLETED for p in payments))
            case Error(e):
                return Error(e)

    async def get_total_paid(self, order_id: UUID) -> Result[Decimal, PaymentError]:
        match await self.list_payments(order_id):
            case Ok(payments):
                return Ok(_sum_amounts(p for p in payments if p.status is PaymentStatus.COMPLETED))
            case Error(e):
                return Error(e)

    # ─── Reporting ────────────────────────────────────────────────────────────

    async def total_revenue(self, start: datetime, end: datetime) -> Result[Decimal, PaymentError]:
        match await self._between(start, end):
            case Ok(payments):
                return Ok(_sum_amounts(p for p in payments if p.status is PaymentStatus.COMPLETED))
            case Error(e):
                return Error(e)

    async def payment_type_distribution(
        self, start: datetime, end: datetime
    ) -> Result[dict[PaymentType, int], PaymentError]:
        match await self._between(start, end):
            case Ok(payments):
                counts = Counter(p.payment_type for p in payments if p.status is PaymentStatus.COMPLETED)
                return Ok(dict(counts))
            case Error(e):
                return Error(e)

    async def refund_total(self, start: datetime, end: datetime) -> Result[Decimal, PaymentError]:
        refunded_statuses = (PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED)
        match await self._between(start, end):
            case Ok(payments):
                return Ok(sum(
                    (_refunded_amount(p) for p in payments if p.status in refunded_statuses),
                    ZERO,
                ))
            case Error(e):
                return Error(e)

    # ═══════════════════════════════════════════════════════════════════════════
    # Helpers
    # ═══════════════════════════════════════════════════════════════════════════

    async def _ensure_not_paid(self, payment: Payment) -> Result[None, PaymentError]:
        match await self.list_payments(payment.order_id):
            case Error(e):
                return Error(e)
            case Ok(existing):
                if any(p.status is PaymentStatus.COMPLETED and p.id != payment.id for p in existing):
                    logger.warning("duplicate payment refused for order %s", payment.order_id)
                    return Error(DuplicatePayment())
                return Ok(None)

    async def _load_order(self, order_id: UUID) -> Result[Order, PaymentError]:
        match await self._orders.get(order_id):
            case Ok(None):
                return Error(InvalidOrder())
            case Ok(order):
                return Ok(order)
            case Error(e):
                return Error(self._storage_failed("load_order", e))

    async def _load_payment(self, payment_id: UUID) -> Result[Payment, PaymentError]:
        match await self._payments.get(payment_id):
            case Ok(None):
                return Error(PaymentNotFound())
            case Ok(payment):
                return Ok(payment)
            case Error(e):
                return Error(self._storage_failed("load_payment", e))

    async def _persist(
        self, payment: Payment, expected: PaymentStatus | None = None
    ) -> Result[Payment, PaymentError]:
        match await self._payments.update(payment, expected=expected):
            case Ok(saved):
                return Ok(saved)
            case Error(StaleWrite() as e):
                logger.warning("payment %s changed underneath: %s", payment.id, e.message)
                return Error(ProcessorError("payment changed during processing"))
            case Error(e):
                return Error(self._storage_failed("update_payment", e))

    async def _between(self, start: datetime, end: datetime) -> Result[list[Payment], PaymentError]:
        match await self._payments.list_by_date_range(start, end):
            case Ok(payments):
                return Ok(payments)
            case Error(e):
                return Error(self._storage_failed("list_by_date_range", e))

    async def _gateway(
        self, operation: str, call: Callable[[], Awaitable[None]]
    ) -> Result[None, PaymentError]:
        result = await L.catching_async(call, on_error=lambda e: ProcessorError(str(e) or type(e).__name__))
        match result:
            case Error(e):
                logger.error("gateway %s failed: %s", operation, e.message)
                return Error(e)
            case Ok(_):
                return Ok(None)

    @staticmethod
    def _storage_failed(operation: str, error: StoreError) -> ProcessorError:
        logger.error("payment storage failed during %s: %s", operation, error.message)
        return ProcessorError("payment storage unavailable")


# ═══════════════════════════════════════════════════════════════════════════════
# Module helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _transition(payment: Payment, status: PaymentStatus) -> Payment:
    """Transition that the calling flow guarantees is legal."""
    match payment.with_status(status):
        case Ok(updated):
            return updated
        case Error(e):
            raise AssertionError(e.message)


def _sum_amounts(payments: Iterable[Payment]) -> Decimal:
    return sum((p.amount for p in payments), ZERO)


def _refunded_amount(payment: Payment) -> Decimal:
    recorded = payment.metadata.get(REFUNDED_AMOUNT_KEY)
    return Decimal(recorded) if recorded is not None else payment.amount


__all__ = ("PaymentService", "REFUNDED_AMOUNT_KEY")
