"""Test doubles and Result helpers."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

from kungfu import Result, Ok, Error

from restopos._types import StoreError
from restopos.orders import Order
from restopos.payments import Approved, Authorization, AuthorizationRequest, Payment, PaymentStatus
from restopos.storage import MemoryOrderRepository, MemoryPaymentRepository


def ok[T](result: Result[T, Any]) -> T:
    match result:
        case Ok(value):
            return value
        case Error(e):
            raise AssertionError(f"expected Ok, got Error({e!r})")


def err[E](result: Result[Any, E]) -> E:
    match result:
        case Error(e):
            return e
        case Ok(value):
            raise AssertionError(f"expected Error, got Ok({value!r})")


class ScriptedAuthorizationClient:
    """Plays back queued outcomes; approves once the queue is empty."""

    def __init__(self, *outcomes: Authorization | Exception, delay: float = 0) -> None:
        self._outcomes = list(outcomes)
        self.requests: list[AuthorizationRequest] = []
        self.voided: list[str] = []
        self.refunded: list[tuple[str, Decimal]] = []
        self.fail_refunds = False
        self.delay = delay

    async def authorize(self, request: AuthorizationRequest) -> Authorization:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self._outcomes.pop(0) if self._outcomes else Approved(f"txn_{len(self.requests):08d}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def void(self, transaction_id: str) -> None:
        self.voided.append(transaction_id)

    async def refund(self, transaction_id: str, amount: Decimal) -> None:
        if self.fail_refunds:
            raise ConnectionError("gateway timeout")
        self.refunded.append((transaction_id, amount))


class FlakyOrderRepository(MemoryOrderRepository):
    """Memory repository whose writes can be switched off."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_updates = False
        self.fail_reads = False

    async def get(self, order_id):
        if self.fail_reads:
            return Error(StoreError("connection lost"))
        return await super().get(order_id)

    async def update(self, order: Order) -> Result[Order, StoreError]:
        if self.fail_updates:
            return Error(StoreError("disk full"))
        return await super().update(order)


class FlakyPaymentRepository(MemoryPaymentRepository):
    def __init__(self) -> None:
        super().__init__()
        self.fail_updates = False

    async def update(
        self, payment: Payment, *, expected: PaymentStatus | None = None
    ) -> Result[Payment, StoreError]:
        if self.fail_updates:
            return Error(StoreError("disk full"))
        return await super().update(payment, expected=expected)
