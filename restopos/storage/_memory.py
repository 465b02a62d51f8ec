"""
In-memory repositories.

Note: single process only; data does not survive a restart. Used by the
test suite and local demos.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from kungfu import Result, Ok, Error

from restopos._types import StaleWrite, StoreError
from restopos.orders import Order, OrderStatus
from restopos.payments import Payment, PaymentStatus
from restopos.storage._locks import KeyedLock


def _newest_first[T: (Order, Payment)](rows: list[T]) -> list[T]:
    return sorted(rows, key=lambda r: r.created_at, reverse=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryOrderRepository:
    def __init__(self) -> None:
        self._orders: dict[UUID, Order] = {}
        self._locks = KeyedLock()

    async def create(self, order: Order) -> Result[Order, StoreError]:
        async with self._locks.hold(order.id):
            if order.id in self._orders:
                return Error(StoreError(f"Order already exists: {order.id}"))
            self._orders[order.id] = order
            return Ok(order)

    async def get(self, order_id: UUID) -> Result[Order | None, StoreError]:
        return Ok(self._orders.get(order_id))

    async def find_by_number(self, order_number: str) -> Result[Order | None, StoreError]:
        return Ok(next((o for o in self._orders.values() if o.order_number == order_number), None))

    async def list_all(self) -> Result[list[Order], StoreError]:
        return Ok(_newest_first(list(self._orders.values())))

    async def list_by_status(self, status: OrderStatus) -> Result[list[Order], StoreError]:
        return Ok(_newest_first([o for o in self._orders.values() if o.status is status]))

    async def list_by_date_range(
        self, start: datetime, end: datetime
    ) -> Result[list[Order], StoreError]:
        return Ok(_newest_first([o for o in self._orders.values() if start <= o.created_at <= end]))

    async def search(self, text: str) -> Result[list[Order], StoreError]:
        needle = text.strip().lower()
        return Ok(_newest_first([
            o for o in self._orders.values()
            if needle in o.order_number.lower()
            or any(needle in item.name.lower() for item in o.items)
        ]))

    async def update(self, order: Order) -> Result[Order, StoreError]:
        async with self._locks.hold(order.id):
            if order.id not in self._orders:
                return Error(StoreError(f"Order not found: {order.id}"))
            self._orders[order.id] = order
            return Ok(order)

    async def delete(self, order_id: UUID) -> Result[bool, StoreError]:
        async with self._locks.hold(order_id):
            existed = self._orders.pop(order_id, None) is not None
        self._locks.forget(order_id)
        return Ok(existed)

    async def count(self) -> Result[int, StoreError]:
        return Ok(len(self._orders))


# ═══════════════════════════════════════════════════════════════════════════════
# Payments
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryPaymentRepository:
    def __init__(self) -> None:
        self._payments: dict[UUID, Payment] = {}
        self._locks = KeyedLock()

    async def create(self, payment: Payment) -> Result[Payment, StoreError]:
        async with self._locks.hold(payment.id):
            if payment.id in self._payments:
                return Error(StaleWrite(f"Payment already exists: {payment.id}"))
            self._payments[payment.id] = payment
            return Ok(payment)

    async def get(self, payment_id: UUID) -> Result[Payment | None, StoreError]:
        return Ok(self._payments.get(payment_id))

    async def list_by_order(self, order_id: UUID) -> Result[list[Payment], StoreError]:
        return Ok(_newest_first([p for p in self._payments.values() if p.order_id == order_id]))

    async def list_all(self) -> Result[list[Payment], StoreError]:
        return Ok(_newest_first(list(self._payments.values())))

    async def list_by_status(self, status: PaymentStatus) -> Result[list[Payment], StoreError]:
        return Ok(_newest_first([p for p in self._payments.values() if p.status is status]))

    async def list_by_date_range(
        self, start: datetime, end: datetime
    ) -> Result[list[Payment], StoreError]:
        return Ok(_newest_first([p for p in self._payments.values() if start <= p.created_at <= end]))

    async def search(self, text: str) -> Result[list[Payment], StoreError]:
        needle = text.strip().lower()
        return Ok(_newest_first([p for p in self._payments.values() if needle in _search_text(p)]))

    async def update(
        self, payment: Payment, *, expected: PaymentStatus | None = None
    ) -> Result[Payment, StoreError]:
        async with self._locks.hold(payment.id):
            current = self._payments.get(payment.id)
            if current is None:
                return Error(StoreError(f"Payment not found: {payment.id}"))
            if expected is not None and current.status is not expected:
                return Error(StaleWrite(
                    f"Payment {payment.id} is {current.status.value}, expected {expected.value}"
                ))
            self._payments[payment.id] = payment
            return Ok(payment)

    async def delete(self, payment_id: UUID) -> Result[bool, StoreError]:
        async with self._locks.hold(payment_id):
            existed = self._payments.pop(payment_id, None) is not None
        self._locks.forget(payment_id)
        return Ok(existed)

    async def count(self) -> Result[int, StoreError]:
        return Ok(len(self._payments))


def _search_text(payment: Payment) -> str:
    fields = (
        payment.transaction_id,
        payment.last_four_digits,
        payment.processor.value if payment.processor else None,
    )
    return " ".join(f.lower() for f in fields if f)


__all__ = ("MemoryOrderRepository", "MemoryPaymentRepository")
