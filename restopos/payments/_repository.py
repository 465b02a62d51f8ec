"""
Payment repository — storage protocol consumed by PaymentService.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from kungfu import Result

from restopos._types import OrderId, PaymentId, StoreError
from restopos.payments._payment import Payment
from restopos.payments._status import PaymentStatus


class PaymentRepository(Protocol):
    """
    Persistence collaborator for payments.

    Contract:
    - every attribute of Payment survives a round trip, metadata included
    - list-style queries return newest first (created_at descending)
    - writes to the same payment id are serialized
    - create of an existing id and a refused conditional update are StaleWrite
    """

    async def create(self, payment: Payment) -> Result[Payment, StoreError]:
        ...

    async def get(self, payment_id: PaymentId) -> Result[Payment | None, StoreError]:
        """Returns Ok(None) if not found."""
        ...

    async def list_by_order(self, order_id: OrderId) -> Result[list[Payment], StoreError]:
        ...

    async def list_all(self) -> Result[list[Payment], StoreError]:
        ...

    async def list_by_status(self, status: PaymentStatus) -> Result[list[Payment], StoreError]:
        ...

    async def list_by_date_range(
        self, start: datetime, end: datetime
    ) -> Result[list[Payment], StoreError]:
        """Payments created within [start, end]."""
        ...

    async def search(self, text: str) -> Result[list[Payment], StoreError]:
        """Case-insensitive match on transaction id, last four digits or processor."""
        ...

    async def update(
        self, payment: Payment, *, expected: PaymentStatus | None = None
    ) -> Result[Payment, StoreError]:
        """
        Replace the stored payment. Error if it does not exist.

        With `expected`, the write only happens while the stored payment is
        still in that status; otherwise Error(StaleWrite).
        """
        ...

    async def delete(self, payment_id: PaymentId) -> Result[bool, StoreError]:
        """Returns Ok(True) if the payment existed."""
        ...

    async def count(self) -> Result[int, StoreError]:
        ...


__all__ = ("PaymentRepository",)
