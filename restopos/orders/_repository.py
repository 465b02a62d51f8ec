"""
Order repository — storage protocol consumed by OrderService and PaymentService.

All methods return Result for explicit error handling.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from kungfu import Result

from restopos._types import OrderId, StoreError
from restopos.orders._order import Order
from restopos.orders._status import OrderStatus


class OrderRepository(Protocol):
    """
    Persistence collaborator for orders.

    Contract:
    - every attribute of Order and OrderItem survives a round trip
    - item order is preserved
    - list-style queries return newest first (created_at descending)
    - writes to the same order id are serialized
    """

    async def create(self, order: Order) -> Result[Order, StoreError]:
        ...

    async def get(self, order_id: OrderId) -> Result[Order | None, StoreError]:
        """Returns Ok(None) if not found."""
        ...

    async def find_by_number(self, order_number: str) -> Result[Order | None, StoreError]:
        ...

    async def list_all(self) -> Result[list[Order], StoreError]:
        ...

    async def list_by_status(self, status: OrderStatus) -> Result[list[Order], StoreError]:
        ...

    async def list_by_date_range(
        self, start: datetime, end: datetime
    ) -> Result[list[Order], StoreError]:
        """Orders created within [start, end]."""
        ...

    async def search(self, text: str) -> Result[list[Order], StoreError]:
        """Case-insensitive match on order number or item name. Blank text matches all."""
        ...

    async def update(self, order: Order) -> Result[Order, StoreError]:
        """Replace the stored order. Error if it does not exist."""
        ...

    async def delete(self, order_id: OrderId) -> Result[bool, StoreError]:
        """Returns Ok(True) if the order existed."""
        ...

    async def count(self) -> Result[int, StoreError]:
        ...


__all__ = ("OrderRepository",)
