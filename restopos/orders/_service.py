"""
Order service — load, apply a pure transformation, persist.

No partial writes: each mutation persists the whole updated aggregate
with a single repository call, or nothing at all.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from kungfu import Result, Ok, Error

from restopos._types import StoreError
from restopos.config import Settings, get_settings
from restopos.orders._errors import (
    EmptyOrder,
    OrderCreationFailed,
    OrderError,
    OrderNotFound,
    OrderPersistenceFailed,
)
from restopos.orders._item import OrderItem
from restopos.orders._order import Order
from restopos.orders._repository import OrderRepository
from restopos.orders._status import OrderStatus

logger = logging.getLogger(__name__)

type Transform = Callable[[Order], Result[Order, OrderError]]


class OrderService:
    def __init__(
        self,
        repository: OrderRepository,
        settings: Settings | None = None,
    ) -> None:
        self._repository = repository
        self._settings = settings or get_settings()

    # ═══════════════════════════════════════════════════════════════════════════
    # Creation
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_order(self) -> Result[Order, OrderError]:
        """Create and persist an empty PENDING order."""
        order = Order.create(tax_rate=self._settings.tax_rate)

        match await self._repository.find_by_number(order.order_number):
            case Error(e):
                return Error(self._storage_failed("create_order", e))
            case Ok(None):
                pass
            case Ok(_):
                logger.warning("order number collision: %s", order.order_number)
                return Error(OrderCreationFailed(f"order number {order.order_number} already exists"))

        match await self._repository.create(order):
            case Ok(created):
                logger.info("order created", extra={"order_id": str(created.id), "order_number": created.order_number})
                return Ok(created)
            case Error(e):
                logger.error("order %s not created: %s", order.order_number, e.message)
                return Error(OrderCreationFailed(f"order {order.order_number} was not stored"))

    # ═══════════════════════════════════════════════════════════════════════════
    # Queries
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_order(self, order_id: UUID) -> Result[Order, OrderError]:
        match await self._repository.get(order_id):
            case Ok(None):
                return Error(OrderNotFound(order_id))
            case Ok(order):
                return Ok(order)
            case Error(e):
                return Error(self._storage_failed("get_order", e))

    async def list_orders(self) -> Result[list[Order], OrderError]:
        return self._lift("list_orders", await self._repository.list_all())

    async def list_orders_by_status(self, status: OrderStatus) -> Result[list[Order], OrderError]:
        return self._lift("list_orders_by_status", await self._repository.list_by_status(status))

    async def list_orders_between(
        self, start: datetime, end: datetime
    ) -> Result[list[Order], OrderError]:
        return self._lift("list_orders_between", await self._repository.list_by_date_range(start, end))

    async def search_orders(self, text: str) -> Result[list[Order], OrderError]:
        return self._lift("search_orders", await self._repository.search(text.strip()))

    async def count_orders(self) -> Result[int, OrderError]:
        return self._lift("count_orders", await self._repository.count())

    # ═══════════════════════════════════════════════════════════════════════════
    # Mutations
    # ═══════════════════════════════════════════════════════════════════════════

    async def update_status(self, order_id: UUID, status: OrderStatus) -> Result[Order, OrderError]:
        return await self._apply(order_id, "update_status", lambda o: o.update_status(status))

    async def submit_order(self, order_id: UUID) -> Result[Order, OrderError]:
        """Send an order to the kitchen. Empty orders are refused."""
        def submit(order: Order) -> Result[Order, OrderError]:
            if order.is_empty:
                return Error(EmptyOrder())
            return order.update_status(OrderStatus.IN_PROGRESS)

        return await self._apply(order_id, "submit_order", submit)

    async def add_item(self, order_id: UUID, item: OrderItem) -> Result[Order, OrderError]:
        return await self._apply(order_id, "add_item", lambda o: o.add_item(item))

    async def remove_item(self, order_id: UUID, index: int) -> Result[Order, OrderError]:
        return await self._apply(order_id, "remove_item", lambda o: o.remove_item(index))

    async def update_item_quantity(
        self, order_id: UUID, index: int, quantity: int
    ) -> Result[Order, OrderError]:
        return await self._apply(
            order_id, "update_item_quantity", lambda o: o.update_item_quantity(index, quantity)
        )

    async def delete_order(self, order_id: UUID) -> Result[None, OrderError]:
        match await self._repository.delete(order_id):
            case Ok(True):
                logger.info("order deleted", extra={"order_id": str(order_id)})
                return Ok(None)
            case Ok(False):
                return Error(OrderNotFound(order_id))
            case Error(e):
                return Error(self._storage_failed("delete_order", e))

    # ═══════════════════════════════════════════════════════════════════════════
    # Helpers
    # ═══════════════════════════════════════════════════════════════════════════

    async def _apply(
        self,
        order_id: UUID,
        operation: str,
        transform: Transform,
    ) -> Result[Order, OrderError]:
        """Load → transform → persist. Transform errors propagate unchanged."""
        match await self.get_order(order_id):
            case Error(e):
                return Error(e)
            case Ok(order):
                pass

        match transform(order):
            case Error(e):
                return Error(e)
            case Ok(updated):
                pass

        match await self._repository.update(updated):
            case Ok(saved):
                if saved.status is not order.status:
                    logger.info(
                        "order %s: %s → %s",
                        saved.order_number,
                        order.status.value,
                        saved.status.value,
                        extra={"order_id": str(saved.id)},
                    )
                return Ok(saved)
            case Error(e):
                return Error(self._storage_failed(operation, e))

    def _lift[T](self, operation: str, result: Result[T, StoreError]) -> Result[T, OrderError]:
        match result:
            case Ok(value):
                return Ok(value)
            case Error(e):
                return Error(self._storage_failed(operation, e))

    @staticmethod
    def _storage_failed(operation: str, error: StoreError) -> OrderPersistenceFailed:
        logger.error("order storage failed during %s: %s", operation, error.message)
        return OrderPersistenceFailed(operation)


__all__ = ("OrderService",)
