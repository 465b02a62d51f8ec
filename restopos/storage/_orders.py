"""
SQLAlchemy order repository.

Every method opens its own session and catches into StoreError, so a
broken database shows up as Error(StoreError) and never as an exception.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import Result, Ok, Error

from restopos._types import StoreError
from restopos.orders import Order, OrderItem, OrderStatus
from restopos.storage._locks import KeyedLock
from restopos.storage._tables import OrderItemTable, OrderTable


class SQLAlchemyOrderRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._locks = KeyedLock()

    # ═══════════════════════════════════════════════════════════════════════════
    # Writes
    # ═══════════════════════════════════════════════════════════════════════════

    async def create(self, order: Order) -> Result[Order, StoreError]:
        try:
            async with self._locks.hold(order.id), self._session_factory() as session:
                row = OrderTable(id=str(order.id))
                _fill(row, order)
                session.add(row)
                await session.commit()
                return Ok(order)

        except Exception as e:
            return Error(StoreError(f"Failed to create order: {e}", e))

    async def update(self, order: Order) -> Result[Order, StoreError]:
        try:
            async with self._locks.hold(order.id), self._session_factory() as session:
                row = await session.get(OrderTable, str(order.id))
                if row is None:
                    return Error(StoreError(f"Order not found: {order.id}"))

                _fill(row, order)
                await session.commit()
                return Ok(order)

        except Exception as e:
            return Error(StoreError(f"Failed to update order: {e}", e))

    async def delete(self, order_id: UUID) -> Result[bool, StoreError]:
        try:
            async with self._locks.hold(order_id), self._session_factory() as session:
                row = await session.get(OrderTable, str(order_id))
                if row is None:
                    return Ok(False)

                await session.delete(row)
                await session.commit()
            self._locks.forget(order_id)
            return Ok(True)

        except Exception as e:
            return Error(StoreError(f"Failed to delete order: {e}", e))

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════════

    async def get(self, order_id: UUID) -> Result[Order | None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(OrderTable, str(order_id))
                return Ok(None if row is None else _to_order(row))

        except Exception as e:
            return Error(StoreError(f"Failed to get order: {e}", e))

    async def find_by_number(self, order_number: str) -> Result[Order | None, StoreError]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(OrderTable).where(OrderTable.order_number == order_number)
                )
                row = result.scalar_one_or_none()
                return Ok(None if row is None else _to_order(row))

        except Exception as e:
            return Error(StoreError(f"Failed to find order: {e}", e))

    async def list_all(self) -> Result[list[Order], StoreError]:
        return await self._list(select(OrderTable))

    async def list_by_status(self, status: OrderStatus) -> Result[list[Order], StoreError]:
        return await self._list(select(OrderTable).where(OrderTable.status == status.value))

    async def list_by_date_range(
        self, start: datetime, end: datetime
    ) -> Result[list[Order], StoreError]:
        return await self._list(
            select(OrderTable).where(OrderTable.created_at.between(start, end))
        )

    async def search(self, text: str) -> Result[list[Order], StoreError]:
        needle = text.strip()
        return await self._list(
            select(OrderTable).where(or_(
                OrderTable.order_number.icontains(needle, autoescape=True),
                OrderTable.items.any(OrderItemTable.name.icontains(needle, autoescape=True)),
            ))
        )

    async def count(self) -> Result[int, StoreError]:
        try:
            async with self._session_factory() as session:
                total = await session.scalar(select(func.count()).select_from(OrderTable))
                return Ok(total or 0)

        except Exception as e:
            return Error(StoreError(f"Failed to count orders: {e}", e))

    async def _list(self, stmt: Select[tuple[OrderTable]]) -> Result[list[Order], StoreError]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt.order_by(OrderTable.created_at.desc()))
                return Ok([_to_order(row) for row in result.scalars()])

        except Exception as e:
            return Error(StoreError(f"Failed to list orders: {e}", e))


# ═══════════════════════════════════════════════════════════════════════════════
# Mapping
# ═══════════════════════════════════════════════════════════════════════════════


def _fill(row: OrderTable, order: Order) -> None:
    """Copy an order onto its row. Item rows are updated in place by id."""
    row.order_number = order.order_number
    row.status = order.status.value
    row.tax_rate = order.tax_rate
    row.subtotal = order.subtotal
    row.tax_amount = order.tax_amount
    row.total_amount = order.total_amount
    row.created_at = order.created_at
    row.updated_at = order.updated_at
    row.completed_at = order.completed_at

    existing = {item.id: item for item in row.items}
    item_rows: list[OrderItemTable] = []
    for position, item in enumerate(order.items):
        item_row = existing.get(str(item.id)) or OrderItemTable(id=str(item.id))
        item_row.position = position
        item_row.name = item.name
        item_row.quantity = item.quantity
        item_row.unit_price = item.unit_price
        item_row.modifiers = list(item.modifiers)
        item_row.special_instructions = item.special_instructions
        item_rows.append(item_row)
    row.items = item_rows


def _to_order(row: OrderTable) -> Order:
    items = tuple(
        OrderItem(
            name=item.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            modifiers=tuple(item.modifiers),
            special_instructions=item.special_instructions,
            id=UUID(item.id),
        )
        for item in row.items
    )
    return Order.create(
        items=items,
        tax_rate=row.tax_rate,
        status=OrderStatus(row.status),
        order_number=row.order_number,
        id=UUID(row.id),
        created_at=row.created_at,
        updated_at=row.updated_at,
        completed_at=row.completed_at,
    )


__all__ = ("SQLAlchemyOrderRepository",)
