"""
Order aggregate — line items, totals and the status machine.

Every operation is pure: it returns a new Order (or an error) and leaves
the receiver untouched. Totals are derived inside _with_items(), the only
path that changes items, so they can never go stale.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Never
from uuid import UUID, uuid4

from kungfu import Result, Ok, Error

from restopos._types import ZERO
from restopos.orders._errors import (
    InvalidStatusTransition,
    InvalidItemIndex,
    InvalidQuantity,
)
from restopos.orders._item import OrderItem
from restopos.orders._status import OrderStatus

DEFAULT_TAX_RATE = Decimal("0.0825")


# ═══════════════════════════════════════════════════════════════════════════════
# Order Number
# ═══════════════════════════════════════════════════════════════════════════════


def generate_order_number(
    today: date | None = None,
    rng: random.Random | None = None,
) -> str:
    """
    Human-readable order number: ORD-YYYYMMDD-NNNN.

    Not unique by construction; OrderService checks for collisions.
    """
    day = today or date.today()
    suffix = (rng or random).randint(1000, 9999)
    return f"ORD-{day:%Y%m%d}-{suffix}"


# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Order:
    id: UUID
    order_number: str
    status: OrderStatus
    items: tuple[OrderItem, ...]
    tax_rate: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def create(
        cls,
        *,
        items: tuple[OrderItem, ...] | list[OrderItem] = (),
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        status: OrderStatus = OrderStatus.PENDING,
        order_number: str | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        completed_at: datetime | None = None,
    ) -> Order:
        """Build an order with totals computed from its items."""
        now = datetime.now()
        items = tuple(items)
        subtotal, tax_amount, total = _totals(items, tax_rate)
        return cls(
            id=id or uuid4(),
            order_number=order_number or generate_order_number(),
            status=status,
            items=items,
            tax_rate=tax_rate,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total,
            created_at=created_at or now,
            updated_at=updated_at or created_at or now,
            completed_at=completed_at,
        )

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    # ───────────────────────────────────────────────────────────────────────────
    # Status
    # ───────────────────────────────────────────────────────────────────────────

    def update_status(self, new_status: OrderStatus) -> Result[Order, InvalidStatusTransition]:
        if not self.status.can_transition(new_status):
            return Error(InvalidStatusTransition(self.status, new_status))

        now = datetime.now()
        return Ok(replace(
            self,
            status=new_status,
            updated_at=now,
            completed_at=now if new_status is OrderStatus.COMPLETED else self.completed_at,
        ))

    def reopen(self) -> Result[Order, InvalidStatusTransition]:
        """
        Put the order back to PENDING after its payment was voided.

        The transition table never leads back to PENDING; voiding a
        payment is the only way there.
        """
        if self.status is OrderStatus.PENDING:
            return Ok(self)
        if self.status is OrderStatus.CANCELLED:
            return Error(InvalidStatusTransition(self.status, OrderStatus.PENDING))

        return Ok(replace(
            self,
            status=OrderStatus.PENDING,
            updated_at=datetime.now(),
            completed_at=None,
        ))

    def cancel_refunded(self) -> Result[Order, Never]:
        """
        Cancel the order after its payment was fully refunded.

        Unlike update_status(), this also leaves COMPLETED. An order that is
        already CANCELLED is returned unchanged. completed_at is kept as a
        record of the original sale.
        """
        if self.status is OrderStatus.CANCELLED:
            return Ok(self)

        return Ok(replace(self, status=OrderStatus.CANCELLED, updated_at=datetime.now()))

    # ───────────────────────────────────────────────────────────────────────────
    # Items
    # ───────────────────────────────────────────────────────────────────────────

    def add_item(self, item: OrderItem) -> Result[Order, Never]:
        """Append a line, or fold it into an existing line with the same name and modifiers."""
        for index, existing in enumerate(self.items):
            if existing.same_line(item):
                merged = existing.with_quantity(existing.quantity + item.quantity)
                return Ok(self._with_items(_swap(self.items, index, merged)))

        return Ok(self._with_items((*self.items, item)))

    def remove_item(self, index: int) -> Result[Order, InvalidItemIndex]:
        if not 0 <= index < len(self.items):
            return Error(InvalidItemIndex(index))

        return Ok(self._with_items(self.items[:index] + self.items[index + 1:]))

    def update_item_quantity(
        self,
        index: int,
        quantity: int,
    ) -> Result[Order, InvalidItemIndex | InvalidQuantity]:
        if not 0 <= index < len(self.items):
            return Error(InvalidItemIndex(index))
        if quantity <= 0:
            return Error(InvalidQuantity(quantity))

        updated = self.items[index].with_quantity(quantity)
        return Ok(self._with_items(_swap(self.items, index, updated)))

    def _with_items(self, items: tuple[OrderItem, ...]) -> Order:
        subtotal, tax_amount, total = _totals(items, self.tax_rate)
        return replace(
            self,
            items=items,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total_amount=total,
            updated_at=datetime.now(),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _totals(
    items: tuple[OrderItem, ...],
    tax_rate: Decimal,
) -> tuple[Decimal, Decimal, Decimal]:
    """(subtotal, tax, total) with no rounding."""
    subtotal = sum((item.total_price for item in items), ZERO)
    return subtotal, subtotal * tax_rate, subtotal * (1 + tax_rate)


def _swap(
    items: tuple[OrderItem, ...],
    index: int,
    item: OrderItem,
) -> tuple[OrderItem, ...]:
    return items[:index] + (item,) + items[index + 1:]


__all__ = ("Order", "DEFAULT_TAX_RATE", "generate_order_number")
