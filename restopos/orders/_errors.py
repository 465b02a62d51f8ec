"""
Order errors — closed taxonomy, returned as values inside Error(...).
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from restopos.orders._status import OrderStatus

# ═══════════════════════════════════════════════════════════════════════════════
# Aggregate Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class InvalidStatusTransition:
    from_status: OrderStatus
    to_status: OrderStatus

    @property
    def message(self) -> str:
        return (
            f"Cannot transition order from {self.from_status.display_name} "
            f"to {self.to_status.display_name}"
        )


@dataclass(frozen=True, slots=True)
class InvalidItemIndex:
    index: int

    @property
    def message(self) -> str:
        return f"Invalid item index: {self.index}"


@dataclass(frozen=True, slots=True)
class InvalidQuantity:
    quantity: int

    @property
    def message(self) -> str:
        return "Quantity must be greater than 0"


@dataclass(frozen=True, slots=True)
class EmptyOrder:
    @property
    def message(self) -> str:
        return "Order cannot be empty"


# ═══════════════════════════════════════════════════════════════════════════════
# Service Boundary Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderNotFound:
    order_id: UUID

    @property
    def message(self) -> str:
        return f"Order {self.order_id} not found"


@dataclass(frozen=True, slots=True)
class OrderCreationFailed:
    reason: str

    @property
    def message(self) -> str:
        return f"Could not create order: {self.reason}"


@dataclass(frozen=True, slots=True)
class OrderPersistenceFailed:
    """Storage rejected a read or write. Backend details stay in the log."""

    operation: str

    @property
    def message(self) -> str:
        return f"Order storage failed during {self.operation}"


type OrderError = (
    InvalidStatusTransition
    | InvalidItemIndex
    | InvalidQuantity
    | EmptyOrder
    | OrderNotFound
    | OrderCreationFailed
    | OrderPersistenceFailed
)


__all__ = (
    "InvalidStatusTransition",
    "InvalidItemIndex",
    "InvalidQuantity",
    "EmptyOrder",
    "OrderNotFound",
    "OrderCreationFailed",
    "OrderPersistenceFailed",
    "OrderError",
)
