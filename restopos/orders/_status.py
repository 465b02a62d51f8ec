"""
Order status — the kitchen lifecycle of an order.
"""

from __future__ import annotations

from enum import Enum


class OrderStatus(Enum):
    """
    Order lifecycle.

        PENDING → IN_PROGRESS → READY → COMPLETED
           └──────────┴───────────┴──→ CANCELLED

    COMPLETED and CANCELLED are terminal.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def allowed_transitions(self) -> frozenset[OrderStatus]:
        return _TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]

    def can_transition(self, to: OrderStatus) -> bool:
        return to in _TRANSITIONS[self]


_DISPLAY_NAMES: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.IN_PROGRESS: "In Progress",
    OrderStatus.READY: "Ready",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
}

_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


__all__ = ("OrderStatus",)
