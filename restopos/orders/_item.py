"""
Order line items.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from uuid import UUID, uuid4

MODIFIER_SURCHARGE = Decimal("0.50")
"""Flat price added per selected modifier."""


@dataclass(frozen=True, slots=True)
class OrderItem:
    """
    One line of an order.

    Two notions of sameness are kept apart:
    - same_line(): same name and modifiers — merged on add
    - same_record(): same id — the persisted row
    Plain == compares every field.
    """

    name: str
    quantity: int
    unit_price: Decimal
    modifiers: tuple[str, ...] = ()
    special_instructions: str | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(f"quantity must be positive, got {self.quantity}")
        if not isinstance(self.unit_price, Decimal):
            raise TypeError("unit_price must be a Decimal")
        if self.unit_price < 0:
            raise ValueError(f"unit_price must not be negative, got {self.unit_price}")
        if not isinstance(self.modifiers, tuple):
            object.__setattr__(self, "modifiers", tuple(self.modifiers))

    @property
    def modifier_price(self) -> Decimal:
        return MODIFIER_SURCHARGE * len(self.modifiers)

    @property
    def total_price(self) -> Decimal:
        return (self.unit_price + self.modifier_price) * self.quantity

    @property
    def display_name(self) -> str:
        if not self.modifiers:
            return self.name
        return f"{self.name} ({', '.join(self.modifiers)})"

    def same_line(self, other: OrderItem) -> bool:
        return self.name == other.name and self.modifiers == other.modifiers

    def same_record(self, other: OrderItem) -> bool:
        return self.id == other.id

    def with_quantity(self, quantity: int) -> OrderItem:
        return replace(self, quantity=quantity)

    def with_modifiers(self, modifiers: tuple[str, ...]) -> OrderItem:
        return replace(self, modifiers=tuple(modifiers))

    def with_special_instructions(self, instructions: str | None) -> OrderItem:
        return replace(self, special_instructions=instructions)


__all__ = ("OrderItem", "MODIFIER_SURCHARGE")
