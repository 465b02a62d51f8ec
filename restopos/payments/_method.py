"""
Stored payment methods — read-only projection for reuse at checkout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID, uuid4

from restopos.payments._status import PaymentProcessor, PaymentType


@dataclass(frozen=True, slots=True)
class PaymentMethod:
    type: PaymentType
    processor: PaymentProcessor | None = None
    last_four_digits: str | None = None
    brand: str | None = None
    expiration_month: int | None = None
    expiration_year: int | None = None
    cardholder_name: str | None = None
    is_default: bool = False
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    id: UUID = field(default_factory=uuid4)

    def is_expired(self, today: date | None = None) -> bool:
        """
        A card is valid through the last day of its expiration month.

        Two-digit years are read as 20YY.
        """
        if self.expiration_month is None or self.expiration_year is None:
            return False

        today = today or date.today()
        year = self.expiration_year + 2000 if self.expiration_year < 100 else self.expiration_year
        return (year, self.expiration_month) < (today.year, today.month)

    @property
    def masked_number(self) -> str | None:
        if self.last_four_digits is None:
            return None
        return f"**** **** **** {self.last_four_digits}"

    @property
    def display_text(self) -> str:
        if not self.type.requires_card_details or self.last_four_digits is None:
            return self.type.display_name
        if self.brand:
            return f"{self.brand} ending in {self.last_four_digits}"
        return f"Card ending in {self.last_four_digits}"


__all__ = ("PaymentMethod",)
