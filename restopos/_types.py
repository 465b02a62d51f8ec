"""
Core types for restopos.

Re-exports from kungfu + money and identity aliases shared by every module.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════

type OrderId = UUID
type PaymentId = UUID

# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════

ZERO = Decimal("0")


def money(value: str | int | Decimal) -> Decimal:
    """
    Coerce a value into an exact decimal amount.

    Floats are rejected with TypeError.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"amounts must be exact, got {type(value).__name__}")
    return value if isinstance(value, Decimal) else Decimal(value)


# ═══════════════════════════════════════════════════════════════════════════════
# Store Error
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StoreError:
    """Storage operation error."""

    message: str
    cause: Exception | None = None


@dataclass(frozen=True)
class StaleWrite(StoreError):
    """Conditional write refused: the stored record is not in the expected state."""


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Identity
    "OrderId",
    "PaymentId",
    # Money
    "ZERO",
    "money",
    # Storage
    "StoreError",
    "StaleWrite",
)
