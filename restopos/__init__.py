"""
restopos — order and payment lifecycle core for restaurant point of sale.

    from restopos import orders as O     # Orders, items, kitchen status
    from restopos import payments as P   # Payments, gateway seam, checkout
    from restopos import storage as St   # Memory and SQLAlchemy repositories
"""

from restopos import orders
from restopos import payments
from restopos import storage
from restopos.config import Settings, get_settings
from restopos.log import setup_logging
from restopos._types import (
    OrderId,
    PaymentId,
    StaleWrite,
    StoreError,
    money,
)

__version__ = "0.1.0"

__all__ = (
    "orders",
    "payments",
    "storage",
    "Settings",
    "get_settings",
    "setup_logging",
    "OrderId",
    "PaymentId",
    "StoreError",
    "StaleWrite",
    "money",
)
