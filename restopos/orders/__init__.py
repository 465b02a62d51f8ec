"""
Orders — line items, totals and the kitchen status machine.

    from restopos import orders as O

    order = O.Order.create(tax_rate=Decimal("0.0825"))
    match order.add_item(O.OrderItem("Burger", 2, Decimal("10.00"))):
        case Ok(order):
            ...

    service = O.OrderService(repository)
    result = await service.update_status(order.id, O.OrderStatus.IN_PROGRESS)
"""

from restopos.orders._status import OrderStatus
from restopos.orders._errors import (
    InvalidStatusTransition,
    InvalidItemIndex,
    InvalidQuantity,
    EmptyOrder,
    OrderNotFound,
    OrderCreationFailed,
    OrderPersistenceFailed,
    OrderError,
)
from restopos.orders._item import OrderItem, MODIFIER_SURCHARGE
from restopos.orders._order import Order, DEFAULT_TAX_RATE, generate_order_number
from restopos.orders._repository import OrderRepository
from restopos.orders._service import OrderService

__all__ = (
    # Status
    "OrderStatus",
    # Errors
    "InvalidStatusTransition",
    "InvalidItemIndex",
    "InvalidQuantity",
    "EmptyOrder",
    "OrderNotFound",
    "OrderCreationFailed",
    "OrderPersistenceFailed",
    "OrderError",
    # Aggregate
    "OrderItem",
    "MODIFIER_SURCHARGE",
    "Order",
    "DEFAULT_TAX_RATE",
    "generate_order_number",
    # Service
    "OrderRepository",
    "OrderService",
)
