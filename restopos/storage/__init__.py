"""
Storage — repository implementations.

    from restopos import storage as St

    # tests and demos
    orders, payments = St.MemoryOrderRepository(), St.MemoryPaymentRepository()

    # SQLAlchemy (aiosqlite by default)
    session_factory, engine = await St.create_database(settings.database_url)
    orders = St.SQLAlchemyOrderRepository(session_factory)
    payments = St.SQLAlchemyPaymentRepository(session_factory)
"""

from restopos.storage._locks import KeyedLock
from restopos.storage._memory import MemoryOrderRepository, MemoryPaymentRepository
from restopos.storage._tables import (
    DecimalText,
    Base,
    OrderTable,
    OrderItemTable,
    PaymentTable,
)
from restopos.storage._orders import SQLAlchemyOrderRepository
from restopos.storage._payments import SQLAlchemyPaymentRepository
from restopos.storage._database import create_database

__all__ = (
    "KeyedLock",
    # Memory
    "MemoryOrderRepository",
    "MemoryPaymentRepository",
    # SQLAlchemy
    "DecimalText",
    "Base",
    "OrderTable",
    "OrderItemTable",
    "PaymentTable",
    "SQLAlchemyOrderRepository",
    "SQLAlchemyPaymentRepository",
    "create_database",
)
