"""
SQLAlchemy payment repository.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kungfu import Result, Ok, Error

from restopos._types import StaleWrite, StoreError
from restopos.payments import Payment, PaymentProcessor, PaymentStatus, PaymentType
from restopos.storage._locks import KeyedLock
from restopos.storage._tables import PaymentTable


class SQLAlchemyPaymentRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._locks = KeyedLock()

    async def create(self, payment: Payment) -> Result[Payment, StoreError]:
        try:
            async with self._locks.hold(payment.id), self._session_factory() as session:
                if await session.get(PaymentTable, str(payment.id)) is not None:
                    return Error(StaleWrite(f"Payment already exists: {payment.id}"))

                row = PaymentTable(id=str(payment.id))
                _fill(row, payment)
                session.add(row)
                await session.commit()
                return Ok(payment)

        except Exception as e:
            return Error(StoreError(f"Failed to create payment: {e}", e))

    async def update(
        self, payment: Payment, *, expected: PaymentStatus | None = None
    ) -> Result[Payment, StoreError]:
        try:
            async with self._locks.hold(payment.id), self._session_factory() as session:
                row = await session.get(PaymentTable, str(payment.id))
                if row is None:
                    return Error(StoreError(f"Payment not found: {payment.id}"))
                if expected is not None and row.status != expected.value:
                    return Error(StaleWrite(f"Payment {payment.id} is {row.status}, expected {expected.value}"))

                _fill(row, payment)
                await session.commit()
                return Ok(payment)

        except Exception as e:
            return Error(StoreError(f"Failed to update payment: {e}", e))

    async def delete(self, payment_id: UUID) -> Result[bool, StoreError]:
        try:
            async with self._locks.hold(payment_id), self._session_factory() as session:
                row = await session.get(PaymentTable, str(payment_id))
                if row is None:
                    return Ok(False)

                await session.delete(row)
                await session.commit()
            self._locks.forget(payment_id)
            return Ok(True)

        except Exception as e:
            return Error(StoreError(f"Failed to delete payment: {e}", e))

    async def get(self, payment_id: UUID) -> Result[Payment | None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(PaymentTable, str(payment_id))
                return Ok(None if row is None else _to_payment(row))

        except Exception as e:
            return Error(StoreError(f"Failed to get payment: {e}", e))

    async def list_by_order(self, order_id: UUID) -> Result[list[Payment], StoreError]:
        return await self._list(select(PaymentTable).where(PaymentTable.order_id == str(order_id)))

    async def list_all(self) -> Result[list[Payment], StoreError]:
        return await self._list(select(PaymentTable))

    async def list_by_status(self, status: PaymentStatus) -> Result[list[Payment], StoreError]:
        return await self._list(select(PaymentTable).where(PaymentTable.status == status.value))

    async def list_by_date_range(
        self, start: datetime, end: datetime
    ) -> Result[list[Payment], StoreError]:
        return await self._list(
            select(PaymentTable).where(PaymentTable.created_at.between(start, end))
        )

    async def search(self, text: str) -> Result[list[Payment], StoreError]:
        needle = text.strip()
        if not needle:
            return await self.list_all()

        return await self._list(
            select(PaymentTable).where(or_(
                PaymentTable.transaction_id.icontains(needle, autoescape=True),
                PaymentTable.last_four_digits.icontains(needle, autoescape=True),
                PaymentTable.processor.icontains(needle, autoescape=True),
            ))
        )

    async def count(self) -> Result[int, StoreError]:
        try:
            async with self._session_factory() as session:
                total = await session.scalar(select(func.count()).select_from(PaymentTable))
                return Ok(total or 0)

        except Exception as e:
            return Error(StoreError(f"Failed to count payments: {e}", e))

    async def _list(self, stmt: Select[tuple[PaymentTable]]) -> Result[list[Payment], StoreError]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt.order_by(PaymentTable.created_at.desc()))
                return Ok([_to_payment(row) for row in result.scalars()])

        except Exception as e:
            return Error(StoreError(f"Failed to list payments: {e}", e))


# ═══════════════════════════════════════════════════════════════════════════════
# Mapping
# ═══════════════════════════════════════════════════════════════════════════════


def _fill(row: PaymentTable, payment: Payment) -> None:
    row.order_id = str(payment.order_id)
    row.amount = payment.amount
    row.payment_type = payment.payment_type.value
    row.status = payment.status.value
    row.transaction_id = payment.transaction_id
    row.last_four_digits = payment.last_four_digits
    row.processor = payment.processor.value if payment.processor else None
    row.created_at = payment.created_at
    row.processed_at = payment.processed_at
    row.failed_at = payment.failed_at
    row.failure_reason = payment.failure_reason
    row.extra = dict(payment.metadata)


def _to_payment(row: PaymentTable) -> Payment:
    return Payment(
        order_id=UUID(row.order_id),
        amount=Decimal(row.amount),
        payment_type=PaymentType(row.payment_type),
        status=PaymentStatus(row.status),
        transaction_id=row.transaction_id,
        last_four_digits=row.last_four_digits,
        processor=PaymentProcessor(row.processor) if row.processor else None,
        created_at=row.created_at,
        processed_at=row.processed_at,
        failed_at=row.failed_at,
        failure_reason=row.failure_reason,
        metadata=row.extra,
        id=UUID(row.id),
    )


__all__ = ("SQLAlchemyPaymentRepository",)
