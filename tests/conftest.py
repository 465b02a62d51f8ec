"""Pytest fixtures for restopos tests."""

from __future__ import annotations

from decimal import Decimal

import pytest

from restopos import orders as O
from restopos import payments as P
from restopos.config import Settings

from tests.support import (
    FlakyOrderRepository,
    FlakyPaymentRepository,
    ScriptedAuthorizationClient,
    ok,
)


@pytest.fixture
def settings():
    return Settings(_env_file=None, tax_rate=Decimal("0.0825"), currency_epsilon=Decimal("0.01"))


@pytest.fixture
def order_repo():
    return FlakyOrderRepository()


@pytest.fixture
def payment_repo():
    return FlakyPaymentRepository()


@pytest.fixture
def client():
    return ScriptedAuthorizationClient()


@pytest.fixture
def order_service(order_repo, settings):
    return O.OrderService(order_repo, settings)


@pytest.fixture
def payment_service(payment_repo, order_repo, client, settings):
    return P.PaymentService(payment_repo, order_repo, client, settings)


@pytest.fixture
def ready_order(order_repo):
    """Factory: persist a READY order. Default total is 21.65 (20.00 + 8.25% tax)."""

    async def make(*items: O.OrderItem) -> O.Order:
        order = O.Order.create(
            items=items or (O.OrderItem("Steak", 1, Decimal("20.00")),),
            tax_rate=Decimal("0.0825"),
            status=O.OrderStatus.READY,
        )
        return ok(await order_repo.create(order))

    return make


@pytest.fixture
def card_payment():
    """Factory: a PENDING credit card payment."""

    def make(order: O.Order, amount: Decimal | None = None, last_four: str = "4242") -> P.Payment:
        return P.Payment(
            order_id=order.id,
            amount=order.total_amount if amount is None else amount,
            payment_type=P.PaymentType.CREDIT_CARD,
            last_four_digits=last_four,
            processor=P.PaymentProcessor.STRIPE,
        )

    return make
