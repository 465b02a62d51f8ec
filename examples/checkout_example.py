"""
Checkout — an order from the kitchen to a settled payment.

    python -m examples.checkout_example
    RESTOPOS_DATABASE_URL=sqlite+aiosqlite:///demo.db python -m examples.checkout_example
"""

from __future__ import annotations

import asyncio
from decimal import Decimal

from kungfu import Ok, Error

from restopos import orders as O
from restopos import payments as P
from restopos import storage as St
from restopos.config import get_settings
from restopos.log import setup_logging


def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


async def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, json_format=settings.log_json)

    session_factory, engine = await St.create_database(settings.database_url)
    order_repo = St.SQLAlchemyOrderRepository(session_factory)
    payment_repo = St.SQLAlchemyPaymentRepository(session_factory)

    orders = O.OrderService(order_repo, settings)
    payments = P.PaymentService(payment_repo, order_repo, P.SimulatedAuthorizationClient(), settings)

    try:
        banner("Order")
        match await orders.create_order():
            case Ok(order):
                pass
            case Error(e):
                print(f"✗ {e.message}")
                return

        for item in (
            O.OrderItem("Burger", 1, Decimal("10.00"), modifiers=("cheese",)),
            O.OrderItem("Burger", 1, Decimal("10.00"), modifiers=("cheese",)),
            O.OrderItem("Fries", 1, Decimal("3.00")),
        ):
            match await orders.add_item(order.id, item):
                case Ok(order):
                    pass

        for line in order.items:
            print(f"  {line.quantity} × {line.display_name:<20} {line.total_price}")
        print(f"  total {order.total_amount}")

        banner("Kitchen")
        await orders.submit_order(order.id)
        match await orders.update_status(order.id, O.OrderStatus.READY):
            case Ok(order):
                print(f"  {order.order_number}: {order.status.display_name}")

        banner("Payment: declined card, then retry")
        declined = P.Payment(
            order_id=order.id,
            amount=order.total_amount,
            payment_type=P.PaymentType.CREDIT_CARD,
            last_four_digits="0002",
            processor=P.PaymentProcessor.STRIPE,
        )
        match await payments.process_payment(declined):
            case Ok(attempt):
                print(f"  {attempt.status_text}")

        card = P.Payment(
            order_id=order.id,
            amount=order.total_amount,
            payment_type=P.PaymentType.CREDIT_CARD,
            last_four_digits="4242",
            processor=P.PaymentProcessor.STRIPE,
        )
        match await payments.process_payment(card):
            case Ok(paid):
                print(f"  {paid.status_text} ({paid.transaction_id})")
                print(f"  fees {payments.calculate_fees(paid, P.PaymentProcessor.STRIPE)}")
            case Error(e):
                print(f"✗ {e.message}")
                return

        banner("Refund")
        match await payments.refund_payment(paid, paid.amount):
            case Ok(refunded):
                print(f"  {refunded.status_text}")
            case Error(e):
                print(f"✗ {e.message}")

        match await orders.get_order(order.id):
            case Ok(order):
                print(f"  {order.order_number}: {order.status.display_name}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
