"""Tests for PaymentService: checkout settlement, refunds, voids and reporting."""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from kungfu import Ok

from restopos import orders as O
from restopos import payments as P

from tests.support import ScriptedAuthorizationClient, ok, err


async def stored_order(order_repo, order_id):
    return ok(await order_repo.get(order_id))


async def stored_payment(payment_repo, payment_id):
    return ok(await payment_repo.get(payment_id))


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout
# ═══════════════════════════════════════════════════════════════════════════════


class TestProcessPayment:
    async def test_approved_payment_completes_order(
        self, payment_service, ready_order, card_payment, order_repo, payment_repo
    ):
        order = await ready_order()
        assert order.total_amount == Decimal("21.65")

        payment = ok(await payment_service.process_payment(card_payment(order)))

        assert payment.status is P.PaymentStatus.COMPLETED
        assert payment.transaction_id is not None
        assert payment.processed_at is not None
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.COMPLETED
        assert await stored_payment(payment_repo, payment.id) == payment

    async def test_declined_payment_is_failed_not_processing(
        self, order_repo, payment_repo, settings, ready_order, card_payment
    ):
        client = ScriptedAuthorizationClient(P.Declined(P.DeclineReason.INSUFFICIENT_FUNDS))
        service = P.PaymentService(payment_repo, order_repo, client, settings)
        order = await ready_order()

        payment = ok(await service.process_payment(card_payment(order)))

        assert payment.status is P.PaymentStatus.FAILED
        assert payment.failure_reason == "Insufficient funds"
        assert payment.failed_at is not None
        assert (await stored_payment(payment_repo, payment.id)).status is P.PaymentStatus.FAILED
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.READY

    async def test_gateway_exception_becomes_processor_error(
        self, order_repo, payment_repo, settings, ready_order, card_payment
    ):
        client = ScriptedAuthorizationClient(ConnectionError("gateway unreachable"))
        service = P.PaymentService(payment_repo, order_repo, client, settings)
        order = await ready_order()
        payment = card_payment(order)

        error = err(await service.process_payment(payment))

        assert error == P.ProcessorError("gateway unreachable")
        stored = await stored_payment(payment_repo, payment.id)
        assert stored.status is P.PaymentStatus.FAILED
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.READY

    async def test_validation_runs_first(self, payment_service, ready_order, card_payment, client):
        order = await ready_order()
        error = err(await payment_service.process_payment(card_payment(order, last_four="42")))

        assert error == P.InvalidCardDetails()
        assert client.requests == []

    async def test_missing_order(self, payment_service, card_payment):
        orphan = O.Order.create(items=[O.OrderItem("Soup", 1, Decimal("5.00"))])
        assert err(await payment_service.process_payment(card_payment(orphan))) == P.InvalidOrder()

    @pytest.mark.parametrize(
        "status",
        [O.OrderStatus.PENDING, O.OrderStatus.IN_PROGRESS, O.OrderStatus.COMPLETED, O.OrderStatus.CANCELLED],
    )
    async def test_order_must_be_ready(self, payment_service, order_repo, card_payment, status):
        order = O.Order.create(items=[O.OrderItem("Soup", 1, Decimal("5.00"))], status=status)
        ok(await order_repo.create(order))

        assert err(await payment_service.process_payment(card_payment(order))) == P.InvalidOrder()

    @pytest.mark.parametrize("amount, accepted", [
        (Decimal("21.64"), True),
        (Decimal("21.66"), True),
        (Decimal("21.63"), False),
        (Decimal("22.00"), False),
    ])
    async def test_amount_within_currency_epsilon(
        self, payment_service, ready_order, card_payment, amount, accepted
    ):
        order = await ready_order()
        result = await payment_service.process_payment(card_payment(order, amount=amount))

        if accepted:
            assert ok(result).status is P.PaymentStatus.COMPLETED
        else:
            assert err(result) == P.InvalidAmount()

    async def test_request_carries_payment_details(self, payment_service, ready_order, card_payment, client):
        order = await ready_order()
        payment = card_payment(order)
        ok(await payment_service.process_payment(payment))

        [request] = client.requests
        assert request.payment_id == payment.id
        assert request.amount == Decimal("21.65")
        assert request.last_four_digits == "4242"

    async def test_retry_after_decline(
        self, order_repo, payment_repo, settings, ready_order, card_payment
    ):
        client = ScriptedAuthorizationClient(P.Declined(P.DeclineReason.CARD_DECLINED))
        service = P.PaymentService(payment_repo, order_repo, client, settings)
        order = await ready_order()

        failed = ok(await service.process_payment(card_payment(order)))
        retried = ok(await service.retry_payment(failed))

        assert retried.id == failed.id
        assert retried.status is P.PaymentStatus.COMPLETED
        assert retried.failure_reason is None
        assert ok(await payment_repo.count()) == 1
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.COMPLETED

    async def test_retry_requires_failed_payment(self, payment_service, ready_order, card_payment):
        order = await ready_order()
        payment = card_payment(order)

        assert err(await payment_service.retry_payment(payment)) == P.InvalidStatusTransition(
            P.PaymentStatus.PENDING, P.PaymentStatus.PENDING
        )

    async def test_concurrent_checkout_of_one_payment_charges_once(
        self, payment_service, ready_order, card_payment, order_repo, payment_repo, client
    ):
        client.delay = 0.01
        order = await ready_order()
        payment = card_payment(order)

        results = await asyncio.gather(
            payment_service.process_payment(payment),
            payment_service.process_payment(payment),
        )

        [completed] = [ok(r) for r in results if isinstance(r, Ok)]
        [refused] = [err(r) for r in results if not isinstance(r, Ok)]
        assert isinstance(refused, P.InvalidStatusTransition)
        assert refused.to_status is P.PaymentStatus.PROCESSING
        assert len(client.requests) == 1
        assert client.voided == []

        stored = await stored_payment(payment_repo, payment.id)
        assert stored.status is P.PaymentStatus.COMPLETED
        assert stored.transaction_id == completed.transaction_id
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.COMPLETED
        assert ok(await payment_service.is_payment_complete(order.id))

    async def test_stored_completed_payment_is_not_charged_again(
        self, payment_service, ready_order, card_payment, payment_repo, client
    ):
        order = await ready_order()
        payment = card_payment(order)
        processing = ok(payment.with_status(P.PaymentStatus.PROCESSING))
        ok(await payment_repo.create(ok(processing.with_status(P.PaymentStatus.COMPLETED))))

        error = err(await payment_service.process_payment(payment))

        assert error == P.InvalidStatusTransition(P.PaymentStatus.COMPLETED, P.PaymentStatus.PROCESSING)
        assert client.requests == []


class TestSettlementRollback:
    async def test_order_write_failure_voids_the_charge(
        self, payment_service, ready_order, card_payment, order_repo, payment_repo, client
    ):
        order = await ready_order()
        payment = card_payment(order)
        order_repo.fail_updates = True

        error = err(await payment_service.process_payment(payment))

        assert isinstance(error, P.ProcessorError)
        stored = await stored_payment(payment_repo, payment.id)
        assert stored.status is P.PaymentStatus.VOIDED
        assert client.voided == [stored.transaction_id]
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.READY

    async def test_incomplete_rollback_still_releases_charge(
        self, payment_service, ready_order, card_payment, order_repo, payment_repo, client
    ):
        order = await ready_order()
        payment = card_payment(order)
        ok(await payment_service.create_payment(payment))

        order_repo.fail_updates = True
        original_update = payment_repo.update
        calls = 0

        async def update_once(p, **kwargs):
            nonlocal calls
            calls += 1
            if calls > 2:
                payment_repo.fail_updates = True
            return await original_update(p, **kwargs)

        payment_repo.update = update_once

        error = err(await payment_service.process_payment(payment))

        assert isinstance(error, P.ProcessorError)
        assert len(client.voided) == 1

    async def test_reconcile_completes_paid_ready_order(
        self, payment_service, payment_repo, order_repo, ready_order
    ):
        order = await ready_order()
        paid = P.Payment(
            order_id=order.id,
            amount=order.total_amount,
            payment_type=P.PaymentType.CASH,
            status=P.PaymentStatus.COMPLETED,
        )
        ok(await payment_repo.create(paid))

        reconciled = ok(await payment_service.reconcile_order(order.id))

        assert reconciled.status is O.OrderStatus.COMPLETED
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.COMPLETED

    async def test_reconcile_refuses_unpaid_order(self, payment_service, ready_order):
        order = await ready_order()
        assert err(await payment_service.reconcile_order(order.id)) == P.InvalidOrder()

    async def test_reconcile_completed_order_is_noop(
        self, payment_service, ready_order, card_payment
    ):
        order = await ready_order()
        ok(await payment_service.process_payment(card_payment(order)))

        assert ok(await payment_service.reconcile_order(order.id)).status is O.OrderStatus.COMPLETED


class TestSettlement:
    async def test_rollback_runs_in_reverse_and_counts_failures(self):
        undone: list[str] = []
        settlement = P.Settlement("test")

        async def value(v):
            return Ok(v)

        async def undo(v):
            undone.append(v)

        async def broken(v):
            raise P.CompensationFailed(v)

        await settlement.step(value("a"), compensate=undo)
        await settlement.step(value("b"), compensate=broken)
        await settlement.step(value("c"), compensate=undo)

        report = await settlement.rollback()

        assert undone == ["c", "a"]
        assert report == P.RollbackReport(compensators_run=2, compensators_failed=1)
        assert not report.complete
        assert settlement.steps_executed == 3


# ═══════════════════════════════════════════════════════════════════════════════
# Duplicate guard
# ═══════════════════════════════════════════════════════════════════════════════


class TestDuplicateGuard:
    async def test_second_payment_for_paid_order_refused(
        self, payment_service, ready_order, card_payment, payment_repo
    ):
        order = await ready_order()
        ok(await payment_service.process_payment(card_payment(order)))

        assert err(await payment_service.create_payment(card_payment(order))) == P.DuplicatePayment()
        assert ok(await payment_repo.count()) == 1

    async def test_failed_attempts_do_not_block(
        self, order_repo, payment_repo, settings, ready_order, card_payment
    ):
        client = ScriptedAuthorizationClient(P.Declined(P.DeclineReason.CARD_DECLINED))
        service = P.PaymentService(payment_repo, order_repo, client, settings)
        order = await ready_order()

        ok(await service.process_payment(card_payment(order)))
        second = ok(await service.create_payment(card_payment(order)))

        assert second.status is P.PaymentStatus.PENDING
        assert ok(await payment_repo.count()) == 2


# ═══════════════════════════════════════════════════════════════════════════════
# Refund / Void
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def paid(payment_service, ready_order, card_payment):
    async def make():
        order = await ready_order()
        payment = ok(await payment_service.process_payment(card_payment(order)))
        return order, payment

    return make


class TestRefund:
    async def test_full_refund_cancels_order(self, payment_service, order_repo, ready_order, payment_repo):
        order = await ready_order(O.OrderItem("Pasta", 1, Decimal("10.00")))
        payment = P.Payment(
            order_id=order.id,
            amount=Decimal("10.00"),
            payment_type=P.PaymentType.CASH,
            status=P.PaymentStatus.COMPLETED,
        )
        ok(await payment_repo.create(payment))
        ok(await order_repo.update(ok(order.update_status(O.OrderStatus.COMPLETED))))

        refunded = ok(await payment_service.refund_payment(payment, Decimal("10.00")))

        assert refunded.status is P.PaymentStatus.REFUNDED
        assert refunded.metadata[P.REFUNDED_AMOUNT_KEY] == "10.00"
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.CANCELLED

    async def test_partial_refund_keeps_order(self, payment_service, order_repo, paid, client):
        order, payment = await paid()

        refunded = ok(await payment_service.refund_payment(payment, Decimal("5.00")))

        assert refunded.status is P.PaymentStatus.PARTIALLY_REFUNDED
        assert client.refunded == [(payment.transaction_id, Decimal("5.00"))]
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.COMPLETED

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1"), Decimal("21.66")])
    async def test_refund_amount_bounds(self, payment_service, paid, client, amount):
        _, payment = await paid()

        assert err(await payment_service.refund_payment(payment, amount)) == P.RefundExceededAmount()
        assert client.refunded == []

    async def test_refund_requires_completed_payment(self, payment_service, payment_repo, ready_order, card_payment):
        order = await ready_order()
        payment = ok(await payment_service.create_payment(card_payment(order)))

        assert err(await payment_service.refund_payment(payment, Decimal("1"))) == P.PaymentAlreadyCompleted()

    async def test_refund_unknown_payment(self, payment_service):
        stray = P.Payment(order_id=uuid4(), amount=Decimal("1"), payment_type=P.PaymentType.CASH)
        assert err(await payment_service.refund_payment(stray, Decimal("1"))) == P.PaymentNotFound()

    async def test_gateway_refund_failure_leaves_payment(self, payment_service, payment_repo, paid, client):
        _, payment = await paid()
        client.fail_refunds = True

        error = err(await payment_service.refund_payment(payment, Decimal("5.00")))

        assert error == P.ProcessorError("gateway timeout")
        assert (await stored_payment(payment_repo, payment.id)).status is P.PaymentStatus.COMPLETED

    async def test_order_write_failure_is_reported(self, payment_service, order_repo, payment_repo, paid):
        order, payment = await paid()
        order_repo.fail_updates = True

        error = err(await payment_service.refund_payment(payment, payment.amount))

        assert isinstance(error, P.ProcessorError)
        assert (await stored_payment(payment_repo, payment.id)).status is P.PaymentStatus.REFUNDED
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.COMPLETED

    async def test_full_refund_when_order_is_gone(self, payment_service, payment_repo):
        stray = P.Payment(
            order_id=uuid4(),
            amount=Decimal("8.00"),
            payment_type=P.PaymentType.CASH,
            status=P.PaymentStatus.COMPLETED,
        )
        ok(await payment_repo.create(stray))

        refunded = ok(await payment_service.refund_payment(stray, Decimal("8.00")))

        assert refunded.status is P.PaymentStatus.REFUNDED
        assert (await stored_payment(payment_repo, stray.id)).status is P.PaymentStatus.REFUNDED


class TestVoid:
    async def test_void_completed_payment_reopens_order(self, payment_service, order_repo, paid, client):
        order, payment = await paid()

        voided = ok(await payment_service.void_payment(payment))

        assert voided.status is P.PaymentStatus.VOIDED
        assert client.voided == [payment.transaction_id]
        reopened = await stored_order(order_repo, order.id)
        assert reopened.status is O.OrderStatus.PENDING
        assert reopened.completed_at is None

    async def test_void_pending_payment(self, payment_service, ready_order, card_payment, client):
        order = await ready_order()
        payment = ok(await payment_service.create_payment(card_payment(order)))

        assert ok(await payment_service.void_payment(payment)).status is P.PaymentStatus.VOIDED
        assert client.voided == []

    async def test_void_twice_fails(self, payment_service, paid):
        _, payment = await paid()
        ok(await payment_service.void_payment(payment))

        assert err(await payment_service.void_payment(payment)) == P.InvalidStatusTransition(
            P.PaymentStatus.VOIDED, P.PaymentStatus.VOIDED
        )

    async def test_void_failed_attempt_on_cancelled_order(
        self, order_repo, payment_repo, settings, ready_order, card_payment
    ):
        client = ScriptedAuthorizationClient(P.Declined(P.DeclineReason.CARD_DECLINED))
        service = P.PaymentService(payment_repo, order_repo, client, settings)
        order = await ready_order()
        failed = ok(await service.process_payment(card_payment(order)))
        ok(await order_repo.update(ok(order.update_status(O.OrderStatus.CANCELLED))))

        voided = ok(await service.void_payment(failed))

        assert voided.status is P.PaymentStatus.VOIDED
        assert client.voided == []
        assert (await stored_payment(payment_repo, failed.id)).status is P.PaymentStatus.VOIDED
        assert (await stored_order(order_repo, order.id)).status is O.OrderStatus.CANCELLED

    async def test_void_when_order_is_gone(self, payment_service, payment_repo):
        stray = P.Payment(order_id=uuid4(), amount=Decimal("5.00"), payment_type=P.PaymentType.CASH)
        ok(await payment_repo.create(stray))

        assert ok(await payment_service.void_payment(stray)).status is P.PaymentStatus.VOIDED

    async def test_order_read_failure_is_reported(self, payment_service, order_repo, payment_repo, paid):
        _, payment = await paid()
        order_repo.fail_reads = True

        assert isinstance(err(await payment_service.void_payment(payment)), P.ProcessorError)
        assert (await stored_payment(payment_repo, payment.id)).status is P.PaymentStatus.COMPLETED


# ═══════════════════════════════════════════════════════════════════════════════
# Queries / Reporting
# ═══════════════════════════════════════════════════════════════════════════════


class TestQueries:
    async def test_totals_for_order(self, payment_service, paid):
        order, payment = await paid()

        assert ok(await payment_service.is_payment_complete(order.id))
        assert ok(await payment_service.get_total_paid(order.id)) == payment.amount
        assert not ok(await payment_service.is_payment_complete(uuid4()))
        assert ok(await payment_service.get_total_paid(uuid4())) == 0

    async def test_reporting(self, payment_service, paid):
        window = (datetime.now() - timedelta(minutes=5), datetime.now() + timedelta(minutes=5))
        _, first = await paid()
        _, second = await paid()
        ok(await payment_service.refund_payment(second, Decimal("3.00")))

        assert ok(await payment_service.total_revenue(*window)) == first.amount
        assert ok(await payment_service.refund_total(*window)) == Decimal("3.00")
        assert ok(await payment_service.payment_type_distribution(*window)) == {
            P.PaymentType.CREDIT_CARD: 1
        }

    def test_fees_and_validation(self, payment_service, card_payment):
        order = O.Order.create(items=[O.OrderItem("Soup", 1, Decimal("100.00"))], tax_rate=Decimal("0"))
        payment = card_payment(order)

        assert payment_service.calculate_fees(payment, P.PaymentProcessor.SQUARE) == Decimal("2.70")
        assert ok(payment_service.validate_payment(payment)) is None

    def test_list_payment_methods(self, payment_repo, order_repo, client, settings):
        visa = P.PaymentMethod(P.PaymentType.CREDIT_CARD, P.PaymentProcessor.STRIPE, "4242")
        amex = P.PaymentMethod(P.PaymentType.CREDIT_CARD, P.PaymentProcessor.STRIPE, "0005", is_default=True)
        old = P.PaymentMethod(P.PaymentType.CREDIT_CARD, P.PaymentProcessor.STRIPE, "1111", is_active=False)
        square = P.PaymentMethod(P.PaymentType.CREDIT_CARD, P.PaymentProcessor.SQUARE, "5555")
        service = P.PaymentService(payment_repo, order_repo, client, settings, [visa, amex, old, square])

        assert service.list_payment_methods(P.PaymentProcessor.STRIPE) == [amex, visa]
