"""Integration tests for polling, listing and cancelling payments."""

import pytest

from storefront.application.cancel_payment import CancelPaymentHandler
from storefront.application.checkout import CheckoutHandler
from storefront.application.create_payment import CreatePaymentHandler
from storefront.application.dto import OrderItemSpec
from storefront.application.handle_payment_webhook import HandlePaymentWebhookHandler
from storefront.application.show_payment import ListPaymentsHandler, ShowPaymentHandler
from storefront.domain.exceptions import (
    AlreadySettled,
    EntityNotFoundError,
    GatewayError,
    PaymentSettledConcurrently,
)
from storefront.domain.model.order import OrderStatus
from storefront.domain.model.payment import PaymentStatus
from tests.fakes import FakeDatabase, FakePaymentGateway, FakeUnitOfWork


def _setup():
    """Alice has a pending order for 3 x Widget with an open invoice."""
    db = FakeDatabase()
    db.add_product("Widget", "50.00", stock=10)
    alice = db.add_user("Alice")
    bob = db.add_user("Bob")
    gateway = FakePaymentGateway()
    order = CheckoutHandler(FakeUnitOfWork(db)).handle(alice, "Somewhere", [OrderItemSpec(1, 3)])
    payment = CreatePaymentHandler(FakeUnitOfWork(db), gateway, app_url="http://localhost").handle(
        alice, order.order_id, "OVO"
    )
    return db, gateway, alice, bob, order, payment


class TestShowPayment:

    def test_poll_picks_up_provider_payment(self):
        db, gateway, alice, _, order, payment = _setup()
        gateway.set_status(payment.invoice_id, "SETTLED")

        dto = ShowPaymentHandler(FakeUnitOfWork(db), gateway).handle(alice, payment.payment_id)

        assert dto.status == "SUCCESS"
        assert dto.order_number == order.order_number
        assert dto.invoice_url == payment.invoice_url
        assert dto.paid_at is not None
        assert db.orders[order.order_id].status == OrderStatus.PAID

    def test_poll_never_downgrades(self):
        db, gateway, alice, _, order, payment = _setup()
        gateway.set_status(payment.invoice_id, "PAID")
        handler = ShowPaymentHandler(FakeUnitOfWork(db), gateway)
        handler.handle(alice, payment.payment_id)

        gateway.set_status(payment.invoice_id, "EXPIRED")
        dto = handler.handle(alice, payment.payment_id)

        assert dto.status == "SUCCESS"
        assert db.orders[order.order_id].status == OrderStatus.PAID

    def test_gateway_failure_changes_nothing(self):
        db, gateway, alice, _, order, payment = _setup()
        gateway.fail_with = GatewayError("Payment provider timed out", retryable=True)
        with pytest.raises(GatewayError):
            ShowPaymentHandler(FakeUnitOfWork(db), gateway).handle(alice, payment.payment_id)
        assert db.payments[payment.payment_id].status == PaymentStatus.PENDING

    def test_foreign_payment_is_not_found(self):
        db, gateway, _, bob, _, payment = _setup()
        with pytest.raises(EntityNotFoundError):
            ShowPaymentHandler(FakeUnitOfWork(db), gateway).handle(bob, payment.payment_id)

    def test_list_payments(self):
        db, _, alice, bob, order, payment = _setup()
        listed = ListPaymentsHandler(FakeUnitOfWork(db)).handle(alice)
        assert [(p.payment_id, p.order_number, p.amount) for p in listed] == [
            (payment.payment_id, order.order_number, "150.00")
        ]
        assert ListPaymentsHandler(FakeUnitOfWork(db)).handle(bob) == []


class TestCancelPayment:

    def test_expires_invoice_and_cancels_order(self):
        db, gateway, alice, _, order, payment = _setup()
        CancelPaymentHandler(FakeUnitOfWork(db), gateway).handle(alice, payment.payment_id)

        assert gateway.expired == [payment.invoice_id]
        assert db.payments[payment.payment_id].status == PaymentStatus.EXPIRED
        assert db.orders[order.order_id].status == OrderStatus.CANCELLED
        assert db.stock_of(1) == 10

    def test_settled_payment_cannot_be_cancelled(self):
        db, gateway, alice, _, order, payment = _setup()
        db.payments[payment.payment_id].status = PaymentStatus.SUCCESS

        with pytest.raises(AlreadySettled, match="Cannot cancel successful payment"):
            CancelPaymentHandler(FakeUnitOfWork(db), gateway).handle(alice, payment.payment_id)
        assert gateway.expired == []

    def test_cancelling_twice_is_harmless(self):
        db, gateway, alice, _, _, payment = _setup()
        handler = CancelPaymentHandler(FakeUnitOfWork(db), gateway)
        handler.handle(alice, payment.payment_id)
        handler.handle(alice, payment.payment_id)
        assert gateway.expired == [payment.invoice_id]
        assert db.stock_of(1) == 10

    def test_foreign_payment_is_not_found(self):
        db, gateway, _, bob, _, payment = _setup()
        with pytest.raises(EntityNotFoundError):
            CancelPaymentHandler(FakeUnitOfWork(db), gateway).handle(bob, payment.payment_id)


class _WebhookDuringCall(FakePaymentGateway):
    """Delivers a PAID webhook while a poll or cancel waits on the provider."""

    def __init__(self, db: FakeDatabase, invoices: dict) -> None:
        super().__init__()
        self.invoices = invoices
        self._webhook = HandlePaymentWebhookHandler(FakeUnitOfWork(db), webhook_token="cb")

    def _deliver_paid(self, invoice_id: str) -> None:
        self._webhook.handle("cb", {"id": invoice_id, "status": "PAID"})

    def get_invoice(self, invoice_id):
        stale = super().get_invoice(invoice_id)
        self._deliver_paid(invoice_id)
        return stale

    def expire_invoice(self, invoice_id):
        self._deliver_paid(invoice_id)
        return super().expire_invoice(invoice_id)


class TestConcurrentSettlement:

    def test_stale_poll_keeps_webhook_settlement(self):
        db, gateway, alice, _, order, payment = _setup()
        racing = _WebhookDuringCall(db, gateway.invoices)

        dto = ShowPaymentHandler(FakeUnitOfWork(db), racing).handle(alice, payment.payment_id)

        stored = db.payments[payment.payment_id]
        assert dto.status == "SUCCESS"
        assert stored.status == PaymentStatus.SUCCESS
        assert stored.paid_at is not None
        assert dto.paid_at == stored.paid_at
        assert db.orders[order.order_id].status == OrderStatus.PAID

    def test_cancel_loses_to_webhook_settlement(self):
        db, gateway, alice, _, order, payment = _setup()
        racing = _WebhookDuringCall(db, gateway.invoices)

        with pytest.raises(AlreadySettled):
            CancelPaymentHandler(FakeUnitOfWork(db), racing).handle(alice, payment.payment_id)

        assert db.payments[payment.payment_id].status == PaymentStatus.SUCCESS
        assert db.orders[order.order_id].status == OrderStatus.PAID
        assert db.stock_of(1) == 7

    def test_stale_copy_cannot_overwrite_settled_payment(self):
        db, _, _, _, _, payment = _setup()
        uow = FakeUnitOfWork(db)
        with uow:
            stale = uow.payments.get_by_transaction_id(payment.invoice_id)
        db.payments[payment.payment_id].status = PaymentStatus.SUCCESS

        with uow:
            stale.expire()
            with pytest.raises(PaymentSettledConcurrently):
                uow.payments.save(stale)
