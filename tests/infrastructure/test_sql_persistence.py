"""SQLAlchemy repositories, ledger and unit of work on in-memory SQLite."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from storefront.application.dto import OrderItemSpec
from storefront.application.checkout import CheckoutHandler
from storefront.domain.exceptions import (
    Conflict,
    EntityNotFoundError,
    InsufficientStock,
    PaymentSettledConcurrently,
)
from storefront.domain.model.order import OrderStatus
from storefront.domain.model.payment import Payment, PaymentStatus
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.infrastructure.config import Settings
from storefront.infrastructure.bootstrap import Container
from tests.fakes import FakePaymentGateway


def _container() -> Container:
    container = Container(Settings(database_url="sqlite://"), gateway=FakePaymentGateway())
    container.init_schema()
    return container


def _seed(container: Container):
    with container.unit_of_work() as uow:
        widget = Product(id=None, name="Widget", price=Money.of("50.00"), stock=10)
        gadget = Product(id=None, name="Gadget", price=Money.of("30.00"), stock=5)
        uow.products.save(widget)
        uow.products.save(gadget)
        user = uow.users.add(name="Alice", email="alice@example.com", api_token="tok-alice")
        uow.commit()
    return widget, gadget, user


def _stock(container: Container, product_id: int) -> int:
    with container.unit_of_work() as uow:
        return uow.products.get_by_id(product_id).stock


class TestInventoryLedger:

    def test_reserve_and_release(self):
        container = _container()
        widget, _, _ = _seed(container)
        with container.unit_of_work() as uow:
            uow.inventory.reserve(widget.id, 4)
            uow.commit()
        assert _stock(container, widget.id) == 6

        with container.unit_of_work() as uow:
            uow.inventory.release(widget.id, 4)
            uow.commit()
        assert _stock(container, widget.id) == 10

    def test_second_reservation_of_all_stock_fails(self):
        container = _container()
        _, gadget, _ = _seed(container)
        with container.unit_of_work() as uow:
            uow.inventory.reserve(gadget.id, 5)
            uow.commit()

        with container.unit_of_work() as uow:
            with pytest.raises(InsufficientStock) as exc_info:
                uow.inventory.reserve(gadget.id, 5)
        assert exc_info.value.available == 0
        assert exc_info.value.product_name == "Gadget"
        assert _stock(container, gadget.id) == 0

    def test_unknown_product(self):
        container = _container()
        _seed(container)
        with container.unit_of_work() as uow:
            with pytest.raises(EntityNotFoundError):
                uow.inventory.reserve(999, 1)
            with pytest.raises(EntityNotFoundError):
                uow.inventory.release(999, 1)

    def test_uncommitted_reservation_is_rolled_back(self):
        container = _container()
        widget, _, _ = _seed(container)
        with container.unit_of_work() as uow:
            uow.inventory.reserve(widget.id, 3)
        assert _stock(container, widget.id) == 10


class TestStockConstraint:

    def test_database_refuses_negative_stock(self):
        container = _container()
        with container.engine.begin() as conn:
            with pytest.raises(IntegrityError):
                conn.exec_driver_sql(
                    "INSERT INTO products (name, price, currency, stock) "
                    "VALUES ('Broken', 1, 'IDR', -1)"
                )


class TestCheckoutOnSql:

    def test_checkout_persists_order_and_moves_stock(self):
        container = _container()
        widget, gadget, user = _seed(container)

        dto = CheckoutHandler(container.unit_of_work()).handle(
            user, "Jl. Sudirman 1", [OrderItemSpec(widget.id, 2), OrderItemSpec(gadget.id, 1)]
        )

        assert dto.total_amount == "130.00"
        assert _stock(container, widget.id) == 8
        assert _stock(container, gadget.id) == 4
        with container.unit_of_work() as uow:
            order = uow.orders.get_for_user(dto.order_id, user.id)
            assert order.total == Money.of("130.00")
            assert [i.product_name for i in order.items] == ["Widget", "Gadget"]
            assert all(i.id is not None for i in order.items)

    def test_shortfall_rolls_back_earlier_lines(self):
        container = _container()
        widget, gadget, user = _seed(container)

        with pytest.raises(InsufficientStock):
            CheckoutHandler(container.unit_of_work()).handle(
                user, "Somewhere", [OrderItemSpec(widget.id, 2), OrderItemSpec(gadget.id, 6)]
            )

        assert _stock(container, widget.id) == 10
        assert _stock(container, gadget.id) == 5
        with container.unit_of_work() as uow:
            assert uow.orders.list_for_user(user.id) == []


class TestOrderAndPaymentRepositories:

    def _order(self, container):
        widget, _, user = _seed(container)
        dto = CheckoutHandler(container.unit_of_work()).handle(
            user, "Somewhere", [OrderItemSpec(widget.id, 1)]
        )
        return dto, user

    def test_order_scoping_and_status_update(self):
        container = _container()
        dto, user = self._order(container)
        with container.unit_of_work() as uow:
            assert uow.orders.get_for_user(dto.order_id, user.id + 1) is None
            order = uow.orders.get_for_user(dto.order_id, user.id, for_update=True)
            order.mark_paid()
            uow.orders.save(order)
            uow.commit()
        with container.unit_of_work() as uow:
            assert uow.orders.get_by_id(dto.order_id).status == OrderStatus.PAID
            assert uow.orders.number_exists(dto.order_number)

    def test_payment_round_trip(self):
        container = _container()
        dto, user = self._order(container)
        with container.unit_of_work() as uow:
            payment = Payment(
                id=None,
                order_id=dto.order_id,
                transaction_id="inv-1",
                external_id="INV-x-1",
                amount=Money.of("50.00"),
                method="BCA",
                status=PaymentStatus.PENDING,
                raw_response={"id": "inv-1", "status": "PENDING"},
            )
            uow.payments.save(payment)
            uow.commit()

        with container.unit_of_work() as uow:
            stored = uow.payments.get_by_transaction_id("inv-1")
            assert stored.id == payment.id
            assert stored.amount.amount == Decimal("50.00")
            assert stored.raw_response == {"id": "inv-1", "status": "PENDING"}
            stored.apply_status(PaymentStatus.SUCCESS, {"status": "PAID"})
            uow.payments.save(stored)
            uow.commit()

        with container.unit_of_work() as uow:
            stored = uow.payments.get_for_user(payment.id, user.id)
            assert stored.status == PaymentStatus.SUCCESS
            assert stored.paid_at is not None and stored.paid_at.tzinfo is not None
            assert uow.payments.get_for_user(payment.id, user.id + 1) is None
            assert [p.id for p in uow.payments.list_for_user(user.id)] == [payment.id]
            assert uow.payments.get_by_order_id(dto.order_id).id == payment.id

    def test_stale_copy_cannot_unsettle_payment(self):
        container = _container()
        dto, _ = self._order(container)
        with container.unit_of_work() as uow:
            uow.payments.save(Payment(
                id=None, order_id=dto.order_id, transaction_id="inv-1", external_id="x",
                amount=Money.of("50.00"), method="BCA", status=PaymentStatus.PENDING,
            ))
            uow.commit()

        with container.unit_of_work() as uow:
            stale = uow.payments.get_by_transaction_id("inv-1")
        with container.unit_of_work() as uow:
            settled = uow.payments.get_by_transaction_id("inv-1")
            settled.apply_status(PaymentStatus.SUCCESS, {"status": "PAID"})
            uow.payments.save(settled)
            uow.commit()

        stale.apply_status(PaymentStatus.PENDING, {"status": "PENDING"})
        with container.unit_of_work() as uow:
            with pytest.raises(PaymentSettledConcurrently):
                uow.payments.save(stale)

        with container.unit_of_work() as uow:
            stored = uow.payments.get_by_transaction_id("inv-1")
            assert stored.status == PaymentStatus.SUCCESS
            assert stored.paid_at is not None
            # A settled copy may still be written, e.g. to refresh the invoice URL.
            stored.invoice_url = "https://checkout.example.test/inv-1"
            uow.payments.save(stored)
            uow.commit()

    def test_duplicate_transaction_id_conflicts(self):
        container = _container()
        dto, _ = self._order(container)

        def _payment():
            return Payment(
                id=None, order_id=dto.order_id, transaction_id="inv-1", external_id="x",
                amount=Money.of("50.00"), method="BCA",
            )

        with container.unit_of_work() as uow:
            uow.payments.save(_payment())
            uow.commit()
        with pytest.raises(Conflict, match="already linked"):
            with container.unit_of_work() as uow:
                uow.payments.save(_payment())
                uow.commit()


class TestUserRepository:

    def test_token_lookup_and_duplicate_email(self):
        container = _container()
        _, _, user = _seed(container)
        with container.unit_of_work() as uow:
            assert uow.users.get_by_token("tok-alice") == user
            assert uow.users.get_by_token("nope") is None
            with pytest.raises(Conflict):
                uow.users.add(name="Other", email="alice@example.com", api_token="tok-2")

    def test_admin_flag_round_trip(self):
        container = _container()
        with container.unit_of_work() as uow:
            admin = uow.users.add(
                name="Root", email="root@example.com", api_token="tok-root", is_admin=True
            )
            uow.commit()
        with container.unit_of_work() as uow:
            assert uow.users.get_by_token("tok-root").is_admin is True
            assert uow.users.get_by_id(admin.id).is_admin is True
