"""Shared setup for the HTTP API tests."""

from __future__ import annotations

from storefront.domain.gateway.payment_gateway import PaymentGateway
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.infrastructure.bootstrap import Container
from storefront.infrastructure.config import Settings
from tests.fakes import FakePaymentGateway

WEBHOOK_TOKEN = "cb-token"
ALICE_TOKEN = "alice-token"
BOB_TOKEN = "bob-token"
ADMIN_TOKEN = "admin-token"


def build_container(gateway: PaymentGateway | None = None, debug: bool = False) -> Container:
    """In-memory database with Widget (id 1, 10 @ 50.00), Gadget (id 2, 5 @ 30.00),
    the customers Alice and Bob, and the administrator Carol."""
    settings = Settings(
        database_url="sqlite://",
        debug=debug,
        app_url="https://shop.example.test",
        xendit_webhook_token=WEBHOOK_TOKEN,
        log_json=False,
        log_level="WARNING",
    )
    container = Container(settings, gateway=gateway or FakePaymentGateway())
    container.init_schema()
    with container.unit_of_work() as uow:
        uow.products.save(Product(id=None, name="Widget", price=Money.of("50.00"), stock=10))
        uow.products.save(Product(id=None, name="Gadget", price=Money.of("30.00"), stock=5))
        uow.users.add(name="Alice", email="alice@example.com", api_token=ALICE_TOKEN)
        uow.users.add(name="Bob", email="bob@example.com", api_token=BOB_TOKEN)
        uow.users.add(
            name="Carol", email="carol@example.com", api_token=ADMIN_TOKEN, is_admin=True
        )
        uow.commit()
    return container


def auth(token: str = ALICE_TOKEN) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def stock_of(container: Container, product_id: int) -> int:
    with container.unit_of_work() as uow:
        return uow.products.get_by_id(product_id).stock
