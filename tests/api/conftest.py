"""Fixtures for the HTTP API: an app on in-memory SQLite with a fake provider."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from storefront.infrastructure.api.app import create_app
from storefront.infrastructure.bootstrap import Container
from tests.api.helpers import auth, build_container
from tests.fakes import FakePaymentGateway


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def container(gateway) -> Container:
    return build_container(gateway)


@pytest.fixture
def client(container) -> TestClient:
    return TestClient(create_app(container))


@pytest.fixture
def order(client) -> dict:
    """Alice's pending order: 2 x Widget + 1 x Gadget."""
    response = client.post(
        "/orders",
        json={
            "shipping_address": "Jl. Sudirman 1, Jakarta",
            "items": [{"product_id": 1, "quantity": 2}, {"product_id": 2, "quantity": 1}],
        },
        headers=auth(),
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]
