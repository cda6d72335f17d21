"""HTTP tests for /orders and the shared error envelope."""

import re

import pytest
from fastapi.testclient import TestClient

from storefront.infrastructure.api.app import create_app
from tests.api.helpers import (
    ADMIN_TOKEN,
    ALICE_TOKEN,
    BOB_TOKEN,
    WEBHOOK_TOKEN,
    auth,
    build_container,
    stock_of,
)
from tests.fakes import FakePaymentGateway


def _explode(invoice_id):
    raise RuntimeError("boom: secret internals")


class TestAuthentication:

    def test_missing_token(self, client):
        response = client.get("/orders")
        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "Unauthenticated. Please login first.",
        }

    def test_unknown_token(self, client):
        response = client.get("/orders", headers=auth("nope"))
        assert response.status_code == 401

    def test_wrong_scheme(self, client):
        response = client.get("/orders", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401


class TestCheckout:

    def test_created(self, client, order):
        assert order["total_amount"] == "130.00"
        assert order["status"] == "PENDING_PAYMENT"
        assert re.fullmatch(r"ORD-\d{8}-[A-Z0-9]{6}", order["order_number"])
        assert [i["subtotal"] for i in order["items"]] == ["100.00", "30.00"]

    def test_created_message(self, client):
        response = client.post(
            "/orders",
            json={"shipping_address": "Somewhere", "items": [{"product_id": 1, "quantity": 1}]},
            headers=auth(),
        )
        assert response.status_code == 201
        assert response.json()["success"] is True
        assert response.json()["message"] == "Order created successfully"

    def test_shortfall_is_400_and_moves_no_stock(self, client, container):
        response = client.post(
            "/orders",
            json={
                "shipping_address": "Somewhere",
                "items": [{"product_id": 1, "quantity": 2}, {"product_id": 2, "quantity": 6}],
            },
            headers=auth(),
        )
        assert response.status_code == 400
        assert "only has 5 items in stock" in response.json()["message"]
        assert stock_of(container, 1) == 10
        assert stock_of(container, 2) == 5

    def test_request_shape_errors_are_422(self, client):
        response = client.post("/orders", json={"shipping_address": "Somewhere"}, headers=auth())
        assert response.status_code == 422
        body = response.json()
        assert body["message"] == "Validation Error"
        assert "items" in body["errors"]

    def test_domain_validation_errors_are_422(self, client):
        response = client.post(
            "/orders",
            json={"shipping_address": "   ", "items": [{"product_id": 1, "quantity": 1}]},
            headers=auth(),
        )
        assert response.status_code == 422
        assert "shipping_address" in response.json()["errors"]


class TestQueriesAndCancel:

    def test_show_and_list(self, client, order):
        shown = client.get(f"/orders/{order['order_id']}", headers=auth()).json()["data"]
        assert shown["order_number"] == order["order_number"]
        listed = client.get("/orders", headers=auth()).json()["data"]
        assert [o["order_id"] for o in listed] == [order["order_id"]]

    def test_other_users_order_is_404(self, client, order):
        response = client.get(f"/orders/{order['order_id']}", headers=auth(BOB_TOKEN))
        assert response.status_code == 404

    def test_cancel_then_cancel_again(self, client, container, order):
        response = client.delete(f"/orders/{order['order_id']}", headers=auth())
        assert response.status_code == 200
        assert response.json()["message"] == "Order cancelled successfully"
        assert stock_of(container, 1) == 10

        again = client.delete(f"/orders/{order['order_id']}", headers=auth())
        assert again.status_code == 400
        assert "Cannot cancel order" in again.json()["message"]

    def test_advance_pending_order_is_400(self, client, order):
        response = client.patch(
            f"/orders/{order['order_id']}", json={"status": "SHIPPED"}, headers=auth(ADMIN_TOKEN)
        )
        assert response.status_code == 400


class TestAdvanceAccess:

    @pytest.fixture
    def paid_order(self, client, order) -> dict:
        created = client.post(
            "/payments",
            json={"order_id": order["order_id"], "payment_method": "BCA"},
            headers=auth(),
        ).json()["data"]
        client.post(
            "/webhook/xendit",
            json={"id": created["invoice_id"], "status": "PAID"},
            headers={"x-callback-token": WEBHOOK_TOKEN},
        )
        return order

    @pytest.mark.parametrize("token", [BOB_TOKEN, ALICE_TOKEN])
    def test_customers_get_403(self, client, paid_order, token):
        response = client.patch(
            f"/orders/{paid_order['order_id']}", json={"status": "PROCESSING"}, headers=auth(token)
        )
        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "message": "Only administrators can change the order status",
        }
        order_now = client.get(f"/orders/{paid_order['order_id']}", headers=auth()).json()["data"]
        assert order_now["status"] == "PAID"

    def test_admin_advances(self, client, paid_order):
        response = client.patch(
            f"/orders/{paid_order['order_id']}",
            json={"status": "PROCESSING"},
            headers=auth(ADMIN_TOKEN),
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Order status updated"
        assert response.json()["data"]["status"] == "PROCESSING"


class TestErrorEnvelope:

    def test_unknown_endpoint(self, client):
        response = client.get("/nowhere")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Endpoint not found"}

    def test_health(self, client):
        assert client.get("/health").json() == {"success": True, "data": {"status": "ok"}}


class TestUnexpectedErrors:

    def _client_with_payment(self, debug: bool):
        gateway = FakePaymentGateway()
        container = build_container(gateway, debug=debug)
        client = TestClient(create_app(container), raise_server_exceptions=False)
        client.post(
            "/orders",
            json={"shipping_address": "Somewhere", "items": [{"product_id": 1, "quantity": 1}]},
            headers=auth(),
        )
        payment = client.post(
            "/payments", json={"order_id": 1, "payment_method": "BCA"}, headers=auth()
        ).json()["data"]
        gateway.get_invoice = _explode
        return client, payment

    def test_generic_message_outside_debug(self):
        client, payment = self._client_with_payment(debug=False)
        response = client.get(f"/payments/{payment['payment_id']}", headers=auth())
        assert response.status_code == 500
        body = response.json()
        assert body["message"] == "An error occurred. Please try again later."
        assert "debug" not in body
        assert "secret internals" not in response.text

    def test_debug_block_in_debug_mode(self):
        client, payment = self._client_with_payment(debug=True)
        response = client.get(f"/payments/{payment['payment_id']}", headers=auth())
        assert response.status_code == 500
        debug = response.json()["debug"]
        assert debug["exception"] == "RuntimeError"
        assert debug["line"] > 0
        assert len(debug["trace"]) <= 10
