"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the API/CLI and application layers without
exposing domain internals to the outside world. Money is rendered as a
two-decimal string so no float rounding reaches the client.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from storefront.domain.model.order import Order
from storefront.domain.model.payment import Payment


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (product id + quantity)."""

    product_id: int
    quantity: int


@dataclass(frozen=True)
class OrderLineItemDTO:
    product_id: int
    product_name: str
    quantity: int
    price: str
    subtotal: str


@dataclass(frozen=True)
class PaymentSummaryDTO:
    payment_id: int
    status: str
    method: str
    amount: str
    paid_at: datetime | None


@dataclass(frozen=True)
class OrderDTO:
    order_id: int
    order_number: str
    status: str
    total_amount: str
    shipping_address: str
    payment_method: str | None
    items: list[OrderLineItemDTO]
    payment: PaymentSummaryDTO | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class PaymentDTO:
    payment_id: int
    order_id: int
    order_number: str
    status: str
    amount: str
    method: str
    invoice_url: str | None
    paid_at: datetime | None
    created_at: datetime


@dataclass(frozen=True)
class PaymentCreatedDTO:
    payment_id: int
    order_number: str
    invoice_id: str
    invoice_url: str | None
    external_id: str
    amount: str
    status: str
    expiry_date: datetime | None


# --- Mapping ------------------------------------------------------------------


def order_to_dto(order: Order, payment: Payment | None = None) -> OrderDTO:
    return OrderDTO(
        order_id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        status=order.status.value,
        total_amount=f"{order.total.amount:.2f}",
        shipping_address=order.shipping_address,
        payment_method=order.payment_method,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                price=f"{item.unit_price.amount:.2f}",
                subtotal=f"{item.subtotal.amount:.2f}",
            )
            for item in order.items
        ],
        payment=_payment_summary(payment) if payment is not None else None,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def payment_to_dto(payment: Payment, order_number: str) -> PaymentDTO:
    return PaymentDTO(
        payment_id=payment.id,  # type: ignore[arg-type]
        order_id=payment.order_id,
        order_number=order_number,
        status=payment.status.value,
        amount=f"{payment.amount.amount:.2f}",
        method=payment.method,
        invoice_url=payment.invoice_url,
        paid_at=payment.paid_at,
        created_at=payment.created_at,
    )


def _payment_summary(payment: Payment) -> PaymentSummaryDTO:
    return PaymentSummaryDTO(
        payment_id=payment.id,  # type: ignore[arg-type]
        status=payment.status.value,
        method=payment.method,
        amount=f"{payment.amount.amount:.2f}",
        paid_at=payment.paid_at,
    )
