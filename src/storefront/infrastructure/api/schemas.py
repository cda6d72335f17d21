"""Request bodies accepted by the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CheckoutItem(BaseModel):
    product_id: int = Field(..., description="Product to order")
    quantity: int = Field(..., description="Units to order, at least 1")


class CheckoutRequest(BaseModel):
    shipping_address: str = Field(..., description="Where to ship the order")
    items: list[CheckoutItem] = Field(..., description="Products and quantities")


class CreatePaymentRequest(BaseModel):
    order_id: int
    payment_method: str = Field(..., description="One of the supported payment methods")


class AdvanceOrderRequest(BaseModel):
    status: str = Field(..., description="Next order status")
