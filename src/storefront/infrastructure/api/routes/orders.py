"""Order endpoints: checkout, queries, cancellation, admin transition."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.application.advance_order import AdvanceOrderHandler
from storefront.application.cancel_order import CancelOrderHandler
from storefront.application.checkout import CheckoutHandler
from storefront.application.dto import OrderItemSpec
from storefront.application.show_order import ListOrdersHandler, ShowOrderHandler
from storefront.domain.model.user import User
from storefront.infrastructure.api.dependencies import current_user, get_container
from storefront.infrastructure.api.responses import envelope
from storefront.infrastructure.api.schemas import AdvanceOrderRequest, CheckoutRequest
from storefront.infrastructure.bootstrap import Container

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("")
def checkout(
    body: CheckoutRequest,
    user: User = Depends(current_user),
    container: Container = Depends(get_container),
) -> JSONResponse:
    handler = CheckoutHandler(container.unit_of_work())
    dto = handler.handle(
        user=user,
        shipping_address=body.shipping_address,
        item_specs=[OrderItemSpec(i.product_id, i.quantity) for i in body.items],
    )
    return envelope(dto, message="Order created successfully", status_code=201)


@router.get("")
def list_orders(
    user: User = Depends(current_user),
    container: Container = Depends(get_container),
) -> JSONResponse:
    return envelope(ListOrdersHandler(container.unit_of_work()).handle(user))


@router.get("/{order_id}")
def show_order(
    order_id: int,
    user: User = Depends(current_user),
    container: Container = Depends(get_container),
) -> JSONResponse:
    return envelope(ShowOrderHandler(container.unit_of_work()).handle(user, order_id))


@router.delete("/{order_id}")
def cancel_order(
    order_id: int,
    user: User = Depends(current_user),
    container: Container = Depends(get_container),
) -> JSONResponse:
    CancelOrderHandler(container.unit_of_work()).handle(user, order_id)
    return envelope(message="Order cancelled successfully")


@router.patch("/{order_id}")
def advance_order(
    order_id: int,
    body: AdvanceOrderRequest,
    user: User = Depends(current_user),
    container: Container = Depends(get_container),
) -> JSONResponse:
    dto = AdvanceOrderHandler(container.unit_of_work()).handle(user, order_id, body.status)
    return envelope(dto, message="Order status updated")
