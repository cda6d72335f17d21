"""Payment endpoints: open an invoice, poll, list, cancel."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.application.cancel_payment import CancelPaymentHandler
from storefront.application.create_payment import CreatePaymentHandler
from storefront.application.show_payment import ListPaymentsHandler, ShowPaymentHandler
from storefront.domain.model.user import User
from storefront.infrastructure.api.dependencies import current_user, get_container
from storefront.infrastructure.api.responses import envelope
from storefront.infrastructure.api.schemas import CreatePaymentRequest
from storefront.infrastructure.bootstrap import Container

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("")
def create_payment(
    body: CreatePaymentRequest,
    user: User = Depends(current_user),
    container: Container = Depends(get_container),
) -> JSONResponse:
    settings = container.settings
    handler = CreatePaymentHandler(
        uow=container.unit_of_work(),
        gateway=container.gateway,
        app_url=settings.app_url,
        invoice_duration=settings.invoice_duration_seconds,
    )
    dto = handler.handle(user, body.order_id, body.payment_method)
    return envelope(dto, message="Payment created successfully", status_code=201)


@router.get("")
def list_payments(
    user: User = Depends(current_user),
    container: Container = Depends(get_container),
) -> JSONResponse:
    return envelope(ListPaymentsHandler(container.unit_of_work()).handle(user))


@router.get("/{payment_id}")
def show_payment(
    payment_id: int,
    user: User = Depends(current_user),
    container: Container = Depends(get_container),
) -> JSONResponse:
    handler = ShowPaymentHandler(
        uow=container.unit_of_work(),
        gateway=container.gateway,
        release_stock_on_payment_failure=container.settings.release_stock_on_payment_failure,
    )
    return envelope(handler.handle(user, payment_id))


@router.delete("/{payment_id}")
def cancel_payment(
    payment_id: int,
    user: User = Depends(current_user),
    container: Container = Depends(get_container),
) -> JSONResponse:
    handler = CancelPaymentHandler(
        uow=container.unit_of_work(),
        gateway=container.gateway,
        release_stock_on_payment_failure=container.settings.release_stock_on_payment_failure,
    )
    handler.handle(user, payment_id)
    return envelope(message="Payment cancelled successfully")
