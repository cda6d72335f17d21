"""Provider callbacks. Authenticated by a shared token, not by a user."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from storefront.application.handle_payment_webhook import HandlePaymentWebhookHandler
from storefront.domain.exceptions import EntityNotFoundError
from storefront.infrastructure.api.dependencies import get_container, raw_json_body
from storefront.infrastructure.api.responses import envelope
from storefront.infrastructure.bootstrap import Container

router = APIRouter(prefix="/webhook", tags=["webhooks"])

SUPPORTED_PROVIDERS = ("xendit",)


@router.post("/{provider}")
def payment_webhook(
    provider: str,
    payload: Any = Depends(raw_json_body),
    x_callback_token: str | None = Header(default=None),
    container: Container = Depends(get_container),
) -> JSONResponse:
    if provider not in SUPPORTED_PROVIDERS:
        raise EntityNotFoundError(f"Unknown payment provider {provider!r}")

    handler = HandlePaymentWebhookHandler(
        uow=container.unit_of_work(),
        webhook_token=container.settings.xendit_webhook_token,
        release_stock_on_payment_failure=container.settings.release_stock_on_payment_failure,
    )
    status = handler.handle(x_callback_token, payload)
    return envelope({"status": status.value})
