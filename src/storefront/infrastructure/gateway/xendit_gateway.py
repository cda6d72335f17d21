"""Xendit invoice API adapter over httpx.

Every call uses a bounded timeout. Timeouts and connection problems are
reported as retryable GatewayErrors; they never imply that the invoice
was or was not created.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
import structlog

from storefront.domain.exceptions import GatewayError
from storefront.domain.gateway.payment_gateway import Invoice, InvoiceRequest, PaymentGateway

logger = structlog.get_logger(component="xendit_gateway")

DEFAULT_BASE_URL = "https://api.xendit.co"


class XenditInvoiceGateway(PaymentGateway):

    def __init__(
        self,
        secret_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            auth=(secret_key, ""),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    # --- PaymentGateway interface ---------------------------------------------

    def create_invoice(self, request: InvoiceRequest) -> Invoice:
        payload = {
            "external_id": request.external_id,
            "amount": float(request.amount),
            "currency": request.currency,
            "payer_email": request.payer_email,
            "description": request.description,
            "invoice_duration": request.invoice_duration,
            "items": [
                {
                    "name": item.name,
                    "quantity": item.quantity,
                    "price": float(item.price),
                    "category": item.category,
                }
                for item in request.items
            ],
            "success_redirect_url": request.success_redirect_url,
            "failure_redirect_url": request.failure_redirect_url,
            "payment_methods": request.payment_methods,
        }
        return self._to_invoice(self._request("POST", "/v2/invoices", json=payload))

    def get_invoice(self, invoice_id: str) -> Invoice:
        return self._to_invoice(self._request("GET", f"/v2/invoices/{invoice_id}"))

    def expire_invoice(self, invoice_id: str) -> Invoice:
        return self._to_invoice(self._request("POST", f"/invoices/{invoice_id}/expire!"))

    # --- HTTP -----------------------------------------------------------------

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("gateway_timeout", method=method, url=url)
            raise GatewayError("Payment provider timed out", retryable=True) from exc
        except httpx.TransportError as exc:
            logger.warning("gateway_unreachable", method=method, url=url, error=str(exc))
            raise GatewayError(
                f"Payment provider unreachable: {exc}", retryable=True
            ) from exc

        if response.is_error:
            body = _json_or_empty(response)
            error_code = body.get("error_code")
            message = body.get("message") or response.text or response.reason_phrase
            logger.warning(
                "gateway_error_response",
                method=method,
                url=url,
                status_code=response.status_code,
                error_code=error_code,
            )
            raise GatewayError(
                f"Payment provider rejected the request ({response.status_code}): {message}",
                retryable=response.status_code >= 500 or response.status_code == 429,
                error_code=error_code,
            )

        body = _json_or_empty(response)
        if not body:
            raise GatewayError("Payment provider returned an empty or invalid body", retryable=True)
        return body

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _to_invoice(data: dict[str, Any]) -> Invoice:
        invoice_id = data.get("id")
        if not invoice_id:
            raise GatewayError("Payment provider response has no invoice id")
        try:
            amount = Decimal(str(data.get("amount", 0)))
        except InvalidOperation as exc:
            raise GatewayError(f"Invalid invoice amount {data.get('amount')!r}") from exc
        return Invoice(
            id=str(invoice_id),
            external_id=str(data.get("external_id", "")),
            status=str(data.get("status", "")),
            amount=amount,
            invoice_url=data.get("invoice_url"),
            expiry_date=_parse_datetime(data.get("expiry_date")),
            raw=data,
        )


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _parse_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
