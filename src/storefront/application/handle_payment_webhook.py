"""Application service: Payment Webhook use case.

The provider calls back with the invoice payload whenever an invoice
changes status. Deliveries are authenticated with a shared token and may
be repeated; applying the same status twice changes nothing.

Unknown invoice ids are answered with EntityNotFoundError rather than a
transient failure, so the provider does not keep retrying them.
"""

from __future__ import annotations

import hmac
from typing import Any

import structlog

from storefront.application.reconciliation import log_outcome, reconcile_payment
from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    Unauthorized,
    ValidationError,
)
from storefront.domain.model.payment import Payment, PaymentStatus

logger = structlog.get_logger(component="payment_webhook")


class HandlePaymentWebhookHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        webhook_token: str,
        release_stock_on_payment_failure: bool = True,
    ) -> None:
        self._uow = uow
        self._webhook_token = webhook_token
        self._release_stock = release_stock_on_payment_failure

    def handle(self, callback_token: str | None, payload: Any) -> PaymentStatus:
        """Apply one webhook delivery and return the resulting payment status.

        The token is checked before anything is read from *payload*.
        """
        if not self._token_matches(callback_token):
            logger.warning("webhook_rejected_invalid_token")
            raise Unauthorized("Invalid webhook token")

        logger.info("webhook_received", payload=payload)
        invoice_id, provider_status = self._parse(payload)

        try:
            outcome = reconcile_payment(
                self._uow,
                lambda uow: self._load(uow, invoice_id),
                provider_status,
                payload,
                self._release_stock,
            )
        except DomainException:
            raise
        except Exception:
            logger.exception("webhook_failed", payload=payload)
            raise

        log_outcome(outcome, source="webhook")
        return outcome.payment.status

    @staticmethod
    def _load(uow: UnitOfWork, invoice_id: str) -> Payment:
        payment = uow.payments.get_by_transaction_id(invoice_id)
        if payment is None:
            logger.warning("webhook_unknown_invoice", invoice_id=invoice_id)
            raise EntityNotFoundError(f"Payment not found for invoice: {invoice_id}")
        return payment

    def _token_matches(self, callback_token: str | None) -> bool:
        if not self._webhook_token or not callback_token:
            return False
        return hmac.compare_digest(
            callback_token.encode("utf-8"), self._webhook_token.encode("utf-8")
        )

    @staticmethod
    def _parse(payload: Any) -> tuple[str, str]:
        if not isinstance(payload, dict):
            logger.warning("webhook_malformed", payload=payload)
            raise ValidationError(
                "Malformed webhook payload", {"body": ["The payload must be a JSON object."]}
            )
        invoice_id = payload.get("id")
        provider_status = payload.get("status")
        errors: dict[str, list[str]] = {}
        if not isinstance(invoice_id, str) or not invoice_id:
            errors["id"] = ["The id field is required."]
        if not isinstance(provider_status, str) or not provider_status:
            errors["status"] = ["The status field is required."]
        if errors:
            logger.warning("webhook_malformed", payload=payload)
            raise ValidationError("Malformed webhook payload", errors)
        return invoice_id, provider_status  # type: ignore[return-value]
