"""Shared wiring for the use cases that reconcile payments."""

from __future__ import annotations

from typing import Any, Callable

import structlog

from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import PaymentSettledConcurrently
from storefront.domain.model.payment import Payment
from storefront.domain.service.payment_reconciliation_service import (
    PaymentReconciliationService,
    ReconciliationOutcome,
)

logger = structlog.get_logger(component="reconciliation")


def reconciliation_service(
    uow: UnitOfWork, release_stock_on_payment_failure: bool
) -> PaymentReconciliationService:
    return PaymentReconciliationService(
        order_repo=uow.orders,
        payment_repo=uow.payments,
        ledger=uow.inventory,
        release_stock_on_payment_failure=release_stock_on_payment_failure,
    )


def reconcile_payment(
    uow: UnitOfWork,
    load_payment: Callable[[UnitOfWork], Payment],
    provider_status: str | None,
    raw: dict[str, Any],
    release_stock_on_payment_failure: bool,
    invoice_url: str | None = None,
) -> ReconciliationOutcome:
    """Apply a provider status in one short write transaction.

    The payment is read inside the transaction, never carried over from
    before a provider call. If it is settled between that read and the
    write, the transaction is replayed once against the settled row.
    """

    def attempt() -> ReconciliationOutcome:
        with uow:
            payment = load_payment(uow)
            if invoice_url:
                payment.invoice_url = invoice_url
            service = reconciliation_service(uow, release_stock_on_payment_failure)
            outcome = service.apply_provider_status(payment, provider_status, raw)
            uow.commit()
            return outcome

    try:
        return attempt()
    except PaymentSettledConcurrently as exc:
        logger.info("payment_settled_concurrently", payment_id=exc.payment_id)
        return attempt()


def log_outcome(outcome: ReconciliationOutcome, source: str) -> None:
    payment = outcome.payment
    fields = dict(
        source=source,
        payment_id=payment.id,
        order_id=payment.order_id,
        previous_status=outcome.previous_status.value,
        reported_status=outcome.reported_status.value,
        status=payment.status.value,
        order_status=outcome.order.status.value,
    )
    if outcome.downgrade_ignored:
        logger.warning("payment_downgrade_ignored", **fields)
    elif outcome.order_out_of_sync:
        logger.error("payment_settled_for_cancelled_order", **fields)
    elif outcome.payment_changed or outcome.order_changed:
        logger.info("payment_reconciled", **fields)
    else:
        logger.debug("payment_unchanged", **fields)
