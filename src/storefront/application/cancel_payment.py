"""Application service: Cancel Payment use case.

Expires the invoice at the provider, marks the payment EXPIRED and
cancels the order through the same cascade the webhook uses. The
provider call runs outside any transaction; the write afterwards re-reads
the payment and refuses if it was settled in the meantime.
"""

from __future__ import annotations

import structlog

from storefront.application.reconciliation import reconciliation_service
from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import (
    AlreadySettled,
    EntityNotFoundError,
    PaymentSettledConcurrently,
)
from storefront.domain.gateway.payment_gateway import PaymentGateway
from storefront.domain.model.payment import Payment, PaymentStatus
from storefront.domain.model.user import User

logger = structlog.get_logger(component="cancel_payment")


class CancelPaymentHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        gateway: PaymentGateway,
        release_stock_on_payment_failure: bool = True,
    ) -> None:
        self._uow = uow
        self._gateway = gateway
        self._release_stock = release_stock_on_payment_failure

    def handle(self, user: User, payment_id: int) -> None:
        with self._uow as uow:
            payment = self._load(uow, user, payment_id)
            if payment.status == PaymentStatus.EXPIRED:
                return

        invoice = self._gateway.expire_invoice(payment.transaction_id)

        with self._uow as uow:
            payment = self._load(uow, user, payment_id)
            payment.expire()
            payment.raw_response = invoice.raw
            try:
                uow.payments.save(payment)
            except PaymentSettledConcurrently as exc:
                raise AlreadySettled("Cannot cancel successful payment") from exc

            order = uow.orders.get_by_id(payment.order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{payment.order_id} not found")
            reconciliation_service(uow, self._release_stock).sync_order(order, payment)
            uow.commit()

        logger.info(
            "payment_cancelled",
            user_id=user.id,
            payment_id=payment_id,
            order_id=payment.order_id,
        )

    @staticmethod
    def _load(uow: UnitOfWork, user: User, payment_id: int) -> Payment:
        payment = uow.payments.get_for_user(payment_id, user.id)
        if payment is None:
            raise EntityNotFoundError(f"Payment #{payment_id} not found")
        if payment.is_settled:
            raise AlreadySettled("Cannot cancel successful payment")
        return payment
