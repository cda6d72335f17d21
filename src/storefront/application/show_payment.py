"""Application service: Show / List Payments use cases.

Showing a payment first pulls the invoice from the provider and
reconciles, so the caller always sees the provider's current view. The
provider call sits between two short transactions; the write re-reads the
payment, so a webhook that settled it in the meantime is not undone.
"""

from __future__ import annotations

from storefront.application.dto import PaymentDTO, payment_to_dto
from storefront.application.reconciliation import log_outcome, reconcile_payment
from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.gateway.payment_gateway import PaymentGateway
from storefront.domain.model.payment import Payment
from storefront.domain.model.user import User


class ShowPaymentHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        gateway: PaymentGateway,
        release_stock_on_payment_failure: bool = True,
    ) -> None:
        self._uow = uow
        self._gateway = gateway
        self._release_stock = release_stock_on_payment_failure

    def handle(self, user: User, payment_id: int) -> PaymentDTO:
        with self._uow as uow:
            transaction_id = self._load(uow, user, payment_id).transaction_id

        # No transaction is open while the provider answers.
        invoice = self._gateway.get_invoice(transaction_id)

        outcome = reconcile_payment(
            self._uow,
            lambda uow: self._load(uow, user, payment_id),
            invoice.status,
            invoice.raw,
            self._release_stock,
            invoice_url=invoice.invoice_url,
        )
        log_outcome(outcome, source="poll")
        return payment_to_dto(outcome.payment, outcome.order.order_number)

    @staticmethod
    def _load(uow: UnitOfWork, user: User, payment_id: int) -> Payment:
        payment = uow.payments.get_for_user(payment_id, user.id)
        if payment is None:
            raise EntityNotFoundError(f"Payment #{payment_id} not found")
        return payment


class ListPaymentsHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user: User) -> list[PaymentDTO]:
        with self._uow as uow:
            result = []
            for payment in uow.payments.list_for_user(user.id):
                order = uow.orders.get_by_id(payment.order_id)
                order_number = order.order_number if order is not None else ""
                result.append(payment_to_dto(payment, order_number))
            return result
