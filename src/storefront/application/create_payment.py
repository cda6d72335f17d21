"""Application service: Create Payment use case.

Opens an invoice at the payment provider for an order awaiting payment.
The local Payment row is written only after the provider confirmed the
invoice, so a provider failure never leaves a payment that points at no
real invoice. The order is checked again after the provider call; an
invoice that lost a race to another attempt is expired at the provider.
"""

from __future__ import annotations

import time
from typing import Callable

import structlog

from storefront.application.dto import PaymentCreatedDTO
from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import (
    DomainException,
    DuplicatePayment,
    EntityNotFoundError,
    GatewayError,
    InvalidStateTransition,
)
from storefront.domain.gateway.payment_gateway import (
    Invoice,
    InvoiceItem,
    InvoiceRequest,
    PaymentGateway,
)
from storefront.domain.model.order import Order, OrderStatus
from storefront.domain.model.payment import Payment, PaymentMethod, PaymentStatus
from storefront.domain.model.user import User

logger = structlog.get_logger(component="create_payment")


class CreatePaymentHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        gateway: PaymentGateway,
        app_url: str,
        invoice_duration: int = 86400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._uow = uow
        self._gateway = gateway
        self._app_url = app_url.rstrip("/")
        self._invoice_duration = invoice_duration
        self._clock = clock

    def handle(self, user: User, order_id: int, payment_method: str) -> PaymentCreatedDTO:
        method = PaymentMethod.parse(payment_method)

        with self._uow as uow:
            order = self._eligible_order(uow, user, order_id)
            request = self._invoice_request(user, order, method)

        # Nothing is locked while the provider answers.
        try:
            invoice = self._gateway.create_invoice(request)
        except GatewayError as exc:
            logger.error(
                "invoice_creation_failed",
                order_id=order_id,
                external_id=request.external_id,
                retryable=exc.retryable,
                error_code=exc.error_code,
                error=str(exc),
            )
            raise

        try:
            with self._uow as uow:
                order = self._eligible_order(uow, user, order_id)
                payment = Payment(
                    id=None,
                    order_id=order_id,
                    transaction_id=invoice.id,
                    external_id=request.external_id,
                    amount=order.total,
                    method=method.value,
                    status=PaymentStatus.PENDING,
                    raw_response=invoice.raw,
                    invoice_url=invoice.invoice_url,
                    expires_at=invoice.expiry_date,
                )
                uow.payments.save(payment)
                order.choose_payment_method(method.value)
                uow.orders.save(order)
                uow.commit()
        except DomainException as exc:
            # Another request paid for the order, or it left PENDING_PAYMENT.
            self._discard(invoice, reason=str(exc))
            raise

        logger.info(
            "payment_created",
            order_id=order_id,
            payment_id=payment.id,
            invoice_id=invoice.id,
            external_id=request.external_id,
        )
        return PaymentCreatedDTO(
            payment_id=payment.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            invoice_id=invoice.id,
            invoice_url=invoice.invoice_url,
            external_id=request.external_id,
            amount=f"{invoice.amount:.2f}",
            status=invoice.status,
            expiry_date=invoice.expiry_date,
        )

    @staticmethod
    def _eligible_order(uow: UnitOfWork, user: User, order_id: int) -> Order:
        order = uow.orders.get_for_user(order_id, user.id, for_update=True)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        existing = uow.payments.get_by_order_id(order_id)
        if existing is not None:
            raise DuplicatePayment(existing.id, existing.status.value)  # type: ignore[arg-type]

        if order.status != OrderStatus.PENDING_PAYMENT:
            raise InvalidStateTransition("Order is not eligible for payment")
        return order

    def _discard(self, invoice: Invoice, reason: str) -> None:
        """Expire an invoice that no local payment will point at."""
        try:
            self._gateway.expire_invoice(invoice.id)
        except GatewayError as exc:
            logger.warning(
                "orphan_invoice_not_expired", invoice_id=invoice.id, reason=reason, error=str(exc)
            )
        else:
            logger.info("orphan_invoice_expired", invoice_id=invoice.id, reason=reason)

    def _invoice_request(self, user: User, order: Order, method: PaymentMethod) -> InvoiceRequest:
        total = order.total
        return InvoiceRequest(
            # Order number + time: traceable back to the order, unique per attempt.
            external_id=f"INV-{order.order_number}-{int(self._clock())}",
            amount=total.amount,
            currency=total.currency,
            payer_email=user.email,
            description=f"Payment for Order #{order.order_number}",
            items=[
                InvoiceItem(
                    name=item.product_name,
                    quantity=item.quantity.value,
                    price=item.unit_price.amount,
                )
                for item in order.items
            ],
            payment_methods=[method.value],
            success_redirect_url=f"{self._app_url}/payment/success",
            failure_redirect_url=f"{self._app_url}/payment/failed",
            invoice_duration=self._invoice_duration,
        )
