"""Domain service: Payment Reconciliation.

Aligns a local Payment, and through it the Order, with the status the
payment provider reports. Webhook delivery, on-demand polling and user
cancellation all end up here, so the order cascade is identical whichever
source moved the payment.

Applying the same provider status twice is a no-op the second time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.order import Order, OrderStatus
from storefront.domain.model.payment import (
    InvoiceStatus,
    Payment,
    PaymentStatus,
    to_payment_status,
)
from storefront.domain.repository.inventory_ledger import InventoryLedger
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.payment_repository import PaymentRepository
from storefront.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)


@dataclass(frozen=True)
class ReconciliationOutcome:
    """What a reconciliation did, for the caller to log and report."""

    payment: Payment
    order: Order
    previous_status: PaymentStatus
    reported_status: PaymentStatus
    payment_changed: bool
    order_changed: bool

    @property
    def downgrade_ignored(self) -> bool:
        return (
            self.previous_status == PaymentStatus.SUCCESS
            and self.reported_status != PaymentStatus.SUCCESS
        )

    @property
    def order_out_of_sync(self) -> bool:
        """Payment settled but the order was already cancelled."""
        return (
            self.payment.status == PaymentStatus.SUCCESS
            and self.order.status == OrderStatus.CANCELLED
        )


class PaymentReconciliationService:

    def __init__(
        self,
        order_repo: OrderRepository,
        payment_repo: PaymentRepository,
        ledger: InventoryLedger,
        release_stock_on_payment_failure: bool = True,
    ) -> None:
        self._order_repo = order_repo
        self._payment_repo = payment_repo
        self._ledger = ledger
        self._release_stock = release_stock_on_payment_failure

    def apply_provider_status(
        self,
        payment: Payment,
        provider_status: str | None,
        raw: dict[str, Any],
    ) -> ReconciliationOutcome:
        """Map *provider_status*, update the payment and cascade to the order."""
        previous = payment.status
        reported = to_payment_status(InvoiceStatus.parse(provider_status))
        changed = payment.apply_status(reported, raw)
        self._payment_repo.save(payment)

        order = self._load_order(payment)
        order_changed = self.sync_order(order, payment)

        return ReconciliationOutcome(
            payment=payment,
            order=order,
            previous_status=previous,
            reported_status=reported,
            payment_changed=changed,
            order_changed=order_changed,
        )

    def sync_order(self, order: Order, payment: Payment) -> bool:
        """Cascade the payment status to its order.

        Only an order still awaiting payment moves: SUCCESS marks it PAID,
        FAILED or EXPIRED cancels it (releasing its stock when enabled).
        Returns True if the order changed.
        """
        if order.status != OrderStatus.PENDING_PAYMENT:
            return False

        if payment.status == PaymentStatus.SUCCESS:
            order.mark_paid()
        elif payment.status in (PaymentStatus.FAILED, PaymentStatus.EXPIRED):
            if self._release_stock:
                InventoryReservationService(self._ledger).release_for_order(order)
            order.cancel_unpaid()
        else:
            return False

        self._order_repo.save(order)
        return True

    def _load_order(self, payment: Payment) -> Order:
        order = self._order_repo.get_by_id(payment.order_id)
        if order is None:
            raise EntityNotFoundError(
                f"Order #{payment.order_id} of payment #{payment.id} not found"
            )
        return order
