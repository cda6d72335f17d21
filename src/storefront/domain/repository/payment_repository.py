"""Abstract repository for Payment aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.payment import Payment


class PaymentRepository(ABC):

    @abstractmethod
    def get_for_user(self, payment_id: int, user_id: int) -> Payment | None:
        """Return the payment only if its order belongs to *user_id*."""

    @abstractmethod
    def get_by_order_id(self, order_id: int) -> Payment | None:
        """Return the authoritative (first) payment of an order, or None."""

    @abstractmethod
    def get_by_transaction_id(self, transaction_id: str) -> Payment | None:
        """Return the payment for a provider invoice id, locked for update."""

    @abstractmethod
    def list_for_user(self, user_id: int) -> list[Payment]:
        """Return payments of the user's orders, newest first."""

    @abstractmethod
    def save(self, payment: Payment) -> None:
        """Persist a new or updated payment."""
