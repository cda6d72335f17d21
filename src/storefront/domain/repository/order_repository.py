"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_for_user(
        self, order_id: int, user_id: int, for_update: bool = False
    ) -> Order | None:
        """Return the order only if it belongs to *user_id*.

        With *for_update*, the order row stays locked until the unit of
        work ends.
        """

    @abstractmethod
    def list_for_user(self, user_id: int) -> list[Order]:
        """Return the user's orders, newest first."""

    @abstractmethod
    def number_exists(self, order_number: str) -> bool:
        """True if an order with this order number was already stored."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new order with its items, or the header of an existing one."""
