"""Domain service: Inventory Reservation.

This service coordinates the cross-aggregate operation of reserving
stock for checkout lines and releasing it when an order is cancelled.
It lives in the domain layer because the logic is a core business rule,
not just orchestration.

It performs no rollback of its own: a reservation that fails half-way
leaves earlier reservations in place, and the enclosing unit of work is
expected to roll all of them back together.
"""

from __future__ import annotations

from storefront.domain.model.order import Order
from storefront.domain.repository.inventory_ledger import InventoryLedger


class InventoryReservationService:

    def __init__(self, ledger: InventoryLedger) -> None:
        self._ledger = ledger

    def reserve_lines(self, quantities: dict[int, int]) -> None:
        """Reserve ``quantity`` of each ``product_id``, in ascending ID order.

        A fixed ordering keeps two concurrent checkouts from locking the
        same product rows in opposite order.
        """
        for product_id in sorted(quantities):
            self._ledger.reserve(product_id, quantities[product_id])

    def release_for_order(self, order: Order) -> None:
        """Put back the stock of every line item of *order*."""
        for line in order.items:
            self._ledger.release(line.product_id, line.quantity.value)
