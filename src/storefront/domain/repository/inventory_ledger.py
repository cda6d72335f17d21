"""Inventory Ledger: atomic stock movements on the product counter.

Implementations must perform ``reserve`` as a single check-and-decrement
step per product row, never as a read followed by a write, and must run
on the same transaction as the order mutation that depends on it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class InventoryLedger(ABC):

    @abstractmethod
    def reserve(self, product_id: int, quantity: int) -> None:
        """Decrement stock by *quantity* if at least that much is available.

        Raises InsufficientStock otherwise, and EntityNotFoundError for an
        unknown product.
        """

    @abstractmethod
    def release(self, product_id: int, quantity: int) -> None:
        """Increment stock by *quantity* unconditionally."""
