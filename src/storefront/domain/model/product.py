"""Product aggregate.

Products live independently of orders. Their stock counter is the only
field the checkout flow touches, and only through the inventory ledger.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.exceptions import InsufficientStock, ValidationError
from storefront.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog.

    Invariant: ``stock`` is never negative. ``withdraw`` fails rather than
    letting the counter drop below zero.

    ``withdraw`` and ``restock`` apply the ledger rules to a product held in
    memory. Persisted stock never moves through them: the SQL inventory
    ledger applies the same rules in one conditional UPDATE and is the
    authoritative check, with the ``stock >= 0`` table constraint behind it.
    """

    id: int | None
    name: str
    price: Money
    stock: int = 0
    description: str | None = None
    slug: str | None = None

    def withdraw(self, quantity: int) -> None:
        """Take *quantity* units out of stock."""
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        if quantity > self.stock:
            raise InsufficientStock(self.name, self.stock, quantity)
        self.stock -= quantity

    def restock(self, quantity: int) -> None:
        """Put *quantity* units back (e.g. on order cancellation)."""
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")
        self.stock += quantity
