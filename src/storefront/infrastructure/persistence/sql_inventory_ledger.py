"""SQLAlchemy-backed Inventory Ledger.

``reserve`` is one conditional UPDATE, so the stock check and the
decrement happen atomically under the row lock the database takes for the
update. Two concurrent checkouts can never both pass the check.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStock,
    ValidationError,
)
from storefront.domain.repository.inventory_ledger import InventoryLedger
from storefront.infrastructure.persistence.orm import ProductRecord


class SqlInventoryLedger(InventoryLedger):

    def __init__(self, session: Session) -> None:
        self._session = session

    def reserve(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")

        result = self._session.execute(
            update(ProductRecord)
            .where(ProductRecord.id == product_id, ProductRecord.stock >= quantity)
            .values(stock=ProductRecord.stock - quantity)
        )
        if result.rowcount == 1:
            return

        row = self._session.execute(
            select(ProductRecord.name, ProductRecord.stock).where(ProductRecord.id == product_id)
        ).one_or_none()
        if row is None:
            raise EntityNotFoundError(f"Product #{product_id} not found")
        raise InsufficientStock(row.name, row.stock, quantity)

    def release(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")

        result = self._session.execute(
            update(ProductRecord)
            .where(ProductRecord.id == product_id)
            .values(stock=ProductRecord.stock + quantity)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError(f"Product #{product_id} not found")
