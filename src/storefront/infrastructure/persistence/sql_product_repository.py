"""SQLAlchemy-backed implementation of ProductRepository."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.product_repository import ProductRepository
from storefront.infrastructure.persistence.orm import ProductRecord


class SqlProductRepository(ProductRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: int) -> Product | None:
        record = self._session.get(ProductRecord, product_id)
        return self._to_domain(record) if record is not None else None

    def get_by_name(self, name: str) -> Product | None:
        record = self._session.scalars(
            select(ProductRecord).where(func.lower(ProductRecord.name) == name.strip().lower())
        ).first()
        return self._to_domain(record) if record is not None else None

    def list_all(self) -> list[Product]:
        records = self._session.scalars(select(ProductRecord).order_by(ProductRecord.id))
        return [self._to_domain(r) for r in records]

    def save(self, product: Product) -> None:
        if product.id is None:
            record = ProductRecord(stock=product.stock)
            self._apply(record, product)
            self._session.add(record)
            self._session.flush()
            product.id = record.id
            return

        record = self._session.get(ProductRecord, product.id)
        if record is None:
            raise LookupError(f"Product #{product.id} is not stored")
        # Stock is left alone: it only moves through the inventory ledger.
        self._apply(record, product)

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _apply(record: ProductRecord, product: Product) -> None:
        record.name = product.name
        record.slug = product.slug
        record.description = product.description
        record.price = product.price.amount
        record.currency = product.price.currency

    @staticmethod
    def _to_domain(record: ProductRecord) -> Product:
        return Product(
            id=record.id,
            name=record.name,
            price=Money.of(record.price, record.currency),
            stock=record.stock,
            description=record.description,
            slug=record.slug,
        )
