"""Application service: Add Product use case (catalog bootstrap)."""

from __future__ import annotations

from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import ValidationError
from storefront.domain.model.product import Product
from storefront.domain.model.value_objects import Money


class AddProductHandler:

    def __init__(self, uow: UnitOfWork, currency: str) -> None:
        self._uow = uow
        self._currency = currency

    def handle(
        self,
        name: str,
        price: str,
        stock: int,
        description: str | None = None,
    ) -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if stock < 0:
            raise ValidationError("Stock cannot be negative")

        money = Money.of(price, self._currency)
        if money.amount <= 0:
            raise ValidationError("Product price must be greater than zero")

        with self._uow as uow:
            if uow.products.get_by_name(name) is not None:
                raise ValidationError(f"Product '{name}' already exists")

            product = Product(
                id=None,
                name=name.strip(),
                price=money,
                stock=stock,
                description=description,
                slug=_slugify(name),
            )
            uow.products.save(product)
            uow.commit()
        return product


def _slugify(name: str) -> str:
    return "-".join(name.lower().split())
