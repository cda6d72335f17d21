"""Unit of Work: one atomic transaction spanning several repositories.

Every multi-step mutation runs inside ``with uow:``. Nothing is persisted
unless the handler calls ``commit()``; leaving the block (normally or via
an exception) rolls back whatever was not committed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.repository.inventory_ledger import InventoryLedger
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.payment_repository import PaymentRepository
from storefront.domain.repository.product_repository import ProductRepository
from storefront.domain.repository.user_repository import UserRepository


class UnitOfWork(ABC):

    products: ProductRepository
    orders: OrderRepository
    payments: PaymentRepository
    users: UserRepository
    inventory: InventoryLedger

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, *args) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every change since the block started durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes. A no-op after ``commit()``."""
