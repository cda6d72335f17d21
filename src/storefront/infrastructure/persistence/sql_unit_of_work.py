"""SQLAlchemy Unit of Work: one session, one transaction per ``with`` block."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import Conflict
from storefront.infrastructure.persistence.sql_inventory_ledger import SqlInventoryLedger
from storefront.infrastructure.persistence.sql_order_repository import SqlOrderRepository
from storefront.infrastructure.persistence.sql_payment_repository import SqlPaymentRepository
from storefront.infrastructure.persistence.sql_product_repository import SqlProductRepository
from storefront.infrastructure.persistence.sql_user_repository import SqlUserRepository


class SqlUnitOfWork(UnitOfWork):

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None

    def __enter__(self) -> UnitOfWork:
        self._session = self._session_factory()
        self.products = SqlProductRepository(self._session)
        self.orders = SqlOrderRepository(self._session)
        self.payments = SqlPaymentRepository(self._session)
        self.users = SqlUserRepository(self._session)
        self.inventory = SqlInventoryLedger(self._session)
        return super().__enter__()

    def __exit__(self, *args) -> None:
        try:
            super().__exit__(*args)
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None

    def commit(self) -> None:
        session = self._require_session()
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise Conflict("The change conflicts with data stored concurrently") from exc

    def rollback(self) -> None:
        if self._session is not None:
            self._session.rollback()

    def _require_session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work used outside of a 'with' block")
        return self._session
