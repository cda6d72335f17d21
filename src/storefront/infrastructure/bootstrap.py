"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.gateway.payment_gateway import PaymentGateway
from storefront.infrastructure.config import Settings
from storefront.infrastructure.gateway.xendit_gateway import XenditInvoiceGateway
from storefront.infrastructure.persistence.database import (
    build_engine,
    build_session_factory,
    init_schema,
)
from storefront.infrastructure.persistence.sql_unit_of_work import SqlUnitOfWork


class Container:
    """Long-lived collaborators shared by every request or command."""

    def __init__(
        self,
        settings: Settings,
        engine: Engine | None = None,
        gateway: PaymentGateway | None = None,
    ) -> None:
        self.settings = settings
        self.engine = engine or build_engine(settings.database_url, echo=False)
        self.session_factory: sessionmaker[Session] = build_session_factory(self.engine)
        self.gateway = gateway or XenditInvoiceGateway(
            secret_key=settings.xendit_secret_key,
            base_url=settings.xendit_base_url,
            timeout=settings.xendit_timeout_seconds,
        )

    def unit_of_work(self) -> UnitOfWork:
        return SqlUnitOfWork(self.session_factory)

    def init_schema(self) -> None:
        init_schema(self.engine)


def build_container(settings: Settings | None = None) -> Container:
    return Container(settings or Settings.from_env())
