"""Port to the external invoicing provider.

The domain speaks in InvoiceRequest / Invoice; the adapter in the
infrastructure layer translates them to the provider's wire format.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class InvoiceItem:
    name: str
    quantity: int
    price: Decimal
    category: str = "product"


@dataclass(frozen=True)
class InvoiceRequest:
    external_id: str
    amount: Decimal
    currency: str
    payer_email: str
    description: str
    items: list[InvoiceItem]
    payment_methods: list[str]
    success_redirect_url: str
    failure_redirect_url: str
    invoice_duration: int = 86400


@dataclass(frozen=True)
class Invoice:
    """An invoice as the provider reports it.

    ``status`` is the provider's own string; translate it with
    ``InvoiceStatus.parse`` and ``to_payment_status``.
    """

    id: str
    external_id: str
    status: str
    amount: Decimal
    invoice_url: str | None = None
    expiry_date: datetime | None = None
    raw: dict[str, Any] = field(default_factory=dict)


class PaymentGateway(ABC):

    @abstractmethod
    def create_invoice(self, request: InvoiceRequest) -> Invoice:
        """Open an invoice at the provider. Raises GatewayError on failure."""

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Invoice:
        """Fetch the current state of an invoice."""

    @abstractmethod
    def expire_invoice(self, invoice_id: str) -> Invoice:
        """Ask the provider to expire an unpaid invoice."""
