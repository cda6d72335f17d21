"""Payment aggregate and the provider-status translation.

A Payment records one invoice opened at the payment provider for an
order. It is never deleted; cancellation is the EXPIRED status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from storefront.domain.exceptions import AlreadySettled, ValidationError
from storefront.domain.model.order import utcnow
from storefront.domain.model.value_objects import Money


class PaymentStatus(Enum):
    CREATED = "CREATED"
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"


class PaymentMethod(Enum):
    CREDIT_CARD = "CREDIT_CARD"
    BCA = "BCA"
    BNI = "BNI"
    MANDIRI = "MANDIRI"
    PERMATA = "PERMATA"
    BRI = "BRI"
    OVO = "OVO"
    DANA = "DANA"
    LINKAJA = "LINKAJA"
    QRIS = "QRIS"

    @staticmethod
    def parse(raw: str) -> PaymentMethod:
        try:
            return PaymentMethod(raw)
        except ValueError:
            allowed = ", ".join(m.value for m in PaymentMethod)
            raise ValidationError(
                f"Unsupported payment method {raw!r}",
                {"payment_method": [f"The payment method must be one of: {allowed}."]},
            ) from None


class InvoiceStatus(Enum):
    """Invoice statuses reported by the provider.

    ``UNKNOWN`` stands for any value the provider may add in the future.
    """

    PENDING = "PENDING"
    PAID = "PAID"
    SETTLED = "SETTLED"
    EXPIRED = "EXPIRED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"

    @staticmethod
    def parse(raw: str | None) -> InvoiceStatus:
        try:
            return InvoiceStatus((raw or "").upper())
        except ValueError:
            return InvoiceStatus.UNKNOWN


def to_payment_status(status: InvoiceStatus) -> PaymentStatus:
    """Translate a provider invoice status into the local payment status.

    PAID and SETTLED both mean the money was captured. Unrecognised
    statuses fall back to PENDING instead of failing.
    """
    if status in (InvoiceStatus.PAID, InvoiceStatus.SETTLED):
        return PaymentStatus.SUCCESS
    if status is InvoiceStatus.EXPIRED:
        return PaymentStatus.EXPIRED
    if status is InvoiceStatus.FAILED:
        return PaymentStatus.FAILED
    # PENDING and UNKNOWN
    return PaymentStatus.PENDING


@dataclass
class Payment:
    id: int | None
    order_id: int
    transaction_id: str
    external_id: str
    amount: Money
    method: str
    status: PaymentStatus = PaymentStatus.CREATED
    paid_at: datetime | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)
    invoice_url: str | None = None
    expires_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_settled(self) -> bool:
        return self.status == PaymentStatus.SUCCESS

    def apply_status(
        self,
        status: PaymentStatus,
        raw: dict[str, Any],
        now: datetime | None = None,
    ) -> bool:
        """Record a status reported by the provider.

        Returns True when the stored status changed. Once SUCCESS, any
        other status is ignored so a stale poll cannot undo a confirmed
        payment; a repeated SUCCESS keeps the original ``paid_at``.
        """
        if self.is_settled and status != PaymentStatus.SUCCESS:
            return False

        now = now or utcnow()
        changed = status != self.status
        if status == PaymentStatus.SUCCESS and self.paid_at is None:
            self.paid_at = now
        self.status = status
        self.raw_response = raw
        self.updated_at = now
        return changed

    def expire(self) -> None:
        """User-initiated cancellation of a payment that has not settled."""
        if self.is_settled:
            raise AlreadySettled("Cannot cancel successful payment")
        self.status = PaymentStatus.EXPIRED
        self.updated_at = utcnow()
