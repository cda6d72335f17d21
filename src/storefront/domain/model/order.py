"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items. Line items and
the total are fixed at checkout; afterwards only the status (and the
chosen payment method) may change, and only through the transition
methods below.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from storefront.domain.exceptions import InvalidStateTransition, ValidationError
from storefront.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAID = "PAID"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


# Administrative forward steps after payment. PENDING_PAYMENT -> PAID is
# absent: only payment reconciliation may take that step.
_FORWARD_STEPS = {
    OrderStatus.PAID: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}

MAX_SHIPPING_ADDRESS_LENGTH = 500
ORDER_NUMBER_PREFIX = "ORD"
_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_number(today: date | None = None) -> str:
    """Return ``ORD-YYYYMMDD-XXXXXX`` with a random uppercase suffix."""
    today = today or utcnow().date()
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"{ORDER_NUMBER_PREFIX}-{today:%Y%m%d}-{suffix}"


@dataclass
class OrderItem:
    """A line item with the product name and unit price snapshotted at
    checkout, so later catalog edits never alter historical orders."""

    product_id: int
    product_name: str
    quantity: Quantity
    unit_price: Money
    id: int | None = None

    @property
    def subtotal(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders; it enforces all
    business rules. The plain ``__init__`` lets the repository
    reconstitute persisted orders without re-validating.
    """

    id: int | None
    user_id: int
    order_number: str
    shipping_address: str
    items: list[OrderItem]
    status: OrderStatus = OrderStatus.PENDING_PAYMENT
    payment_method: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        user_id: int,
        order_number: str,
        shipping_address: str,
        items: list[OrderItem],
    ) -> Order:
        """Create a new order in PENDING_PAYMENT, enforcing all invariants."""
        address = (shipping_address or "").strip()
        if not address:
            raise ValidationError(
                "Shipping address is required",
                {"shipping_address": ["The shipping address field is required."]},
            )
        if len(address) > MAX_SHIPPING_ADDRESS_LENGTH:
            raise ValidationError(
                f"Shipping address exceeds {MAX_SHIPPING_ADDRESS_LENGTH} characters",
                {"shipping_address": ["The shipping address is too long."]},
            )
        if not items:
            raise ValidationError(
                "Order must contain at least one item",
                {"items": ["The items field must have at least 1 item."]},
            )

        return Order(
            id=None,
            user_id=user_id,
            order_number=order_number,
            shipping_address=address,
            items=list(items),
        )

    # --- State transitions ----------------------------------------------------

    def cancel(self) -> None:
        """User-initiated PENDING_PAYMENT -> CANCELLED.

        Stock release for every line must be done by the caller in the
        same unit of work.
        """
        if self.status != OrderStatus.PENDING_PAYMENT:
            raise InvalidStateTransition(
                "Cannot cancel order that is already paid or being processed "
                f"(status is {self.status.value})"
            )
        self._move_to(OrderStatus.CANCELLED)

    def cancel_unpaid(self) -> None:
        """System-initiated cancel after the payment failed or expired."""
        if self.status != OrderStatus.PENDING_PAYMENT:
            raise InvalidStateTransition(
                f"Cannot cancel order for failed payment in {self.status.value} status"
            )
        self._move_to(OrderStatus.CANCELLED)

    def mark_paid(self) -> None:
        """PENDING_PAYMENT -> PAID, driven by a successful payment."""
        if self.status != OrderStatus.PENDING_PAYMENT:
            raise InvalidStateTransition(
                f"Cannot mark order as paid in {self.status.value} status"
            )
        self._move_to(OrderStatus.PAID)

    def advance_to(self, target: OrderStatus) -> None:
        """Administrative forward step (PAID -> PROCESSING -> SHIPPED -> DELIVERED)."""
        if self.status.is_terminal:
            raise InvalidStateTransition(
                f"Order {self.order_number} is already {self.status.value}"
            )
        expected = _FORWARD_STEPS.get(self.status)
        if expected is None or target != expected:
            raise InvalidStateTransition(
                f"Cannot move order from {self.status.value} to {target.value}"
            )
        self._move_to(target)

    def choose_payment_method(self, method: str) -> None:
        self.payment_method = method
        self.updated_at = utcnow()

    # --- Computed properties --------------------------------------------------

    @property
    def total(self) -> Money:
        if not self.items:
            return Money.zero()
        result = Money.zero(self.items[0].unit_price.currency)
        for item in self.items:
            result = result + item.subtotal
        return result

    # --- Internal helpers -----------------------------------------------------

    def _move_to(self, status: OrderStatus) -> None:
        self.status = status
        self.updated_at = utcnow()
