"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the API and CLI layers can catch them uniformly and translate them into
status codes or user-friendly messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Malformed or missing input."""

    def __init__(self, message: str, errors: dict[str, list[str]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class EntityNotFoundError(DomainException):
    """A requested entity does not exist (or is not visible to the caller)."""


class BusinessRuleViolation(DomainException):
    """A well-formed request that conflicts with current state."""


class InvalidStateTransition(BusinessRuleViolation):
    """The requested status change is not allowed from the current status."""


class InsufficientStock(BusinessRuleViolation):

    def __init__(self, product_name: str, available: int, requested: int) -> None:
        super().__init__(
            f"Product '{product_name}' only has {available} items in stock "
            f"(requested {requested})"
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested


class DuplicatePayment(BusinessRuleViolation):
    """The order already has a payment; carries the existing one."""

    def __init__(self, payment_id: int, status: str) -> None:
        super().__init__("Order already has payment")
        self.payment_id = payment_id
        self.status = status


class AlreadySettled(BusinessRuleViolation):
    """A successful payment cannot be cancelled."""


class Unauthenticated(DomainException):
    """No valid caller identity was presented."""


class Unauthorized(DomainException):
    """The caller presented credentials that do not grant access."""


class Forbidden(DomainException):
    """The caller is known but lacks the privilege for the operation."""


class GatewayError(DomainException):
    """The payment provider failed or could not be reached."""

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.error_code = error_code


class Conflict(DomainException):
    """A uniqueness constraint could not be satisfied."""


class PaymentSettledConcurrently(Conflict):
    """The stored payment was settled after this copy of it was read."""

    def __init__(self, payment_id: int) -> None:
        super().__init__(f"Payment #{payment_id} was settled by a concurrent update")
        self.payment_id = payment_id
