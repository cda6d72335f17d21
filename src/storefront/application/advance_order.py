"""Application service: Advance Order use case (administrative).

Moves a paid order one legal step forward:
PAID -> PROCESSING -> SHIPPED -> DELIVERED. Not scoped to the order's
owner; the caller must be an administrator. ``actor=None`` is the
operator console (the CLI), which runs with the database credentials.
"""

from __future__ import annotations

import structlog

from storefront.application.dto import OrderDTO, order_to_dto
from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import EntityNotFoundError, Forbidden, ValidationError
from storefront.domain.model.order import OrderStatus
from storefront.domain.model.user import User

logger = structlog.get_logger(component="advance_order")


class AdvanceOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, actor: User | None, order_id: int, target_status: str) -> OrderDTO:
        if actor is not None and not actor.is_admin:
            logger.warning("order_advance_denied", user_id=actor.id, order_id=order_id)
            raise Forbidden("Only administrators can change the order status")

        try:
            target = OrderStatus(target_status)
        except ValueError:
            allowed = ", ".join(s.value for s in OrderStatus)
            raise ValidationError(
                f"Unknown order status {target_status!r}",
                {"status": [f"The status must be one of: {allowed}."]},
            ) from None

        with self._uow as uow:
            order = uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            previous = order.status
            order.advance_to(target)
            uow.orders.save(order)
            uow.commit()

            logger.info(
                "order_advanced",
                order_id=order_id,
                actor_id=actor.id if actor is not None else None,
                from_status=previous.value,
                to_status=target.value,
            )
            return order_to_dto(order, uow.payments.get_by_order_id(order_id))
