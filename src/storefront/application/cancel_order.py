"""Application service: Cancel Order use case.

Only an order still awaiting payment can be cancelled by its owner.
Every line's stock is released in the same unit of work as the status
change, so stock returns to its pre-order value or nothing changes.
"""

from __future__ import annotations

import structlog

from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.user import User
from storefront.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)

logger = structlog.get_logger(component="cancel_order")


class CancelOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user: User, order_id: int) -> None:
        with self._uow as uow:
            order = uow.orders.get_for_user(order_id, user.id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            # Transition first: a non-pending order fails here before any
            # stock is touched.
            order.cancel()
            InventoryReservationService(uow.inventory).release_for_order(order)

            uow.orders.save(order)
            uow.commit()

        logger.info("order_cancelled", user_id=user.id, order_id=order_id)
