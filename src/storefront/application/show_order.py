"""Application service: Show / List Orders use cases (queries)."""

from __future__ import annotations

from storefront.application.dto import OrderDTO, order_to_dto
from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.user import User


class ShowOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user: User, order_id: int) -> OrderDTO:
        with self._uow as uow:
            order = uow.orders.get_for_user(order_id, user.id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            return order_to_dto(order, uow.payments.get_by_order_id(order_id))


class ListOrdersHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, user: User) -> list[OrderDTO]:
        with self._uow as uow:
            return [
                order_to_dto(order, uow.payments.get_by_order_id(order.id))  # type: ignore[arg-type]
                for order in uow.orders.list_for_user(user.id)
            ]
