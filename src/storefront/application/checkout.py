"""Application service: Checkout use case.

Turns a cart-like list of (product, quantity) into a persisted order in
PENDING_PAYMENT with its stock reserved. Validation, reservation and
persistence run in one unit of work: if any step fails, no stock moves
and no order is stored.
"""

from __future__ import annotations

from typing import Callable

import structlog

from storefront.application.dto import OrderDTO, OrderItemSpec, order_to_dto
from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import Conflict, InsufficientStock, ValidationError
from storefront.domain.model.order import Order, OrderItem, generate_order_number
from storefront.domain.model.user import User
from storefront.domain.model.value_objects import Quantity
from storefront.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)

logger = structlog.get_logger(component="checkout")

MAX_ORDER_NUMBER_ATTEMPTS = 5


class CheckoutHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        order_number_factory: Callable[[], str] = generate_order_number,
    ) -> None:
        self._uow = uow
        self._order_number_factory = order_number_factory

    def handle(
        self,
        user: User,
        shipping_address: str,
        item_specs: list[OrderItemSpec],
    ) -> OrderDTO:
        """Check out *item_specs* for *user*.

        Steps:
        1. Validate quantities and resolve every product (snapshot name/price).
        2. Build the order (validates address and non-empty items).
        3. Reserve stock for every line through the inventory ledger.
        4. Persist order + items and commit everything at once.
        """
        quantities = self._merge_quantities(item_specs)

        with self._uow as uow:
            items = self._snapshot_items(uow, quantities)
            order = Order.create(
                user_id=user.id,
                order_number=self._unique_order_number(uow),
                shipping_address=shipping_address,
                items=items,
            )

            try:
                InventoryReservationService(uow.inventory).reserve_lines(quantities)
            except InsufficientStock as exc:
                logger.info(
                    "checkout_rejected_insufficient_stock",
                    user_id=user.id,
                    product=exc.product_name,
                    available=exc.available,
                    requested=exc.requested,
                )
                raise

            uow.orders.save(order)
            uow.commit()

        logger.info(
            "checkout_completed",
            user_id=user.id,
            order_id=order.id,
            order_number=order.order_number,
            total=str(order.total.amount),
        )
        return order_to_dto(order)

    # --- Steps ----------------------------------------------------------------

    @staticmethod
    def _merge_quantities(item_specs: list[OrderItemSpec]) -> dict[int, int]:
        """Validate quantities and fold repeated products into one line."""
        quantities: dict[int, int] = {}
        for index, spec in enumerate(item_specs):
            try:
                qty = Quantity(spec.quantity)
            except ValidationError as exc:
                raise ValidationError(
                    str(exc), {f"items.{index}.quantity": [str(exc)]}
                ) from exc
            quantities[spec.product_id] = quantities.get(spec.product_id, 0) + qty.value
        return quantities

    @staticmethod
    def _snapshot_items(uow: UnitOfWork, quantities: dict[int, int]) -> list[OrderItem]:
        items: list[OrderItem] = []
        for product_id, qty in quantities.items():
            product = uow.products.get_by_id(product_id)
            if product is None:
                raise ValidationError(
                    f"Product #{product_id} does not exist",
                    {"items.product_id": [f"The selected product {product_id} is invalid."]},
                )
            items.append(
                OrderItem(
                    product_id=product_id,
                    product_name=product.name,
                    quantity=Quantity(qty),
                    unit_price=product.price,  # <-- price snapshot
                )
            )
        return items

    def _unique_order_number(self, uow: UnitOfWork) -> str:
        for _ in range(MAX_ORDER_NUMBER_ATTEMPTS):
            candidate = self._order_number_factory()
            if not uow.orders.number_exists(candidate):
                return candidate
        raise Conflict(
            f"Could not generate a unique order number after "
            f"{MAX_ORDER_NUMBER_ATTEMPTS} attempts"
        )
