"""SQLAlchemy-backed implementation of OrderRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.domain.exceptions import Conflict
from storefront.domain.model.order import Order, OrderItem, OrderStatus
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.repository.order_repository import OrderRepository
from storefront.infrastructure.persistence.orm import OrderItemRecord, OrderRecord, as_utc


class SqlOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        record = self._session.get(OrderRecord, order_id)
        return self._to_domain(record) if record is not None else None

    def get_for_user(
        self, order_id: int, user_id: int, for_update: bool = False
    ) -> Order | None:
        stmt = select(OrderRecord).where(
            OrderRecord.id == order_id, OrderRecord.user_id == user_id
        )
        if for_update:
            stmt = stmt.with_for_update()
        record = self._session.scalars(stmt).first()
        return self._to_domain(record) if record is not None else None

    def list_for_user(self, user_id: int) -> list[Order]:
        records = self._session.scalars(
            select(OrderRecord)
            .where(OrderRecord.user_id == user_id)
            .order_by(OrderRecord.created_at.desc(), OrderRecord.id.desc())
        )
        return [self._to_domain(r) for r in records]

    def number_exists(self, order_number: str) -> bool:
        found = self._session.scalar(
            select(OrderRecord.id).where(OrderRecord.order_number == order_number)
        )
        return found is not None

    def save(self, order: Order) -> None:
        if order.id is None:
            self._insert(order)
            return

        record = self._session.get(OrderRecord, order.id)
        if record is None:
            raise LookupError(f"Order #{order.id} is not stored")
        # Items and total are fixed at checkout; only the header moves.
        record.status = order.status.value
        record.payment_method = order.payment_method
        record.updated_at = order.updated_at

    # --- Mapping --------------------------------------------------------------

    def _insert(self, order: Order) -> None:
        total = order.total
        record = OrderRecord(
            user_id=order.user_id,
            order_number=order.order_number,
            shipping_address=order.shipping_address,
            total_amount=total.amount,
            currency=total.currency,
            status=order.status.value,
            payment_method=order.payment_method,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[
                OrderItemRecord(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity.value,
                    price=item.unit_price.amount,
                    subtotal=item.subtotal.amount,
                )
                for item in order.items
            ],
        )
        self._session.add(record)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise Conflict(f"Order number {order.order_number} is already taken") from exc

        order.id = record.id
        for item, item_record in zip(order.items, record.items):
            item.id = item_record.id

    @staticmethod
    def _to_domain(record: OrderRecord) -> Order:
        items = [
            OrderItem(
                id=i.id,
                product_id=i.product_id,
                product_name=i.product_name,
                quantity=Quantity(i.quantity),
                unit_price=Money.of(i.price, record.currency),
            )
            for i in record.items
        ]
        return Order(
            id=record.id,
            user_id=record.user_id,
            order_number=record.order_number,
            shipping_address=record.shipping_address,
            items=items,
            status=OrderStatus(record.status),
            payment_method=record.payment_method,
            created_at=as_utc(record.created_at),  # type: ignore[arg-type]
            updated_at=as_utc(record.updated_at),  # type: ignore[arg-type]
        )
