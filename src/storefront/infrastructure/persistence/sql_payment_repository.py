"""SQLAlchemy-backed implementation of PaymentRepository."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.domain.exceptions import Conflict, PaymentSettledConcurrently
from storefront.domain.model.payment import Payment, PaymentStatus
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.payment_repository import PaymentRepository
from storefront.infrastructure.persistence.orm import OrderRecord, PaymentRecord, as_utc


class SqlPaymentRepository(PaymentRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- PaymentRepository interface ------------------------------------------

    def get_for_user(self, payment_id: int, user_id: int) -> Payment | None:
        record = self._session.scalars(
            select(PaymentRecord)
            .join(OrderRecord, OrderRecord.id == PaymentRecord.order_id)
            .where(PaymentRecord.id == payment_id, OrderRecord.user_id == user_id)
            .with_for_update(of=PaymentRecord)
        ).first()
        return self._to_domain(record) if record is not None else None

    def get_by_order_id(self, order_id: int) -> Payment | None:
        record = self._session.scalars(
            select(PaymentRecord)
            .where(PaymentRecord.order_id == order_id)
            .order_by(PaymentRecord.id)
        ).first()
        return self._to_domain(record) if record is not None else None

    def get_by_transaction_id(self, transaction_id: str) -> Payment | None:
        record = self._session.scalars(
            select(PaymentRecord)
            .where(PaymentRecord.pg_transaction_id == transaction_id)
            .with_for_update()
        ).first()
        return self._to_domain(record) if record is not None else None

    def list_for_user(self, user_id: int) -> list[Payment]:
        records = self._session.scalars(
            select(PaymentRecord)
            .join(OrderRecord, OrderRecord.id == PaymentRecord.order_id)
            .where(OrderRecord.user_id == user_id)
            .order_by(PaymentRecord.created_at.desc(), PaymentRecord.id.desc())
        )
        return [self._to_domain(r) for r in records]

    def save(self, payment: Payment) -> None:
        if payment.id is None:
            record = PaymentRecord(
                order_id=payment.order_id,
                pg_transaction_id=payment.transaction_id,
                external_id=payment.external_id,
                amount=payment.amount.amount,
                currency=payment.amount.currency,
                method=payment.method,
                created_at=payment.created_at,
                **self._values(payment),
            )
            self._session.add(record)
            try:
                self._session.flush()
            except IntegrityError as exc:
                raise Conflict(
                    f"Invoice {payment.transaction_id} is already linked to a payment"
                ) from exc
            payment.id = record.id
            return

        stmt = (
            update(PaymentRecord)
            .where(PaymentRecord.id == payment.id)
            .values(**self._values(payment))
            .execution_options(synchronize_session="fetch")
        )
        if payment.status != PaymentStatus.SUCCESS:
            # A settled row is never moved off SUCCESS, whatever this copy holds.
            stmt = stmt.where(PaymentRecord.status != PaymentStatus.SUCCESS.value)
        result = self._session.execute(stmt)
        if result.rowcount == 1:
            return

        stored = self._session.scalar(
            select(PaymentRecord.status).where(PaymentRecord.id == payment.id)
        )
        if stored is None:
            raise LookupError(f"Payment #{payment.id} is not stored")
        raise PaymentSettledConcurrently(payment.id)

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _values(payment: Payment) -> dict[str, Any]:
        return {
            "status": payment.status.value,
            "paid_at": payment.paid_at,
            "raw_response": payment.raw_response,
            "invoice_url": payment.invoice_url,
            "expires_at": payment.expires_at,
            "updated_at": payment.updated_at,
        }

    @staticmethod
    def _to_domain(record: PaymentRecord) -> Payment:
        return Payment(
            id=record.id,
            order_id=record.order_id,
            transaction_id=record.pg_transaction_id,
            external_id=record.external_id,
            amount=Money.of(record.amount, record.currency),
            method=record.method,
            status=PaymentStatus(record.status),
            paid_at=as_utc(record.paid_at),
            raw_response=dict(record.raw_response or {}),
            invoice_url=record.invoice_url,
            expires_at=as_utc(record.expires_at),
            created_at=as_utc(record.created_at),  # type: ignore[arg-type]
            updated_at=as_utc(record.updated_at),  # type: ignore[arg-type]
        )
