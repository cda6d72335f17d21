"""SQLAlchemy-backed implementation of UserRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.domain.exceptions import Conflict
from storefront.domain.model.user import User
from storefront.domain.repository.user_repository import UserRepository
from storefront.infrastructure.persistence.orm import UserRecord


class SqlUserRepository(UserRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, user_id: int) -> User | None:
        record = self._session.get(UserRecord, user_id)
        return self._to_domain(record) if record is not None else None

    def get_by_token(self, api_token: str) -> User | None:
        record = self._session.scalars(
            select(UserRecord).where(UserRecord.api_token == api_token)
        ).first()
        return self._to_domain(record) if record is not None else None

    def add(self, name: str, email: str, api_token: str, is_admin: bool = False) -> User:
        record = UserRecord(name=name, email=email, api_token=api_token, is_admin=is_admin)
        self._session.add(record)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise Conflict(f"A user with email {email!r} already exists") from exc
        return self._to_domain(record)

    @staticmethod
    def _to_domain(record: UserRecord) -> User:
        return User(
            id=record.id, name=record.name, email=record.email, is_admin=record.is_admin
        )
