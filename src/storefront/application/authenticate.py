"""Application service: resolve a bearer token to the calling user."""

from __future__ import annotations

from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import Unauthenticated
from storefront.domain.model.user import User


class AuthenticateHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, api_token: str | None) -> User:
        if not api_token:
            raise Unauthenticated("Unauthenticated. Please login first.")
        with self._uow as uow:
            user = uow.users.get_by_token(api_token)
        if user is None:
            raise Unauthenticated("Unauthenticated. Please login first.")
        return user
