"""Application service: Add User use case.

Provisions a caller and issues the bearer token the API authenticates
with. There is no self-service registration.
"""

from __future__ import annotations

import secrets

from storefront.application.unit_of_work import UnitOfWork
from storefront.domain.exceptions import ValidationError
from storefront.domain.model.user import User


class AddUserHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, name: str, email: str, is_admin: bool = False) -> tuple[User, str]:
        """Create a user and return it together with its API token."""
        if not name or not name.strip():
            raise ValidationError("User name is required")
        if not email or "@" not in email:
            raise ValidationError(f"Invalid email address: {email!r}")

        token = secrets.token_urlsafe(32)
        with self._uow as uow:
            user = uow.users.add(
                name=name.strip(), email=email.strip(), api_token=token, is_admin=is_admin
            )
            uow.commit()
        return user, token
