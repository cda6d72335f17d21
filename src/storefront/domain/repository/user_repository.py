"""Abstract repository for users (callers)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.user import User


class UserRepository(ABC):

    @abstractmethod
    def get_by_id(self, user_id: int) -> User | None:
        """Return a user by ID, or None."""

    @abstractmethod
    def get_by_token(self, api_token: str) -> User | None:
        """Return the user owning *api_token*, or None."""

    @abstractmethod
    def add(self, name: str, email: str, api_token: str, is_admin: bool = False) -> User:
        """Store a new user and return it with its ID."""
