"""The authenticated caller.

Orders and payments are always scoped to a user; handlers receive the
user explicitly rather than reading it from ambient request state.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    id: int
    name: str
    email: str
    is_admin: bool = False
