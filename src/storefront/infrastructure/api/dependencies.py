"""FastAPI dependencies: the container, the authenticated caller, raw bodies."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, Header, Request

from storefront.application.authenticate import AuthenticateHandler
from storefront.domain.model.user import User
from storefront.infrastructure.bootstrap import Container


def get_container(request: Request) -> Container:
    return request.app.state.container


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def current_user(
    authorization: str | None = Header(default=None),
    container: Container = Depends(get_container),
) -> User:
    return AuthenticateHandler(container.unit_of_work()).handle(bearer_token(authorization))


async def raw_json_body(request: Request) -> Any:
    """The decoded request body, or None if it is not JSON.

    Unlike a ``Body()`` parameter this never rejects the request, so the
    endpoint decides what to check first.
    """
    try:
        return await request.json()
    except ValueError:
        return None
