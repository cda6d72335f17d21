"""The response envelope: ``{success, message?, data?, errors?}``."""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(
    data: Any = None,
    message: str | None = None,
    status_code: int = 200,
    success: bool = True,
    errors: Any = None,
    debug: dict[str, Any] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"success": success}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if errors:
        body["errors"] = errors
    if debug is not None:
        body["debug"] = debug
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))
