"""Translate exceptions into the JSON error envelope.

Outside debug mode the envelope never carries exception internals; with
``debug`` enabled it appends the exception class, origin and a short
trace.
"""

from __future__ import annotations

import traceback
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.domain.exceptions import (
    BusinessRuleViolation,
    Conflict,
    DomainException,
    DuplicatePayment,
    EntityNotFoundError,
    Forbidden,
    GatewayError,
    Unauthenticated,
    Unauthorized,
    ValidationError,
)
from storefront.infrastructure.api.responses import envelope

logger = structlog.get_logger(component="api")

_STATUS_BY_EXCEPTION: list[tuple[type[DomainException], int]] = [
    (ValidationError, 422),
    (EntityNotFoundError, 404),
    (BusinessRuleViolation, 400),
    (Unauthenticated, 401),
    (Unauthorized, 401),
    (Forbidden, 403),
    (Conflict, 409),
    (GatewayError, 500),
]


def status_for(exc: DomainException) -> int:
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return 500


def register_exception_handlers(app: FastAPI, debug: bool) -> None:

    def _debug_info(exc: BaseException) -> dict[str, Any] | None:
        if not debug:
            return None
        frames = traceback.extract_tb(exc.__traceback__)
        origin = frames[-1] if frames else None
        return {
            "exception": type(exc).__name__,
            "file": origin.filename if origin else None,
            "line": origin.lineno if origin else None,
            "trace": traceback.format_tb(exc.__traceback__)[-10:],
        }

    @app.exception_handler(DomainException)
    def handle_domain_exception(request: Request, exc: DomainException) -> JSONResponse:
        status_code = status_for(exc)
        data = None
        errors = None
        message = str(exc)

        if isinstance(exc, DuplicatePayment):
            data = {"payment_id": exc.payment_id, "status": exc.status}
        elif isinstance(exc, ValidationError):
            errors = exc.errors
        elif isinstance(exc, GatewayError):
            logger.error(
                "gateway_failure",
                path=request.url.path,
                retryable=exc.retryable,
                error_code=exc.error_code,
                error=message,
            )
            message = "Payment provider error" if not debug else message

        return envelope(
            data=data,
            message=message,
            status_code=status_code,
            success=False,
            errors=errors,
            debug=_debug_info(exc),
        )

    @app.exception_handler(RequestValidationError)
    def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            errors.setdefault(field or "body", []).append(error.get("msg", "Invalid value"))
        return envelope(message="Validation Error", status_code=422, success=False, errors=errors)

    @app.exception_handler(StarletteHTTPException)
    def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
        if exc.status_code == 404 and message == "Not Found":
            message = "Endpoint not found"
        elif exc.status_code == 405:
            message = "Method not allowed"
        return envelope(message=message, status_code=exc.status_code, success=False)

    @app.exception_handler(Exception)
    def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_error", path=request.url.path, method=request.method, exc_info=exc
        )
        if debug:
            message = str(exc) or "Internal Server Error"
        else:
            message = "An error occurred. Please try again later."
        return envelope(message=message, status_code=500, success=False, debug=_debug_info(exc))
