"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from storefront.infrastructure.api.errors import register_exception_handlers
from storefront.infrastructure.api.responses import envelope
from storefront.infrastructure.api.routes import orders, payments, webhooks
from storefront.infrastructure.bootstrap import Container, build_container
from storefront.infrastructure.logging_setup import configure_logging


def create_app(container: Container | None = None) -> FastAPI:
    container = container or build_container()
    configure_logging(container.settings)

    app = FastAPI(title="Storefront API", debug=False)
    app.state.container = container

    register_exception_handlers(app, debug=container.settings.debug)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(webhooks.router)

    @app.get("/health")
    def health() -> JSONResponse:
        return envelope({"status": "ok"})

    return app
