"""CLI commands for setup: schema, API users, the HTTP server."""

from __future__ import annotations

import click
import uvicorn

from storefront.application.add_user import AddUserHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.api.app import create_app
from storefront.infrastructure.bootstrap import Container


@click.command("init")
@click.pass_obj
def db_init(container: Container) -> None:
    """Create all tables (no-op for tables that exist)."""
    container.init_schema()
    click.echo("Database schema ready.")


@click.command("create")
@click.option("--name", required=True, help="Display name.")
@click.option("--email", required=True, help="Email, used as invoice payer contact.")
@click.option("--admin", "is_admin", is_flag=True, help="Allow changing order statuses over the API.")
@click.pass_obj
def user_create(container: Container, name: str, email: str, is_admin: bool) -> None:
    """Create an API user and print its bearer token."""
    handler = AddUserHandler(container.unit_of_work())

    try:
        user, token = handler.handle(name=name, email=email, is_admin=is_admin)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    role = " (admin)" if user.is_admin else ""
    click.echo(f"User #{user.id} '{user.name}' created{role}")
    click.echo(f"API token: {token}")


@click.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, type=int, show_default=True)
@click.pass_obj
def serve(container: Container, host: str, port: int) -> None:
    """Run the HTTP API."""
    uvicorn.run(create_app(container), host=host, port=port, log_config=None)
