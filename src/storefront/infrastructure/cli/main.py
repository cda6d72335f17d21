import click

from storefront.infrastructure.bootstrap import build_container
from storefront.infrastructure.cli.admin_commands import db_init, serve, user_create
from storefront.infrastructure.cli.order_commands import order_advance
from storefront.infrastructure.cli.product_commands import product_add, product_list
from storefront.infrastructure.logging_setup import configure_logging


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Storefront: checkout and payment backend"""
    if ctx.obj is None:
        ctx.obj = build_container()
    configure_logging(ctx.obj.settings)


@cli.group()
def db() -> None:
    """Manage the database schema."""


@cli.group()
def user() -> None:
    """Manage API users."""


@cli.group()
def product() -> None:
    """Manage the catalog."""


@cli.group()
def order() -> None:
    """Administer orders."""


# Register subcommands
db.add_command(db_init)
user.add_command(user_create)
product.add_command(product_add)
product.add_command(product_list)
order.add_command(order_advance)
cli.add_command(serve)
