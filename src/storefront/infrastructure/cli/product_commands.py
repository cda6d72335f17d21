"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from storefront.application.add_product import AddProductHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import Container


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 50000.00).")
@click.option("--stock", default=0, type=int, show_default=True, help="Units on hand.")
@click.option("--description", default=None, help="Optional description.")
@click.pass_obj
def product_add(
    container: Container, name: str, price: str, stock: int, description: str | None
) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(container.unit_of_work(), currency=container.settings.currency)

    try:
        product = handler.handle(name=name, price=price, stock=stock, description=description)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{product.id} '{product.name}' added at {product.price} ({product.stock} in stock)")


@click.command("list")
@click.pass_obj
def product_list(container: Container) -> None:
    """List all products in the catalog."""
    with container.unit_of_work() as uow:
        products = uow.products.list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'Price':>16} {'Stock':>7}")
    click.echo("-" * 52)
    for p in products:
        click.echo(f"{p.id:<6} {p.name:<20} {str(p.price):>16} {p.stock:>7}")
