"""CLI commands for administrative order transitions."""

from __future__ import annotations

import click

from storefront.application.advance_order import AdvanceOrderHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.model.order import OrderStatus
from storefront.infrastructure.bootstrap import Container


@click.command("advance")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--status",
    required=True,
    type=click.Choice([s.value for s in OrderStatus]),
    help="Next status (one forward step from the current one).",
)
@click.pass_obj
def order_advance(container: Container, order_id: int, status: str) -> None:
    """Move a paid order to its next fulfilment status."""
    handler = AdvanceOrderHandler(container.unit_of_work())

    try:
        # Console operator, not an API caller.
        dto = handler.handle(None, order_id, status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} is now {dto.status}")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>14} {'Subtotal':>14}")
    click.echo(f"  {'-'*56}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.price:>14} {item.subtotal:>14}"
        )
    click.echo(f"  {'-'*56}")
    click.echo(f"  {'Order Total':<27} {dto.total_amount:>29}")
