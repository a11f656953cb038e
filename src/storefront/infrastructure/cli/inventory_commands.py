"""CLI commands for inventory management."""

from __future__ import annotations

import click

from storefront.application.set_inventory import SetInventoryHandler
from storefront.application.show_inventory import AvailableStockHandler, ShowInventoryHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import variant_repository


@click.command("set")
@click.option("--variant", "variant_id", required=True, help="Variant ID.")
@click.option("--total", "total_stock", required=True, type=int, help="Total units on hand.")
def inventory_set(variant_id: str, total_stock: int) -> None:
    """Set the total stock of a variant (never below what is reserved)."""
    handler = SetInventoryHandler(variant_repo=variant_repository())

    try:
        line = handler.handle(variant_id=variant_id, total_stock=total_stock)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Stock for {line.label} set to {line.total} ({line.available} available)")


@click.command("show")
def inventory_show() -> None:
    """Show current stock levels per variant."""
    handler = ShowInventoryHandler(variant_repo=variant_repository())
    lines = handler.handle()

    if not lines:
        click.echo("No variants found.")
        return

    click.echo(f"{'Variant':<32} {'Total':>8} {'Reserved':>10} {'Available':>10}")
    click.echo("-" * 62)
    for line in lines:
        click.echo(
            f"{line.label:<32} {line.total:>8} {line.reserved:>10} {line.available:>10}"
        )


@click.command("available")
@click.option("--variant", "variant_id", required=True, help="Variant ID.")
def inventory_available(variant_id: str) -> None:
    """Print the units of a variant that can still be sold."""
    handler = AvailableStockHandler(variant_repo=variant_repository())

    try:
        available = handler.handle(variant_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(str(available))
