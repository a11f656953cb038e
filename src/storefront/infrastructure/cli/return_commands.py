"""CLI commands for return requests."""

from __future__ import annotations

import click

from storefront.application.decide_return import DecideReturnHandler
from storefront.application.list_returns import ListReturnsHandler
from storefront.application.submit_return import SubmitReturnHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import (
    notifications,
    order_repository,
    return_repository,
    return_window_days,
    variant_repository,
)


@click.command("submit")
@click.option("--item", "order_item_id", required=True, help="Order item ID.")
@click.option("--reason", required=True, help="Why the item is going back.")
@click.option("--notes", default=None, help="Additional notes.")
@click.option("--customer", default=None, help="Submit on behalf of this customer.")
def return_submit(order_item_id: str, reason: str, notes: str | None, customer: str | None) -> None:
    """Request a return for a delivered item."""
    handler = SubmitReturnHandler(
        order_repo=order_repository(),
        return_repo=return_repository(),
        notifications=notifications(),
        return_window_days=return_window_days(),
    )

    try:
        request = handler.handle(order_item_id, reason, notes=notes, customer_id=customer)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Return {request.id} submitted for {request.product_name}.")


@click.command("decide")
@click.option("--id", "return_id", required=True, help="Return request ID.")
@click.option(
    "--decision",
    required=True,
    type=click.Choice(["approved", "rejected", "completed"], case_sensitive=False),
)
@click.option("--note", "admin_note", default=None, help="Note shown to the customer.")
def return_decide(return_id: str, decision: str, admin_note: str | None) -> None:
    """Approve, reject or complete a return."""
    handler = DecideReturnHandler(
        order_repo=order_repository(),
        return_repo=return_repository(),
        variant_repo=variant_repository(),
        notifications=notifications(),
    )

    try:
        dto = handler.handle(return_id, decision, admin_note=admin_note)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not dto.changed:
        click.echo(f"Return {return_id} is already {dto.new_status}.")
        return
    suffix = " (stock released)" if dto.stock_released else ""
    click.echo(f"Return {return_id}: {dto.old_status} -> {dto.new_status}{suffix}")


@click.command("list")
@click.option("--status", default=None, help="Only returns in this status.")
def return_list(status: str | None) -> None:
    """List return requests, newest first."""
    returns = ListReturnsHandler(return_repo=return_repository()).handle(status)

    if not returns:
        click.echo("No return requests found.")
        return

    click.echo(f"{'ID':<34} {'Order':>6} {'Product':<24} {'Status':<10}")
    click.echo("-" * 78)
    for r in returns:
        click.echo(f"{r.id:<34} {r.order_id:>6} {r.product_name:<24} {r.status:<10}")
