"""CLI commands for coupons."""

from __future__ import annotations

import click

from storefront.application.list_coupons import ListCouponsHandler
from storefront.application.preview_coupon import PreviewCouponHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import coupon_repository


@click.command("preview")
@click.option("--code", required=True, help="Coupon code.")
@click.option("--subtotal", required=True, help="Cart subtotal, e.g. 2500.")
def coupon_preview(code: str, subtotal: str) -> None:
    """Show what a coupon would take off a subtotal."""
    handler = PreviewCouponHandler(coupon_repo=coupon_repository())

    try:
        dto = handler.handle(code, subtotal)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{dto.code}: -{dto.discount_amount} (you pay {dto.subtotal_after_discount})")


@click.command("list")
def coupon_list() -> None:
    """List coupons and whether they can be used right now."""
    coupons = ListCouponsHandler(coupon_repo=coupon_repository()).handle()

    if not coupons:
        click.echo("No coupons found.")
        return

    click.echo(f"{'Code':<14} {'Discount':<26} {'Min order':>12} {'Used':>8}  State")
    click.echo("-" * 74)
    for c in coupons:
        click.echo(f"{c.code:<14} {c.discount:<26} {c.min_order_value or '-':>12} {c.used:>8}  {c.state}")
