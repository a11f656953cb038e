"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from storefront.application.cancel_order import CancelOrderHandler
from storefront.application.change_fulfillment_status import ChangeFulfillmentStatusHandler
from storefront.application.change_payment_status import ChangePaymentStatusHandler
from storefront.application.dto import CartLine, CustomerRef, OrderDTO
from storefront.application.order_status_history import OrderStatusHistoryHandler
from storefront.application.place_order import PlaceOrderHandler
from storefront.application.show_order import ShowOrderHandler
from storefront.application.update_shipping_details import UpdateShippingDetailsHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import (
    address_repository,
    coupon_repository,
    notifications,
    offer_repository,
    order_repository,
    product_repository,
    shipping_policy,
    variant_repository,
)


def _parse_items(raw: str) -> list[CartLine]:
    """Parse 'tee/tee-red-m:2,mug:1' into CartLine list."""
    lines: list[CartLine] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'Product[/Variant]:Quantity'."
            )
        target, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for '{target}'."
            )
        product_id, _, variant_id = target.strip().partition("/")
        lines.append(CartLine(product_id=product_id, quantity=qty, variant_id=variant_id or None))
    return lines


@click.command("place")
@click.option("--customer", required=True, help="Customer ID.")
@click.option("--email", default="", help="Customer e-mail for status updates.")
@click.option("--address", "address_id", default=None, help="Saved address ID.")
@click.option("--items", required=True, help="Items as 'Product[/Variant]:Qty,...'.")
@click.option("--payment", "payment_method", default="cod", show_default=True, help="Payment method.")
@click.option("--coupon", "coupon_code", default=None, help="Coupon code.")
@click.option("--idempotency-key", default=None, help="Key that makes retries safe.")
def order_place(
    customer: str,
    email: str,
    address_id: str | None,
    items: str,
    payment_method: str,
    coupon_code: str | None,
    idempotency_key: str | None,
) -> None:
    """Place an order (reserves stock, applies offers and coupon)."""
    lines = _parse_items(items)

    handler = PlaceOrderHandler(
        order_repo=order_repository(),
        product_repo=product_repository(),
        variant_repo=variant_repository(),
        offer_repo=offer_repository(),
        coupon_repo=coupon_repository(),
        address_repo=address_repository(),
        notifications=notifications(),
        shipping_policy=shipping_policy(),
    )

    try:
        result = handler.handle(
            customer=CustomerRef(id=customer, email=email),
            address_id=address_id,
            items=lines,
            payment_method=payment_method,
            coupon_code=coupon_code,
            idempotency_key=idempotency_key,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    verb = "already placed" if result.replayed else "placed"
    click.echo(f"Order {result.order_number} (#{result.order_id}) {verb}")
    click.echo(f"  {'Subtotal':<20} {result.subtotal:>12}")
    click.echo(f"  {'Coupon':<20} {'-' + result.coupon_discount:>12}")
    click.echo(f"  {'Shipping':<20} {result.shipping_cost:>12}")
    click.echo(f"  {'-'*33}")
    click.echo(f"  {'Total':<20} {result.total:>12}")


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number} (#{dto.id})  status={dto.status}")
    click.echo(f"Fulfillment: {dto.fulfillment_status}   Payment: {dto.payment_status} ({dto.payment_method})")
    click.echo(f"Customer: {dto.customer_id}")
    click.echo(f"Ship to:  {dto.ship_to}")
    if dto.tracking_id:
        click.echo(f"Tracking: {dto.shipping_partner or dto.delivery_mode} {dto.tracking_id}")
    if dto.cancellation_reason:
        click.echo(f"Cancelled: {dto.cancellation_reason}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo()

    click.echo(f"  {'Product':<24} {'Qty':>5} {'MRP':>12} {'Price':>12} {'Total':>12}")
    click.echo(f"  {'-'*69}")
    for item in dto.items:
        name = item.product_name
        if item.color or item.size:
            name = f"{name} ({'/'.join(p for p in (item.color, item.size) if p)})"
        click.echo(
            f"  {name:<24} {item.quantity:>5} {item.original_price:>12} {item.price:>12} {item.subtotal:>12}"
        )
    click.echo(f"  {'-'*69}")
    click.echo(f"  {'Subtotal':<43} {dto.subtotal:>26}")
    if dto.coupon_code:
        click.echo(f"  {'Coupon ' + dto.coupon_code:<43} {'-' + dto.coupon_discount:>26}")
    click.echo(f"  {'Shipping':<43} {dto.shipping_cost:>26}")
    click.echo(f"  {'Order Total':<43} {dto.total:>26}")


@click.command("show")
@click.option("--id", "order_id", type=int, default=None, help="Order ID to display.")
@click.option("--number", "order_number", default=None, help="Order number to display.")
def order_show(order_id: int | None, order_number: str | None) -> None:
    """Show details of an existing order."""
    if order_id is None and not order_number:
        raise click.UsageError("Pass --id or --number")

    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_id) if order_id is not None else handler.by_number(order_number)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--to", "new_status", required=True, help="Target fulfillment status.")
@click.option("--notes", default=None, help="Note for the status history.")
@click.option("--expect", "expected_status", default=None, help="Refuse unless currently in this status.")
def order_status(order_id: int, new_status: str, notes: str | None, expected_status: str | None) -> None:
    """Move an order along its fulfillment lifecycle."""
    handler = ChangeFulfillmentStatusHandler(
        order_repo=order_repository(),
        variant_repo=variant_repository(),
        notifications=notifications(),
    )

    try:
        change = handler.handle(order_id, new_status, notes=notes, expected_status=expected_status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {change.order_number}: {change.old_status} -> {change.new_status}")


@click.command("payment")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--to", "new_status", required=True, help="Target payment status.")
@click.option("--notes", default=None, help="Note for the status history.")
def order_payment(order_id: int, new_status: str, notes: str | None) -> None:
    """Change the payment status of an order."""
    handler = ChangePaymentStatusHandler(order_repo=order_repository(), notifications=notifications())

    try:
        change = handler.handle(order_id, new_status, notes=notes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {change.order_number} payment: {change.old_status} -> {change.new_status}")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.option("--reason", default=None, help="Cancellation reason.")
@click.option("--customer", default=None, help="Cancel on behalf of this customer.")
def order_cancel(order_id: int, reason: str | None, customer: str | None) -> None:
    """Cancel an order (releases reserved stock)."""
    handler = CancelOrderHandler(
        order_repo=order_repository(),
        variant_repo=variant_repository(),
        notifications=notifications(),
    )

    try:
        change = handler.handle(order_id, reason=reason, customer_id=customer)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {change.order_number} cancelled.")


@click.command("ship-details")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--mode", "delivery_mode", default=None, help="'self' or 'courier'.")
@click.option("--partner", "shipping_partner", default=None, help="Courier name.")
@click.option("--tracking", "tracking_id", default=None, help="Courier tracking ID.")
def order_ship_details(
    order_id: int,
    delivery_mode: str | None,
    shipping_partner: str | None,
    tracking_id: str | None,
) -> None:
    """Set delivery mode, courier and tracking ID."""
    handler = UpdateShippingDetailsHandler(order_repo=order_repository())

    try:
        handler.handle(order_id, delivery_mode, shipping_partner, tracking_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Shipping details for order #{order_id} updated.")


@click.command("history")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
def order_history(order_id: int) -> None:
    """Show the status history of an order."""
    handler = OrderStatusHistoryHandler(order_repo=order_repository())

    try:
        entries = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{'When':<22} {'Status':<34} {'Payment':<20} Notes")
    click.echo("-" * 90)
    for e in entries:
        status = f"{e.old_status} -> {e.new_status}"
        payment = f"{e.old_payment_status} -> {e.new_payment_status}" if e.new_payment_status else ""
        click.echo(f"{e.created_at:<22} {status:<34} {payment:<20} {e.notes or ''}")
