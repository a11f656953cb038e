import click

from storefront.infrastructure.cli.coupon_commands import coupon_list, coupon_preview
from storefront.infrastructure.cli.inventory_commands import (
    inventory_available,
    inventory_set,
    inventory_show,
)
from storefront.infrastructure.cli.order_commands import (
    order_cancel,
    order_history,
    order_payment,
    order_place,
    order_ship_details,
    order_show,
    order_status,
)
from storefront.infrastructure.cli.return_commands import return_decide, return_list, return_submit
from storefront.infrastructure.logging_config import configure_logging


@click.group()
def cli() -> None:
    """Storefront: orders, stock, coupons and returns."""
    configure_logging()


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def inventory() -> None:
    """Manage variant stock."""


@cli.group()
def coupon() -> None:
    """Work with coupons."""


@cli.group("return")
def return_() -> None:
    """Manage return requests."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_history)
order.add_command(order_payment)
order.add_command(order_place)
order.add_command(order_ship_details)
order.add_command(order_show)
order.add_command(order_status)
inventory.add_command(inventory_available)
inventory.add_command(inventory_set)
inventory.add_command(inventory_show)
coupon.add_command(coupon_list)
coupon.add_command(coupon_preview)
return_.add_command(return_decide)
return_.add_command(return_list)
return_.add_command(return_submit)
