"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI (or any other caller) and the application
layer without exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.model.order import Order, StatusHistoryEntry


@dataclass(frozen=True)
class CustomerRef:
    """Input: the authenticated customer placing an order."""

    id: str
    email: str = ""


@dataclass(frozen=True)
class CartLine:
    """Input: one cart line (product, optional variant, quantity)."""

    product_id: str
    quantity: int
    variant_id: str | None = None


@dataclass(frozen=True)
class PlaceOrderResult:
    order_id: int
    order_number: str
    subtotal: str
    coupon_discount: str
    shipping_cost: str
    total: str
    replayed: bool = False  # True when an idempotency key matched an earlier order


@dataclass(frozen=True)
class OrderItemDTO:
    id: str
    product_name: str
    variant_id: str | None
    color: str
    size: str
    quantity: int
    original_price: str
    price: str
    discount_amount: str
    subtotal: str


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    order_number: str
    customer_id: str
    status: str
    fulfillment_status: str
    payment_status: str
    payment_method: str
    delivery_mode: str
    shipping_partner: str | None
    tracking_id: str | None
    cancellation_reason: str | None
    ship_to: str
    items: list[OrderItemDTO]
    subtotal: str
    coupon_code: str | None
    coupon_discount: str
    shipping_cost: str
    total: str
    created_at: str


@dataclass(frozen=True)
class StatusChangeDTO:
    order_number: str
    old_status: str
    new_status: str


@dataclass(frozen=True)
class StatusHistoryDTO:
    old_status: str
    new_status: str
    old_fulfillment_status: str
    new_fulfillment_status: str
    old_payment_status: str | None
    new_payment_status: str | None
    notes: str | None
    created_at: str


def order_to_dto(order: Order) -> OrderDTO:
    address = order.shipping_address
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        customer_id=order.customer_id,
        status=order.status.value,
        fulfillment_status=order.fulfillment_status.value,
        payment_status=order.payment_status.value,
        payment_method=order.payment_method,
        delivery_mode=order.delivery_mode.value,
        shipping_partner=order.shipping_partner,
        tracking_id=order.tracking_id,
        cancellation_reason=order.cancellation_reason,
        ship_to=f"{address.full_name}, {address.city} {address.postal_code}",
        items=[
            OrderItemDTO(
                id=item.id,
                product_name=item.product_name,
                variant_id=item.variant_id,
                color=item.color,
                size=item.size,
                quantity=item.quantity.value,
                original_price=str(item.original_price),
                price=str(item.price),
                discount_amount=str(item.discount_amount),
                subtotal=str(item.subtotal),
            )
            for item in order.items
        ],
        subtotal=str(order.subtotal),
        coupon_code=order.coupon_code,
        coupon_discount=str(order.coupon_discount),
        shipping_cost=str(order.shipping_cost),
        total=str(order.total),
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )


def history_to_dto(entry: StatusHistoryEntry) -> StatusHistoryDTO:
    return StatusHistoryDTO(
        old_status=entry.old_status,
        new_status=entry.new_status,
        old_fulfillment_status=entry.old_fulfillment_status,
        new_fulfillment_status=entry.new_fulfillment_status,
        old_payment_status=entry.old_payment_status,
        new_payment_status=entry.new_payment_status,
        notes=entry.notes,
        created_at=entry.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )
