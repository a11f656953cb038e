"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items and its status
history. It carries two independent state machines:

- fulfillment: pending -> packed -> shipped -> delivered (courier) or
  pending -> packed -> delivered (self delivery), with pending|packed ->
  cancelled as the only side branch;
- payment: pending -> paid -> refunded, or pending -> failed.

``status`` is the customer-facing overall status. It mirrors the
fulfillment status and additionally carries the return overlay
(``return_requested``, ``returned``) once the order has been delivered.

Stock effects are not applied here; the application handlers call the
stock ledger around these transitions.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import (
    InvalidTransitionError,
    MissingTrackingInfoError,
    ValidationError,
)
from storefront.domain.model.value_objects import Money, Quantity, ShippingAddress


class FulfillmentStatus(Enum):
    PENDING = "pending"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderStatus(Enum):
    PENDING = "pending"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURN_REQUESTED = "return_requested"
    RETURNED = "returned"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class DeliveryMode(Enum):
    SELF = "self"
    COURIER = "courier"


_FULFILLMENT_TRANSITIONS: dict[FulfillmentStatus, frozenset[FulfillmentStatus]] = {
    FulfillmentStatus.PENDING: frozenset({FulfillmentStatus.PACKED, FulfillmentStatus.CANCELLED}),
    FulfillmentStatus.PACKED: frozenset(
        {FulfillmentStatus.SHIPPED, FulfillmentStatus.DELIVERED, FulfillmentStatus.CANCELLED}
    ),
    FulfillmentStatus.SHIPPED: frozenset({FulfillmentStatus.DELIVERED}),
    FulfillmentStatus.DELIVERED: frozenset(),
    FulfillmentStatus.CANCELLED: frozenset(),
}

_PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID, PaymentStatus.FAILED}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.FAILED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}

CANCELLABLE = frozenset({FulfillmentStatus.PENDING, FulfillmentStatus.PACKED})

# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MAX_LINE_ITEMS = 50


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OrderItem:
    """One order line with its price and name snapshot.

    Immutable once the order is placed; returns reference it by ``id``.
    """

    id: str
    product_id: str
    variant_id: str | None
    product_name: str
    quantity: Quantity
    original_price: Money  # unit price before any offer
    price: Money  # unit price after the best offer
    color: str = ""
    size: str = ""
    offer_title: str | None = None

    @property
    def subtotal(self) -> Money:
        return self.price * self.quantity.value

    @property
    def discount_amount(self) -> Money:
        return self.original_price.minus_clamped(self.price)

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex


@dataclass(frozen=True)
class StatusHistoryEntry:
    """Audit record of one transition on either status axis. Append-only."""

    order_id: int | None
    old_status: str
    new_status: str
    old_fulfillment_status: str
    new_fulfillment_status: str
    created_at: datetime
    notes: str | None = None
    old_payment_status: str | None = None
    new_payment_status: str | None = None


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.place()`` for new orders; it enforces the creation rules.
    The ``__init__`` stays simple so repositories can reconstitute persisted
    orders without re-validating. ``version`` is bumped by the repository on
    every save and backs the optimistic concurrency check.
    """

    id: int | None
    order_number: str
    customer_id: str
    customer_email: str
    shipping_address: ShippingAddress
    items: list[OrderItem]
    payment_method: str
    shipping_cost: Money
    coupon_code: str | None = None
    coupon_discount: Money = field(default_factory=Money.zero)
    status: OrderStatus = OrderStatus.PENDING
    fulfillment_status: FulfillmentStatus = FulfillmentStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    delivery_mode: DeliveryMode = DeliveryMode.COURIER
    shipping_partner: str | None = None
    tracking_id: str | None = None
    cancellation_reason: str | None = None
    idempotency_key: str | None = None
    history: list[StatusHistoryEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    delivered_at: datetime | None = None
    version: int = 0

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def place(
        order_number: str,
        customer_id: str,
        customer_email: str,
        shipping_address: ShippingAddress,
        items: list[OrderItem],
        payment_method: str,
        shipping_cost: Money,
        coupon_code: str | None = None,
        coupon_discount: Money | None = None,
        delivery_mode: DeliveryMode = DeliveryMode.COURIER,
        idempotency_key: str | None = None,
        created_at: datetime | None = None,
    ) -> Order:
        """Create a new order in the pending state, enforcing all invariants."""
        if not customer_id:
            raise ValidationError("Customer is required")
        if not items:
            raise ValidationError("Order must contain at least one item")
        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")
        if not payment_method or not payment_method.strip():
            raise ValidationError("Payment method is required")

        order = Order(
            id=None,
            order_number=order_number,
            customer_id=customer_id,
            customer_email=customer_email,
            shipping_address=shipping_address,
            items=list(items),
            payment_method=payment_method.strip().lower(),
            shipping_cost=shipping_cost,
            coupon_code=coupon_code,
            delivery_mode=delivery_mode,
            idempotency_key=idempotency_key,
        )
        if created_at is not None:
            order.created_at = order.updated_at = created_at
        if coupon_discount is not None:
            if coupon_discount > order.subtotal:
                raise ValidationError("Coupon discount cannot exceed the order subtotal")
            order.coupon_discount = coupon_discount
        return order

    # --- Fulfillment state machine --------------------------------------------

    def advance_fulfillment(
        self, new_status: FulfillmentStatus, notes: str | None = None, at: datetime | None = None
    ) -> StatusHistoryEntry:
        """Move along the fulfillment path (anything except cancellation).

        Cancellation has its own entry point (``cancel``) because it
        carries a reason and releases stock.
        """
        current = self.fulfillment_status
        if new_status is FulfillmentStatus.CANCELLED:
            return self.cancel(notes, at)
        if new_status is current:
            raise InvalidTransitionError(current.value, new_status.value, "order is already in this state")
        if new_status not in _FULFILLMENT_TRANSITIONS[current]:
            raise InvalidTransitionError(current.value, new_status.value)

        if new_status is FulfillmentStatus.SHIPPED:
            if self.delivery_mode is DeliveryMode.SELF:
                raise InvalidTransitionError(
                    current.value, new_status.value, "self-delivery orders are never shipped"
                )
            if not self.has_tracking_info:
                raise MissingTrackingInfoError(
                    f"Order {self.order_number} needs a shipping partner and tracking id before it ships"
                )
        if (
            new_status is FulfillmentStatus.DELIVERED
            and current is FulfillmentStatus.PACKED
            and self.delivery_mode is DeliveryMode.COURIER
        ):
            raise InvalidTransitionError(
                current.value, new_status.value, "courier orders must be shipped first"
            )

        entry = self._record(
            status=OrderStatus(new_status.value), fulfillment=new_status, notes=notes, at=at
        )
        if new_status is FulfillmentStatus.DELIVERED:
            self.delivered_at = entry.created_at
        return entry

    def cancel(self, reason: str | None = None, at: datetime | None = None) -> StatusHistoryEntry:
        """Transition PENDING|PACKED -> CANCELLED.

        The caller releases reserved stock for every variant line; the
        CANCELLED state is what guarantees that happens only once.
        """
        current = self.fulfillment_status
        if current is FulfillmentStatus.CANCELLED:
            raise InvalidTransitionError(current.value, current.value, "order is already cancelled")
        if current not in CANCELLABLE:
            raise InvalidTransitionError(
                current.value,
                FulfillmentStatus.CANCELLED.value,
                "only pending or packed orders can be cancelled",
            )
        reason = reason.strip() if reason else None
        self.cancellation_reason = reason or None
        return self._record(
            status=OrderStatus.CANCELLED,
            fulfillment=FulfillmentStatus.CANCELLED,
            notes=reason or None,
            at=at,
        )

    # --- Payment state machine ------------------------------------------------

    def change_payment_status(
        self, new_status: PaymentStatus, notes: str | None = None, at: datetime | None = None
    ) -> StatusHistoryEntry:
        current = self.payment_status
        if new_status not in _PAYMENT_TRANSITIONS[current]:
            raise InvalidTransitionError(current.value, new_status.value, "payment status")
        self.payment_status = new_status
        return self._record(
            notes=notes,
            old_payment=current,
            new_payment=new_status,
            at=at,
        )

    # --- Return overlay -------------------------------------------------------

    def mark_return_requested(
        self, notes: str | None = None, at: datetime | None = None
    ) -> StatusHistoryEntry | None:
        """Flag a delivered order as having an open return.

        Returns None when the flag is already set.
        """
        if self.fulfillment_status is not FulfillmentStatus.DELIVERED:
            raise InvalidTransitionError(
                self.status.value,
                OrderStatus.RETURN_REQUESTED.value,
                "only delivered orders can be returned",
            )
        if self.status is OrderStatus.RETURN_REQUESTED:
            return None
        return self._record(status=OrderStatus.RETURN_REQUESTED, notes=notes, at=at)

    def clear_return_request(
        self, restore_to: OrderStatus, notes: str | None = None, at: datetime | None = None
    ) -> StatusHistoryEntry | None:
        """Drop the return flag, going back to ``restore_to``."""
        if restore_to not in (OrderStatus.DELIVERED, OrderStatus.RETURNED):
            raise ValidationError(f"Cannot restore a return request to '{restore_to.value}'")
        if self.status is not OrderStatus.RETURN_REQUESTED:
            return None
        return self._record(status=restore_to, notes=notes, at=at)

    def mark_returned(self, notes: str | None = None, at: datetime | None = None) -> StatusHistoryEntry:
        if self.status not in (OrderStatus.RETURN_REQUESTED, OrderStatus.RETURNED):
            raise InvalidTransitionError(self.status.value, OrderStatus.RETURNED.value)
        return self._record(status=OrderStatus.RETURNED, notes=notes, at=at)

    # --- Shipping details -----------------------------------------------------

    def update_shipping_details(
        self,
        delivery_mode: DeliveryMode | None = None,
        shipping_partner: str | None = None,
        tracking_id: str | None = None,
    ) -> None:
        if self.fulfillment_status in (FulfillmentStatus.DELIVERED, FulfillmentStatus.CANCELLED):
            raise ValidationError(
                f"Shipping details are frozen once an order is {self.fulfillment_status.value}"
            )
        if delivery_mode is not None and delivery_mode is not self.delivery_mode:
            if self.fulfillment_status not in CANCELLABLE:
                raise ValidationError("Delivery mode can only change before the order ships")
            self.delivery_mode = delivery_mode
        if shipping_partner is not None:
            self.shipping_partner = shipping_partner.strip() or None
        if tracking_id is not None:
            self.tracking_id = tracking_id.strip() or None
        self.updated_at = _now()

    # --- Computed properties --------------------------------------------------

    @property
    def subtotal(self) -> Money:
        result = Money.zero(self.shipping_cost.currency)
        for item in self.items:
            result = result + item.subtotal
        return result

    @property
    def total(self) -> Money:
        return self.subtotal - self.coupon_discount + self.shipping_cost

    @property
    def has_tracking_info(self) -> bool:
        return bool(self.shipping_partner) and bool(self.tracking_id)

    def find_item(self, item_id: str) -> OrderItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise ValidationError(f"Item '{item_id}' not found in order {self.order_number}")

    # --- Internal helpers -----------------------------------------------------

    def _record(
        self,
        status: OrderStatus | None = None,
        fulfillment: FulfillmentStatus | None = None,
        notes: str | None = None,
        old_payment: PaymentStatus | None = None,
        new_payment: PaymentStatus | None = None,
        at: datetime | None = None,
    ) -> StatusHistoryEntry:
        """Apply the new status values and append the audit entry.

        ``at`` stamps the entry; callers pass their injected clock.
        """
        entry = StatusHistoryEntry(
            order_id=self.id,
            old_status=self.status.value,
            new_status=(status or self.status).value,
            old_fulfillment_status=self.fulfillment_status.value,
            new_fulfillment_status=(fulfillment or self.fulfillment_status).value,
            created_at=at or _now(),
            notes=notes,
            old_payment_status=old_payment.value if old_payment else None,
            new_payment_status=new_payment.value if new_payment else None,
        )
        if status is not None:
            self.status = status
        if fulfillment is not None:
            self.fulfillment_status = fulfillment
        self.history.append(entry)
        self.updated_at = entry.created_at
        return entry
