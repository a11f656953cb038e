"""Application service: Place Order (checkout) use case.

The storefront's single entry point for turning a cart into an order:

1. Validate the request and resolve products, variants and the address.
2. Check stock for every variant line before anything is mutated.
3. Price each line against the running offers, then apply the coupon to
   the subtotal as one order-level discount, then add shipping.
4. Reserve stock for all variant lines (all-or-nothing), claim one coupon
   use, and persist the order. A failure in any of these undoes the ones
   before it, so no partial order or stray reservation is left behind.
5. Notify the customer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable

from storefront.application.dto import CartLine, CustomerRef, PlaceOrderResult
from storefront.application.notifications import NotificationDispatcher
from storefront.domain.clock import utcnow
from storefront.domain.exceptions import (
    CouponRejection,
    DuplicateIdempotencyKeyError,
    EmptyCartError,
    EntityNotFoundError,
    InvalidCouponError,
    NoAddressSelectedError,
    ValidationError,
)
from storefront.domain.model.discount import Coupon, normalize_code
from storefront.domain.model.order import Order, OrderItem
from storefront.domain.model.product import Product
from storefront.domain.model.shipping import ShippingPolicy
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.model.variant import Variant
from storefront.domain.repository.address_repository import AddressRepository
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.domain.repository.offer_repository import OfferRepository
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.product_repository import ProductRepository
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.domain.service.discount_engine import DiscountEngine
from storefront.domain.service.order_numbers import generate_order_number
from storefront.domain.service.stock_ledger import StockLedger, StockLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ResolvedLine:
    line: CartLine
    product: Product
    variant: Variant | None


class PlaceOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        variant_repo: VariantRepository,
        offer_repo: OfferRepository,
        coupon_repo: CouponRepository,
        address_repo: AddressRepository,
        notifications: NotificationDispatcher,
        shipping_policy: ShippingPolicy,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._variant_repo = variant_repo
        self._offer_repo = offer_repo
        self._coupon_repo = coupon_repo
        self._address_repo = address_repo
        self._notifications = notifications
        self._shipping_policy = shipping_policy
        self._clock = clock
        self._ledger = StockLedger(variant_repo)
        self._engine = DiscountEngine(clock)

    def handle(
        self,
        customer: CustomerRef,
        address_id: str | None,
        items: list[CartLine],
        payment_method: str,
        coupon_code: str | None = None,
        idempotency_key: str | None = None,
    ) -> PlaceOrderResult:
        if idempotency_key:
            replay = self._replay(idempotency_key)
            if replay is not None:
                return replay

        if not items:
            raise EmptyCartError("Your cart is empty")
        if not address_id:
            raise NoAddressSelectedError("Please select a shipping address")

        address = self._address_repo.get_for_customer(customer.id, address_id)
        if address is None:
            raise EntityNotFoundError(f"Address '{address_id}' not found")

        resolved = [self._resolve(line) for line in items]
        stock_lines = [
            StockLine(r.variant.id, r.line.quantity, label=self._label(r))
            for r in resolved
            if r.variant is not None
        ]

        # Phase 1: validate stock and pricing before any mutation
        self._ledger.check_availability(stock_lines)

        now = self._clock()
        offers = self._offer_repo.list_running(now)
        order_items = [self._price(r, offers) for r in resolved]

        subtotal = Money.zero()
        for item in order_items:
            subtotal = subtotal + item.subtotal

        coupon = self._load_coupon(coupon_code) if coupon_code else None
        coupon_discount = (
            self._engine.apply_coupon(subtotal, coupon) if coupon is not None else None
        )
        shipping_cost = self._shipping_policy.cost_for(subtotal)

        order = Order.place(
            order_number=generate_order_number(
                now, lambda n: self._order_repo.get_by_order_number(n) is not None
            ),
            customer_id=customer.id,
            customer_email=customer.email,
            shipping_address=address,
            items=order_items,
            payment_method=payment_method,
            shipping_cost=shipping_cost,
            coupon_code=coupon.code if coupon is not None else None,
            coupon_discount=coupon_discount,
            idempotency_key=idempotency_key,
            created_at=now,
        )

        # Phase 2: commit stock, coupon use and the order as one unit
        try:
            self._commit(order, coupon, stock_lines, now)
        except DuplicateIdempotencyKeyError:
            # a concurrent retry with the same key was saved first
            replay = self._replay(idempotency_key)  # type: ignore[arg-type]
            if replay is None:
                raise
            return replay

        logger.info(
            "Order %s placed for customer %s: %d line(s), total %s",
            order.order_number, customer.id, len(order.items), order.total,
        )
        self._notifications.order_placed(order)
        return self._to_result(order)

    # --- Steps ----------------------------------------------------------------

    def _replay(self, idempotency_key: str) -> PlaceOrderResult | None:
        existing = self._order_repo.get_by_idempotency_key(idempotency_key)
        if existing is None:
            return None
        logger.info(
            "Checkout retry with key %s returns order %s",
            idempotency_key, existing.order_number,
        )
        return self._to_result(existing, replayed=True)

    def _commit(
        self, order: Order, coupon: Coupon | None, stock_lines: list[StockLine], now: datetime
    ) -> None:
        self._ledger.reserve_all(stock_lines)
        try:
            if coupon is not None:
                self._coupon_repo.claim_usage(coupon.code, now)
            try:
                self._order_repo.save(order)
            except Exception:
                if coupon is not None:
                    self._coupon_repo.restore_usage(coupon.code)
                raise
        except Exception:
            self._ledger.rollback(stock_lines)
            raise

    def _resolve(self, line: CartLine) -> _ResolvedLine:
        Quantity(line.quantity)  # rejects zero and negative quantities
        product = self._product_repo.get_by_id(line.product_id)
        if product is None or not product.is_active:
            raise EntityNotFoundError(f"Product '{line.product_id}' not found")
        variant = None
        if line.variant_id is not None:
            variant = self._variant_repo.get_by_id(line.variant_id)
            if variant is None:
                raise EntityNotFoundError(f"Variant '{line.variant_id}' not found")
            if variant.product_id != product.id:
                raise ValidationError(
                    f"Variant '{variant.id}' does not belong to product '{product.name}'"
                )
        return _ResolvedLine(line, product, variant)

    def _price(self, resolved: _ResolvedLine, offers) -> OrderItem:
        product, variant = resolved.product, resolved.variant
        quote = self._engine.price_for(
            base_price=product.base_price,
            variant_adjustment=variant.price_adjustment if variant else Decimal("0"),
            offers=offers,
            product_id=product.id,
            variant_id=variant.id if variant else None,
        )
        return OrderItem(
            id=OrderItem.new_id(),
            product_id=product.id,
            variant_id=variant.id if variant else None,
            product_name=product.name,  # <-- name snapshot
            quantity=Quantity(resolved.line.quantity),
            original_price=quote.original_price,
            price=quote.final_price,  # <-- price snapshot
            color=variant.color if variant else "",
            size=variant.size if variant else "",
            offer_title=quote.offer_title,
        )

    def _load_coupon(self, code: str) -> Coupon:
        coupon = self._coupon_repo.get_by_code(code)
        if coupon is None:
            raise InvalidCouponError(normalize_code(code), CouponRejection.UNKNOWN_CODE)
        return coupon

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def _label(resolved: _ResolvedLine) -> str:
        parts = [p for p in (resolved.variant.color, resolved.variant.size) if p]
        suffix = f" ({' / '.join(parts)})" if parts else ""
        return f"{resolved.product.name}{suffix}"

    @staticmethod
    def _to_result(order: Order, replayed: bool = False) -> PlaceOrderResult:
        return PlaceOrderResult(
            order_id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            subtotal=str(order.subtotal),
            coupon_discount=str(order.coupon_discount),
            shipping_cost=str(order.shipping_cost),
            total=str(order.total),
            replayed=replayed,
        )
