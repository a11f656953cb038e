"""Domain service: Discount Engine.

Prices a single line against the running offers and evaluates a coupon
against an order subtotal. Both operations are pure: nothing here touches
a repository, so previewing a price or a coupon never has side effects.
Claiming a coupon use happens at checkout, through the coupon repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable

from storefront.domain.clock import utcnow
from storefront.domain.exceptions import InvalidCouponError, ValidationError
from storefront.domain.model.discount import (
    Coupon,
    CouponRule,
    DiscountContext,
    Offer,
    OfferRule,
)
from storefront.domain.model.value_objects import Money


@dataclass(frozen=True)
class PriceQuote:
    original_price: Money
    final_price: Money
    discount_amount: Money
    offer_title: str | None = None


class DiscountEngine:

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock

    def price_for(
        self,
        base_price: Money,
        variant_adjustment: Decimal,
        offers: Iterable[Offer],
        product_id: str,
        variant_id: str | None = None,
    ) -> PriceQuote:
        """Best-offer unit price for a product/variant.

        The offer giving the largest absolute discount wins; on a tie the
        most recently created offer wins.
        """
        original_amount = base_price.amount + (variant_adjustment or Decimal("0"))
        if original_amount < 0:
            raise ValidationError(
                f"Price adjustment {variant_adjustment} makes the price of {product_id} negative"
            )
        original = Money(original_amount, base_price.currency)
        context = DiscountContext(
            now=self._clock(), amount=original, product_id=product_id, variant_id=variant_id
        )

        best: tuple[Money, Offer] | None = None
        for offer in offers:
            rule = OfferRule(offer)
            if not rule.is_eligible(context):
                continue
            discount = rule.compute_discount(original)
            if discount.is_zero:
                continue
            if best is None or (discount.amount, offer.created_at) > (
                best[0].amount,
                best[1].created_at,
            ):
                best = (discount, offer)

        if best is None:
            return PriceQuote(original, original, Money.zero(original.currency))
        discount, offer = best
        return PriceQuote(
            original_price=original,
            final_price=original - discount,
            discount_amount=discount,
            offer_title=offer.title,
        )

    def apply_coupon(self, subtotal: Money, coupon: Coupon) -> Money:
        """Discount the coupon gives on ``subtotal``.

        Raises InvalidCouponError with the rejection reason when the coupon
        is inactive, outside its window, used up, or the subtotal is below
        its minimum order value.
        """
        rule = CouponRule(coupon)
        reason = rule.rejection(DiscountContext(now=self._clock(), amount=subtotal))
        if reason is not None:
            detail = ""
            if coupon.min_order_value is not None and subtotal < coupon.min_order_value:
                detail = f"minimum order value is {coupon.min_order_value}"
            raise InvalidCouponError(coupon.code, reason, detail)
        return rule.compute_discount(subtotal)
