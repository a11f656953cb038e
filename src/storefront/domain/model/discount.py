"""Discount sources: catalog offers and customer-entered coupons.

Both share the same shape (percentage or flat amount) but have different
eligibility rules, so each is wrapped in a ``DiscountRule`` that answers
two questions: does it apply here, and how much does it take off.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from storefront.domain.exceptions import CouponRejection, ValidationError
from storefront.domain.model.value_objects import Money


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FLAT = "flat"


class OfferScope(Enum):
    ALL = "all"
    PRODUCTS = "products"
    VARIANTS = "variants"


def _validate_value(discount_type: DiscountType, value: Decimal) -> None:
    if value <= 0:
        raise ValidationError("Discount value must be positive")
    if discount_type is DiscountType.PERCENTAGE and value > 100:
        raise ValidationError("Percentage discount cannot exceed 100")


@dataclass
class Offer:
    """Time-windowed promotional discount with no usage counter."""

    id: str
    title: str
    discount_type: DiscountType
    discount_value: Decimal
    start_date: datetime
    end_date: datetime
    applies_to: OfferScope = OfferScope.ALL
    product_ids: frozenset[str] = frozenset()
    variant_ids: frozenset[str] = frozenset()
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        _validate_value(self.discount_type, self.discount_value)

    def is_running(self, now: datetime) -> bool:
        return self.is_active and self.start_date <= now <= self.end_date

    def covers(self, product_id: str, variant_id: str | None) -> bool:
        if self.applies_to is OfferScope.ALL:
            return True
        if self.applies_to is OfferScope.VARIANTS:
            return variant_id is not None and variant_id in self.variant_ids
        return product_id in self.product_ids


@dataclass
class Coupon:
    """Code-based discount gated by usage limit and minimum order value.

    ``used_count`` belongs to the coupon repository's atomic claim; nothing
    else increments it.
    """

    id: str
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    start_date: datetime
    end_date: datetime
    min_order_value: Money | None = None
    max_discount: Money | None = None
    usage_limit: int | None = None
    used_count: int = 0
    is_active: bool = True
    description: str = ""

    def __post_init__(self) -> None:
        self.code = normalize_code(self.code)
        if not self.code:
            raise ValidationError("Coupon code is required")
        _validate_value(self.discount_type, self.discount_value)

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.used_count >= self.usage_limit

    def usability(self, now: datetime) -> CouponRejection | None:
        """Why the coupon cannot be used right now, or None if it can."""
        if not self.is_active:
            return CouponRejection.INACTIVE
        if now < self.start_date:
            return CouponRejection.NOT_STARTED
        if now > self.end_date:
            return CouponRejection.EXPIRED
        if self.is_exhausted:
            return CouponRejection.EXHAUSTED
        return None


def normalize_code(code: str) -> str:
    return code.strip().upper()


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DiscountContext:
    """What a rule needs to know to decide eligibility."""

    now: datetime
    amount: Money
    product_id: str | None = None
    variant_id: str | None = None


class DiscountRule(ABC):

    @abstractmethod
    def is_eligible(self, context: DiscountContext) -> bool:
        """True if this rule may be applied in ``context``."""

    @abstractmethod
    def compute_discount(self, amount: Money) -> Money:
        """Discount taken off ``amount``; never larger than ``amount``."""


class OfferRule(DiscountRule):

    def __init__(self, offer: Offer) -> None:
        self.offer = offer

    def is_eligible(self, context: DiscountContext) -> bool:
        if context.product_id is None:
            return False
        return self.offer.is_running(context.now) and self.offer.covers(
            context.product_id, context.variant_id
        )

    def compute_discount(self, amount: Money) -> Money:
        if self.offer.discount_type is DiscountType.PERCENTAGE:
            discount = amount.percent(self.offer.discount_value)
        else:
            discount = Money(self.offer.discount_value, amount.currency)
        return discount.capped_at(amount)


class CouponRule(DiscountRule):

    def __init__(self, coupon: Coupon) -> None:
        self.coupon = coupon

    def rejection(self, context: DiscountContext) -> CouponRejection | None:
        reason = self.coupon.usability(context.now)
        if reason is not None:
            return reason
        minimum = self.coupon.min_order_value
        if minimum is not None and context.amount < minimum:
            return CouponRejection.NOT_ELIGIBLE
        return None

    def is_eligible(self, context: DiscountContext) -> bool:
        return self.rejection(context) is None

    def compute_discount(self, amount: Money) -> Money:
        if self.coupon.discount_type is DiscountType.PERCENTAGE:
            discount = amount.percent(self.coupon.discount_value)
            if self.coupon.max_discount is not None:
                discount = discount.capped_at(self.coupon.max_discount)
        else:
            discount = Money(self.coupon.discount_value, amount.currency)
        return discount.capped_at(amount)
