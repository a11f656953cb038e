"""Application service: List Coupons use case (query)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from storefront.domain.clock import utcnow
from storefront.domain.model.discount import DiscountType
from storefront.domain.repository.coupon_repository import CouponRepository


@dataclass(frozen=True)
class CouponDTO:
    code: str
    discount: str
    min_order_value: str | None
    used: str
    state: str  # "usable" or the rejection reason


class ListCouponsHandler:

    def __init__(
        self,
        coupon_repo: CouponRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._coupon_repo = coupon_repo
        self._clock = clock

    def handle(self) -> list[CouponDTO]:
        now = self._clock()
        result = []
        for coupon in sorted(self._coupon_repo.list_all(), key=lambda c: c.code):
            if coupon.discount_type is DiscountType.PERCENTAGE:
                discount = f"{coupon.discount_value}%"
                if coupon.max_discount is not None:
                    discount = f"{discount} (max {coupon.max_discount})"
            else:
                discount = f"flat {coupon.discount_value}"
            limit = coupon.usage_limit if coupon.usage_limit is not None else "∞"
            reason = coupon.usability(now)
            result.append(
                CouponDTO(
                    code=coupon.code,
                    discount=discount,
                    min_order_value=str(coupon.min_order_value) if coupon.min_order_value else None,
                    used=f"{coupon.used_count}/{limit}",
                    state=reason.value if reason is not None else "usable",
                )
            )
        return result
