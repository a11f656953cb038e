"""Application service: Preview Coupon use case (query).

What the storefront shows when a customer types a code at checkout.
Read-only: a preview never counts as a use of the coupon.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from storefront.domain.clock import utcnow
from storefront.domain.exceptions import CouponRejection, InvalidCouponError
from storefront.domain.model.discount import normalize_code
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.domain.service.discount_engine import DiscountEngine


@dataclass(frozen=True)
class CouponPreviewDTO:
    code: str
    discount_amount: str
    subtotal_after_discount: str


class PreviewCouponHandler:

    def __init__(
        self,
        coupon_repo: CouponRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._coupon_repo = coupon_repo
        self._engine = DiscountEngine(clock)

    def handle(self, code: str, subtotal: str) -> CouponPreviewDTO:
        coupon = self._coupon_repo.get_by_code(code)
        if coupon is None:
            raise InvalidCouponError(normalize_code(code), CouponRejection.UNKNOWN_CODE)
        amount = Money.of(subtotal)
        discount = self._engine.apply_coupon(amount, coupon)
        return CouponPreviewDTO(
            code=coupon.code,
            discount_amount=str(discount),
            subtotal_after_discount=str(amount - discount),
        )
