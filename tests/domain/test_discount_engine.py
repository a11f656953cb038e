"""Unit tests for offer selection and coupon evaluation."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from storefront.domain.exceptions import CouponRejection, InvalidCouponError, ValidationError
from storefront.domain.model.discount import DiscountType, OfferScope
from storefront.domain.model.value_objects import Money
from storefront.domain.service.discount_engine import DiscountEngine
from tests.fakes import FixedClock
from tests.scenario import make_coupon, make_offer

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _engine() -> DiscountEngine:
    return DiscountEngine(FixedClock(NOW))


class TestOfferSelection:

    def test_largest_absolute_discount_wins(self):
        offers = [
            make_offer("ten-percent", DiscountType.PERCENTAGE, "10"),
            make_offer("fifty-off", DiscountType.FLAT, "50"),
        ]
        quote = _engine().price_for(Money.of("400"), Decimal("0"), offers, "tee")
        assert quote.final_price == Money.of("350")
        assert quote.discount_amount == Money.of("50")
        assert quote.original_price == Money.of("400")
        assert quote.offer_title == "fifty-off"

    def test_percentage_wins_when_larger(self):
        offers = [
            make_offer("ten-percent", DiscountType.PERCENTAGE, "10"),
            make_offer("fifty-off", DiscountType.FLAT, "50"),
        ]
        quote = _engine().price_for(Money.of("1000"), Decimal("0"), offers, "tee")
        assert quote.final_price == Money.of("900")
        assert quote.offer_title == "ten-percent"

    def test_tie_goes_to_most_recent_offer(self):
        offers = [
            make_offer("newer", DiscountType.FLAT, "40", created_at=NOW - timedelta(days=1)),
            make_offer("older", DiscountType.FLAT, "40", created_at=NOW - timedelta(days=30)),
        ]
        quote = _engine().price_for(Money.of("400"), Decimal("0"), offers, "tee")
        assert quote.offer_title == "newer"

    def test_flat_discount_clamped_at_price(self):
        offers = [make_offer("huge", DiscountType.FLAT, "999")]
        quote = _engine().price_for(Money.of("400"), Decimal("0"), offers, "tee")
        assert quote.final_price == Money.zero()

    def test_variant_adjustment_added_to_base(self):
        quote = _engine().price_for(Money.of("400"), Decimal("100"), [], "tee", "tee-blue-l")
        assert quote.original_price == Money.of("500")
        assert quote.final_price == Money.of("500")
        assert quote.offer_title is None

    def test_negative_adjusted_price_rejected(self):
        with pytest.raises(ValidationError, match="negative"):
            _engine().price_for(Money.of("400"), Decimal("-500"), [], "tee")

    def test_expired_and_inactive_offers_ignored(self):
        offers = [
            make_offer("expired", DiscountType.FLAT, "100", end_date=NOW - timedelta(seconds=1)),
            make_offer("inactive", DiscountType.FLAT, "100", is_active=False),
        ]
        quote = _engine().price_for(Money.of("400"), Decimal("0"), offers, "tee")
        assert quote.final_price == Money.of("400")

    def test_scoped_offers(self):
        offers = [
            make_offer("mugs", DiscountType.FLAT, "100", applies_to=OfferScope.PRODUCTS,
                       product_ids=frozenset({"mug"})),
            make_offer("blue-tee", DiscountType.FLAT, "60", applies_to=OfferScope.VARIANTS,
                       variant_ids=frozenset({"tee-blue-l"})),
        ]
        engine = _engine()
        assert engine.price_for(Money.of("400"), Decimal("0"), offers, "tee", "tee-red-m").offer_title is None
        assert engine.price_for(Money.of("400"), Decimal("0"), offers, "tee", "tee-blue-l").offer_title == "blue-tee"
        assert engine.price_for(Money.of("1000"), Decimal("0"), offers, "mug").offer_title == "mugs"


class TestApplyCoupon:

    def test_below_minimum_is_not_eligible(self):
        coupon = make_coupon("BIG", min_order_value=Money.of("2000"))
        with pytest.raises(InvalidCouponError) as exc_info:
            _engine().apply_coupon(Money.of("1500"), coupon)
        assert exc_info.value.reason is CouponRejection.NOT_ELIGIBLE

    def test_above_minimum_succeeds(self):
        coupon = make_coupon("BIG", min_order_value=Money.of("2000"))
        assert _engine().apply_coupon(Money.of("2500"), coupon) == Money.of("100")

    def test_percentage_capped_at_max_discount(self):
        coupon = make_coupon(
            "PCT20",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("20"),
            max_discount=Money.of("300"),
        )
        assert _engine().apply_coupon(Money.of("1000"), coupon) == Money.of("200")
        assert _engine().apply_coupon(Money.of("5000"), coupon) == Money.of("300")

    def test_flat_never_exceeds_subtotal(self):
        coupon = make_coupon("FLAT900", discount_value=Decimal("900"), min_order_value=None)
        assert _engine().apply_coupon(Money.of("600"), coupon) == Money.of("600")

    @pytest.mark.parametrize(
        ("overrides", "reason"),
        [
            ({"is_active": False}, CouponRejection.INACTIVE),
            ({"start_date": NOW + timedelta(days=1)}, CouponRejection.NOT_STARTED),
            ({"end_date": NOW - timedelta(days=1)}, CouponRejection.EXPIRED),
            ({"usage_limit": 5, "used_count": 5}, CouponRejection.EXHAUSTED),
        ],
    )
    def test_unusable_coupons(self, overrides, reason):
        coupon = make_coupon("SALE", **overrides)
        with pytest.raises(InvalidCouponError, match=reason.value):
            _engine().apply_coupon(Money.of("1000"), coupon)

    def test_preview_does_not_count_a_use(self):
        coupon = make_coupon("ONCE", usage_limit=1)
        _engine().apply_coupon(Money.of("1000"), coupon)
        _engine().apply_coupon(Money.of("1000"), coupon)
        assert coupon.used_count == 0

    def test_code_is_case_insensitive(self):
        assert make_coupon(" flat100 ").code == "FLAT100"
