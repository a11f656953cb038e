"""Integration tests for the read-only coupon use cases."""

from decimal import Decimal

import pytest

from storefront.application.list_coupons import ListCouponsHandler
from storefront.application.preview_coupon import PreviewCouponHandler
from storefront.domain.exceptions import InvalidCouponError
from storefront.domain.model.discount import DiscountType
from storefront.domain.model.value_objects import Money
from tests.fakes import FakeCouponRepository, FixedClock
from tests.scenario import make_coupon


def _repo() -> FakeCouponRepository:
    return FakeCouponRepository([
        make_coupon("FLAT100"),
        make_coupon(
            "PCT20",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("20"),
            max_discount=Money.of("300"),
            usage_limit=2,
            used_count=2,
        ),
    ])


class TestPreviewCoupon:

    def test_preview(self):
        dto = PreviewCouponHandler(_repo(), FixedClock()).handle("flat100", "1200")
        assert dto.code == "FLAT100"
        assert dto.discount_amount == "₹100.00"
        assert dto.subtotal_after_discount == "₹1100.00"

    def test_preview_is_side_effect_free(self):
        repo = _repo()
        handler = PreviewCouponHandler(repo, FixedClock())
        handler.handle("FLAT100", "1200")
        handler.handle("FLAT100", "1200")
        assert repo.get_by_code("FLAT100").used_count == 0

    def test_unknown_code(self):
        with pytest.raises(InvalidCouponError, match="unknown_code"):
            PreviewCouponHandler(_repo(), FixedClock()).handle("NOPE", "1200")

    def test_not_eligible_explains_minimum(self):
        with pytest.raises(InvalidCouponError, match="minimum order value is ₹500.00"):
            PreviewCouponHandler(_repo(), FixedClock()).handle("FLAT100", "499")


class TestListCoupons:

    def test_lists_state_and_usage(self):
        coupons = ListCouponsHandler(_repo(), FixedClock()).handle()
        assert [(c.code, c.state, c.used) for c in coupons] == [
            ("FLAT100", "usable", "0/∞"),
            ("PCT20", "exhausted", "2/2"),
        ]
        assert coupons[1].discount == "20% (max ₹300.00)"
