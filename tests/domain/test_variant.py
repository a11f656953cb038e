"""Unit tests for the Variant aggregate's stock counters."""

import logging

import pytest

from storefront.domain.exceptions import InsufficientStockError, ValidationError
from storefront.domain.model.variant import Variant


def _variant(total: int = 10, reserved: int = 0) -> Variant:
    return Variant(id="tee-red-m", product_id="tee", color="Red", size="M",
                   total_stock=total, reserved_stock=reserved)


class TestVariantInvariants:

    def test_available_is_total_minus_reserved(self):
        assert _variant(10, 3).available_stock == 7

    def test_reserved_above_total_rejected(self):
        with pytest.raises(ValidationError, match="outside 0..5"):
            _variant(5, 6)

    def test_negative_total_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            _variant(-1)

    def test_label_includes_color_and_size(self):
        assert _variant().label == "tee (Red / M)"


class TestReserve:

    def test_reserve_increments_reserved(self):
        v = _variant(10)
        v.reserve(4)
        assert v.reserved_stock == 4
        assert v.available_stock == 6

    def test_reserve_exactly_available(self):
        v = _variant(10, 7)
        v.reserve(3)
        assert v.available_stock == 0

    def test_reserve_more_than_available_leaves_record_untouched(self):
        v = _variant(10, 8)
        with pytest.raises(InsufficientStockError) as exc_info:
            v.reserve(3)
        assert exc_info.value.requested == 3
        assert exc_info.value.available == 2
        assert v.reserved_stock == 8

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            _variant().reserve(0)


class TestRelease:

    def test_release_decrements_reserved(self):
        v = _variant(10, 5)
        assert v.release(3) == 3
        assert v.reserved_stock == 2

    def test_over_release_is_clamped_and_logged(self, caplog):
        v = _variant(10, 2)
        with caplog.at_level(logging.ERROR, logger="storefront.domain.model.variant"):
            released = v.release(5)
        assert released == 2
        assert v.reserved_stock == 0
        assert "clamping" in caplog.text


class TestAdjustTotal:

    def test_adjust_total_keeps_reserved(self):
        v = _variant(10, 4)
        v.adjust_total(20)
        assert v.total_stock == 20
        assert v.reserved_stock == 4

    def test_cannot_shrink_below_reserved(self):
        v = _variant(10, 4)
        with pytest.raises(ValidationError, match="units are reserved"):
            v.adjust_total(3)
        assert v.total_stock == 10

    def test_can_shrink_to_reserved(self):
        v = _variant(10, 4)
        v.adjust_total(4)
        assert v.available_stock == 0
