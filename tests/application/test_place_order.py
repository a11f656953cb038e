"""Integration tests for the PlaceOrder (checkout) use case.

Uses in-memory fake repositories, no file I/O.
"""

from decimal import Decimal

import pytest

from storefront.application.dto import CartLine
from storefront.domain.exceptions import (
    CouponRejection,
    EmptyCartError,
    EntityNotFoundError,
    InsufficientStockError,
    InvalidCouponError,
    NoAddressSelectedError,
    ValidationError,
)
from storefront.domain.model.discount import DiscountType
from storefront.domain.model.product import Product
from storefront.domain.model.shipping import ShippingPolicy
from storefront.domain.model.value_objects import Money
from tests.fakes import FailingOrderRepository
from tests.scenario import CUSTOMER, Store, make_coupon, make_offer


class TestPlaceOrderHappyPath:

    def test_reserves_stock_and_prices_order(self):
        store = Store()
        result = store.checkout(CartLine("tee", 2, "tee-red-m"), CartLine("tee", 1, "tee-blue-l"))

        assert result.subtotal == "₹1300.00"
        assert result.shipping_cost == "₹99.00"
        assert result.total == "₹1399.00"
        assert result.order_number.startswith("ORD-20250601-")
        assert store.reserved("tee-red-m") == 2
        assert store.reserved("tee-blue-l") == 1

    def test_order_is_pending_on_every_axis(self):
        store = Store()
        result = store.checkout(CartLine("tee", 1, "tee-red-m"))
        order = store.orders.get_by_id(result.order_id)
        assert order.status.value == "pending"
        assert order.fulfillment_status.value == "pending"
        assert order.payment_status.value == "pending"

    def test_unvarianted_product_holds_no_reservation(self):
        store = Store()
        store.checkout(CartLine("mug", 2))
        assert store.variants.releases == {}
        assert all(v.reserved_stock == 0 for v in store.variants.list_all())

    def test_customer_is_notified(self):
        store = Store()
        store.checkout(CartLine("mug", 1))
        assert store.notifier.titles("customer") == ["Order Placed"]


class TestOrderTotal:

    def test_flat_coupon_with_free_shipping(self):
        store = Store(shipping=ShippingPolicy(Money.of("99"), Money.of("500")))
        store.coupons.save(make_coupon("FLAT100"))

        result = store.checkout(CartLine("mug", 1), coupon_code="flat100")

        assert result.subtotal == "₹1000.00"
        assert result.coupon_discount == "₹100.00"
        assert result.shipping_cost == "₹0.00"
        assert result.total == "₹900.00"

    def test_coupon_use_counted_once(self):
        store = Store()
        store.coupons.save(make_coupon("FLAT100"))
        store.checkout(CartLine("mug", 1), coupon_code="FLAT100")
        assert store.coupons.get_by_code("FLAT100").used_count == 1

    def test_offer_price_snapshot(self):
        store = Store()
        store.offers.save(make_offer("Summer", DiscountType.PERCENTAGE, "10"))
        store.offers.save(make_offer("Fifty", DiscountType.FLAT, "50"))

        result = store.checkout(CartLine("tee", 1, "tee-red-m"))
        item = store.orders.get_by_id(result.order_id).items[0]

        assert item.original_price == Money.of("400")
        assert item.price == Money.of("350")
        assert item.discount_amount == Money.of("50")
        assert item.offer_title == "Fifty"
        assert (item.color, item.size) == ("Red", "M")


class TestCouponEligibility:

    def _store(self) -> Store:
        store = Store()
        store.coupons.save(make_coupon("BIG", min_order_value=Money.of("2000")))
        store.products.save(Product(id="vase", name="Vase", base_price=Money.of("1500")))
        return store

    def test_below_minimum_fails_without_side_effects(self):
        store = self._store()
        with pytest.raises(InvalidCouponError) as exc_info:
            store.checkout(CartLine("vase", 1), coupon_code="BIG")
        assert exc_info.value.reason is CouponRejection.NOT_ELIGIBLE
        assert store.orders.all() == []
        assert store.coupons.get_by_code("BIG").used_count == 0

    def test_above_minimum_succeeds(self):
        store = self._store()
        result = store.checkout(CartLine("mug", 1), CartLine("vase", 1), coupon_code="BIG")
        assert result.coupon_discount == "₹100.00"

    def test_unknown_code(self):
        store = Store()
        with pytest.raises(InvalidCouponError, match="unknown_code"):
            store.checkout(CartLine("mug", 1), coupon_code="NOPE")

    def test_exhausted_coupon(self):
        store = Store()
        store.coupons.save(make_coupon("ONCE", usage_limit=1))
        store.checkout(CartLine("mug", 1), coupon_code="ONCE")
        with pytest.raises(InvalidCouponError, match="exhausted"):
            store.checkout(CartLine("mug", 1), coupon_code="ONCE")


class TestInsufficientStock:

    def test_fails_before_any_reservation(self):
        store = Store()
        with pytest.raises(InsufficientStockError, match="Classic Tee \\(Blue / L\\)"):
            store.checkout(CartLine("tee", 2, "tee-red-m"), CartLine("tee", 6, "tee-blue-l"))
        assert store.reserved("tee-red-m") == 0
        assert store.reserved("tee-blue-l") == 0
        assert store.orders.all() == []

    def test_duplicate_lines_are_summed(self):
        store = Store()
        with pytest.raises(InsufficientStockError):
            store.checkout(CartLine("tee", 3, "tee-blue-l"), CartLine("tee", 3, "tee-blue-l"))


class TestCheckoutRollback:

    def test_failed_save_releases_reservations_and_coupon(self):
        store = Store(orders=FailingOrderRepository())
        store.coupons.save(make_coupon("FLAT100"))

        with pytest.raises(RuntimeError):
            store.checkout(CartLine("tee", 2, "tee-red-m"), coupon_code="FLAT100")

        assert store.reserved("tee-red-m") == 0
        assert store.coupons.get_by_code("FLAT100").used_count == 0

    def test_coupon_lost_to_a_race_releases_reservations(self):
        store = Store()
        store.coupons.save(make_coupon("ONCE", usage_limit=1))
        # another checkout takes the last use after this one validated it
        original = store.coupons.claim_usage

        def race(code, now):
            original(code, now)
            return original(code, now)

        store.coupons.claim_usage = race
        with pytest.raises(InvalidCouponError, match="exhausted"):
            store.checkout(CartLine("tee", 2, "tee-red-m"), coupon_code="ONCE")
        assert store.reserved("tee-red-m") == 0


class TestIdempotency:

    def test_retry_returns_original_order(self):
        store = Store()
        first = store.checkout(CartLine("tee", 2, "tee-red-m"), idempotency_key="cart-42")
        second = store.checkout(CartLine("tee", 2, "tee-red-m"), idempotency_key="cart-42")

        assert second.replayed
        assert second.order_number == first.order_number
        assert len(store.orders.all()) == 1
        assert store.reserved("tee-red-m") == 2

    def test_concurrent_retry_loses_to_the_saved_order(self, monkeypatch):
        store = Store()
        store.coupons.save(make_coupon("FLAT100"))
        first = store.checkout(
            CartLine("tee", 2, "tee-red-m"), coupon_code="FLAT100", idempotency_key="cart-42"
        )
        # the retry looked the key up before the first order was saved
        monkeypatch.setattr(store.orders, "get_by_idempotency_key", _miss_once(store.orders))

        second = store.checkout(
            CartLine("tee", 2, "tee-red-m"), coupon_code="FLAT100", idempotency_key="cart-42"
        )

        assert second.replayed
        assert second.order_id == first.order_id
        assert len(store.orders.all()) == 1
        assert store.reserved("tee-red-m") == 2
        assert store.coupons.get_by_code("FLAT100").used_count == 1


def _miss_once(orders):
    lookup = orders.get_by_idempotency_key
    calls = []

    def get_by_idempotency_key(key):
        calls.append(key)
        return None if len(calls) == 1 else lookup(key)

    return get_by_idempotency_key


class TestCheckoutValidation:

    def test_empty_cart(self):
        with pytest.raises(EmptyCartError):
            Store().checkout()

    def test_no_address(self):
        store = Store()
        with pytest.raises(NoAddressSelectedError):
            store.place_order().handle(CUSTOMER, None, [CartLine("mug", 1)], "cod")

    def test_someone_elses_address(self):
        store = Store()
        with pytest.raises(EntityNotFoundError, match="Address"):
            store.place_order().handle(CUSTOMER, "office", [CartLine("mug", 1)], "cod")

    def test_zero_quantity(self):
        with pytest.raises(ValidationError, match="must be positive"):
            Store().checkout(CartLine("mug", 0))

    def test_variant_of_another_product(self):
        with pytest.raises(ValidationError, match="does not belong"):
            Store().checkout(CartLine("mug", 1, "tee-red-m"))

    def test_inactive_product(self):
        store = Store()
        mug = store.products.get_by_id("mug")
        mug.is_active = False
        with pytest.raises(EntityNotFoundError, match="mug"):
            store.checkout(CartLine("mug", 1))


class TestSnapshots:

    def test_catalog_edits_do_not_reach_placed_orders(self):
        store = Store()
        result = store.checkout(CartLine("mug", 1))

        mug = store.products.get_by_id("mug")
        mug.name = "Enamel Mug (new)"
        mug.base_price = Money.of("1200")

        item = store.orders.get_by_id(result.order_id).items[0]
        assert item.product_name == "Enamel Mug"
        assert item.price.amount == Decimal("1000")
