"""Unit tests for the Order aggregate's two state machines."""

import pytest

from storefront.domain.exceptions import (
    InvalidTransitionError,
    MissingTrackingInfoError,
    ValidationError,
)
from storefront.domain.model.order import (
    MAX_LINE_ITEMS,
    DeliveryMode,
    FulfillmentStatus as FS,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from storefront.domain.model.value_objects import Money, Quantity, ShippingAddress

ADDRESS = ShippingAddress("Asha Rao", "98", "12 MG Road", "Bengaluru", "KA", "560001")


def _item(qty: int = 1, price: str = "400", original: str | None = None) -> OrderItem:
    return OrderItem(
        id=OrderItem.new_id(),
        product_id="tee",
        variant_id="tee-red-m",
        product_name="Classic Tee",
        quantity=Quantity(qty),
        original_price=Money.of(original or price),
        price=Money.of(price),
    )


def _order(mode: DeliveryMode = DeliveryMode.COURIER, **kwargs) -> Order:
    return Order.place(
        order_number="ORD-20250601-ABC123",
        customer_id="cust-1",
        customer_email="asha@example.com",
        shipping_address=ADDRESS,
        items=kwargs.pop("items", [_item(qty=2)]),
        payment_method="COD",
        shipping_cost=Money.of("99"),
        delivery_mode=mode,
        **kwargs,
    )


class TestOrderPlacement:

    def test_new_order_is_pending_on_every_axis(self):
        order = _order()
        assert order.status is OrderStatus.PENDING
        assert order.fulfillment_status is FS.PENDING
        assert order.payment_status is PaymentStatus.PENDING
        assert order.id is None  # assigned by repository
        assert order.payment_method == "cod"

    def test_total_is_subtotal_minus_coupon_plus_shipping(self):
        order = _order(coupon_code="FLAT100", coupon_discount=Money.of("100"))
        assert order.subtotal == Money.of("800")
        assert order.total == Money.of("799")

    def test_coupon_discount_cannot_exceed_subtotal(self):
        with pytest.raises(ValidationError, match="cannot exceed"):
            _order(coupon_discount=Money.of("801"))

    def test_empty_order_rejected(self):
        with pytest.raises(ValidationError, match="at least one item"):
            _order(items=[])

    def test_too_many_lines_rejected(self):
        with pytest.raises(ValidationError, match=f"Maximum {MAX_LINE_ITEMS}"):
            _order(items=[_item() for _ in range(MAX_LINE_ITEMS + 1)])

    def test_item_subtotal_and_discount_are_derived(self):
        item = _item(qty=3, price="350", original="400")
        assert item.subtotal == Money.of("1050")
        assert item.discount_amount == Money.of("50")


class TestCourierFulfillment:

    def test_happy_path_with_tracking(self):
        order = _order()
        order.advance_fulfillment(FS.PACKED)
        order.update_shipping_details(shipping_partner="BlueDart", tracking_id="BD123")
        order.advance_fulfillment(FS.SHIPPED)
        order.advance_fulfillment(FS.DELIVERED)
        assert order.status is OrderStatus.DELIVERED
        assert order.delivered_at is not None

    def test_shipping_without_tracking_rejected(self):
        order = _order()
        order.advance_fulfillment(FS.PACKED)
        with pytest.raises(MissingTrackingInfoError):
            order.advance_fulfillment(FS.SHIPPED)
        assert order.fulfillment_status is FS.PACKED

    def test_pending_to_shipped_rejected(self):
        order = _order()
        order.update_shipping_details(shipping_partner="BlueDart", tracking_id="BD123")
        with pytest.raises(InvalidTransitionError):
            order.advance_fulfillment(FS.SHIPPED)

    def test_backward_move_rejected(self):
        order = _order()
        order.advance_fulfillment(FS.PACKED)
        order.update_shipping_details(shipping_partner="BlueDart", tracking_id="BD123")
        order.advance_fulfillment(FS.SHIPPED)
        with pytest.raises(InvalidTransitionError, match="'shipped' to 'packed'"):
            order.advance_fulfillment(FS.PACKED)

    def test_courier_cannot_skip_shipping(self):
        order = _order()
        order.advance_fulfillment(FS.PACKED)
        with pytest.raises(InvalidTransitionError, match="shipped first"):
            order.advance_fulfillment(FS.DELIVERED)

    def test_same_state_rejected(self):
        order = _order()
        with pytest.raises(InvalidTransitionError, match="already"):
            order.advance_fulfillment(FS.PENDING)


class TestSelfDelivery:

    def test_pending_to_shipped_rejected(self):
        order = _order(DeliveryMode.SELF)
        with pytest.raises(InvalidTransitionError):
            order.advance_fulfillment(FS.SHIPPED)

    def test_packed_to_shipped_rejected_even_with_tracking(self):
        order = _order(DeliveryMode.SELF)
        order.advance_fulfillment(FS.PACKED)
        order.update_shipping_details(shipping_partner="Own van", tracking_id="V1")
        with pytest.raises(InvalidTransitionError, match="never shipped"):
            order.advance_fulfillment(FS.SHIPPED)

    def test_packed_to_delivered(self):
        order = _order(DeliveryMode.SELF)
        order.advance_fulfillment(FS.PACKED)
        order.advance_fulfillment(FS.DELIVERED)
        assert order.fulfillment_status is FS.DELIVERED


class TestCancel:

    @pytest.mark.parametrize("steps", [[], [FS.PACKED]])
    def test_cancel_from_pending_or_packed(self, steps):
        order = _order()
        for step in steps:
            order.advance_fulfillment(step)
        order.cancel("changed my mind")
        assert order.status is OrderStatus.CANCELLED
        assert order.cancellation_reason == "changed my mind"

    def test_second_cancel_rejected(self):
        order = _order()
        order.cancel()
        with pytest.raises(InvalidTransitionError, match="already cancelled"):
            order.cancel()

    def test_cannot_cancel_shipped_order(self):
        order = _order()
        order.advance_fulfillment(FS.PACKED)
        order.update_shipping_details(shipping_partner="BlueDart", tracking_id="BD123")
        order.advance_fulfillment(FS.SHIPPED)
        with pytest.raises(InvalidTransitionError, match="only pending or packed"):
            order.cancel()

    def test_advance_to_cancelled_goes_through_cancel(self):
        order = _order()
        order.advance_fulfillment(FS.CANCELLED, "out of stock")
        assert order.cancellation_reason == "out of stock"


class TestPayment:

    def test_paid_then_refunded(self):
        order = _order()
        order.change_payment_status(PaymentStatus.PAID)
        order.change_payment_status(PaymentStatus.REFUNDED)
        assert order.payment_status is PaymentStatus.REFUNDED

    def test_failed_is_terminal(self):
        order = _order()
        order.change_payment_status(PaymentStatus.FAILED)
        with pytest.raises(InvalidTransitionError):
            order.change_payment_status(PaymentStatus.PAID)

    def test_payment_does_not_touch_fulfillment(self):
        order = _order()
        order.advance_fulfillment(FS.PACKED)
        order.change_payment_status(PaymentStatus.PAID)
        assert order.fulfillment_status is FS.PACKED
        assert order.status is OrderStatus.PACKED


class TestStatusHistory:

    def test_every_transition_is_recorded_on_both_axes(self):
        order = _order()
        order.advance_fulfillment(FS.PACKED, "packed by Ravi")
        order.change_payment_status(PaymentStatus.PAID)

        packed, paid = order.history
        assert (packed.old_fulfillment_status, packed.new_fulfillment_status) == ("pending", "packed")
        assert packed.notes == "packed by Ravi"
        assert (paid.old_payment_status, paid.new_payment_status) == ("pending", "paid")
        assert paid.old_fulfillment_status == paid.new_fulfillment_status == "packed"

    def test_rejected_transition_records_nothing(self):
        order = _order()
        with pytest.raises(InvalidTransitionError):
            order.advance_fulfillment(FS.DELIVERED)
        assert order.history == []


class TestReturnOverlay:

    def _delivered(self) -> Order:
        order = _order(DeliveryMode.SELF)
        order.advance_fulfillment(FS.PACKED)
        order.advance_fulfillment(FS.DELIVERED)
        return order

    def test_overlay_keeps_fulfillment_delivered(self):
        order = self._delivered()
        order.mark_return_requested()
        assert order.status is OrderStatus.RETURN_REQUESTED
        assert order.fulfillment_status is FS.DELIVERED

    def test_only_delivered_orders(self):
        with pytest.raises(InvalidTransitionError, match="only delivered"):
            _order().mark_return_requested()

    def test_clear_restores_delivered(self):
        order = self._delivered()
        order.mark_return_requested()
        order.clear_return_request(OrderStatus.DELIVERED)
        assert order.status is OrderStatus.DELIVERED

    def test_mark_returned_requires_request(self):
        with pytest.raises(InvalidTransitionError):
            self._delivered().mark_returned()


class TestShippingDetails:

    def test_mode_frozen_after_shipping(self):
        order = _order()
        order.advance_fulfillment(FS.PACKED)
        order.update_shipping_details(shipping_partner="BlueDart", tracking_id="BD123")
        order.advance_fulfillment(FS.SHIPPED)
        with pytest.raises(ValidationError, match="before the order ships"):
            order.update_shipping_details(delivery_mode=DeliveryMode.SELF)

    def test_blank_values_clear_fields(self):
        order = _order()
        order.update_shipping_details(shipping_partner="BlueDart", tracking_id="BD123")
        order.update_shipping_details(tracking_id="  ")
        assert order.tracking_id is None
        assert not order.has_tracking_info
