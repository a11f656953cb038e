"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from pathlib import Path

from storefront.application.notifications import NotificationDispatcher
from storefront.domain.model.shipping import ShippingPolicy
from storefront.domain.model.value_objects import Money
from storefront.infrastructure.config import get_settings
from storefront.infrastructure.notifications.json_outbox_notifier import JsonOutboxNotifier
from storefront.infrastructure.persistence.json_address_repository import JsonAddressRepository
from storefront.infrastructure.persistence.json_coupon_repository import JsonCouponRepository
from storefront.infrastructure.persistence.json_offer_repository import JsonOfferRepository
from storefront.infrastructure.persistence.json_order_repository import JsonOrderRepository
from storefront.infrastructure.persistence.json_product_repository import JsonProductRepository
from storefront.infrastructure.persistence.json_return_repository import JsonReturnRepository
from storefront.infrastructure.persistence.json_variant_repository import JsonVariantRepository


def _data_dir() -> Path:
    return get_settings().DATA_DIR


def product_repository() -> JsonProductRepository:
    return JsonProductRepository(_data_dir() / "products.json")


def variant_repository() -> JsonVariantRepository:
    return JsonVariantRepository(_data_dir() / "variants.json", _data_dir() / "stock_releases.json")


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(_data_dir() / "orders.json")


def offer_repository() -> JsonOfferRepository:
    return JsonOfferRepository(_data_dir() / "offers.json")


def coupon_repository() -> JsonCouponRepository:
    return JsonCouponRepository(_data_dir() / "coupons.json")


def return_repository() -> JsonReturnRepository:
    return JsonReturnRepository(_data_dir() / "returns.json")


def address_repository() -> JsonAddressRepository:
    return JsonAddressRepository(_data_dir() / "addresses.json")


def notifications() -> NotificationDispatcher:
    return NotificationDispatcher(JsonOutboxNotifier(_data_dir() / "outbox.json"))


def shipping_policy() -> ShippingPolicy:
    settings = get_settings()
    return ShippingPolicy(
        flat_fee=Money(settings.SHIPPING_COST, settings.CURRENCY),
        free_shipping_threshold=Money(settings.FREE_SHIPPING_THRESHOLD, settings.CURRENCY),
    )


def return_window_days() -> int:
    return get_settings().RETURN_WINDOW_DAYS
