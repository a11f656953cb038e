"""Shipping fee policy: a flat fee, waived at or above a subtotal threshold."""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.model.value_objects import Money


@dataclass(frozen=True)
class ShippingPolicy:
    flat_fee: Money
    free_shipping_threshold: Money

    def cost_for(self, subtotal: Money) -> Money:
        if subtotal >= self.free_shipping_threshold:
            return Money.zero(subtotal.currency)
        return self.flat_fee
