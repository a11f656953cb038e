"""Application service: Update Shipping Details use case."""

from __future__ import annotations

from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.order import DeliveryMode
from storefront.domain.repository.order_repository import OrderRepository


class UpdateShippingDetailsHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        order_id: int,
        delivery_mode: str | None = None,
        shipping_partner: str | None = None,
        tracking_id: str | None = None,
    ) -> None:
        """Set delivery mode, courier and tracking id ahead of shipping."""
        mode = None
        if delivery_mode is not None:
            try:
                mode = DeliveryMode(delivery_mode.strip().lower())
            except ValueError:
                raise ValidationError(f"Unknown delivery mode '{delivery_mode}'")

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        order.update_shipping_details(mode, shipping_partner, tracking_id)
        self._order_repo.save(order)
