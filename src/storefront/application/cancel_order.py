"""Application service: Cancel Order use case.

Only pending or packed orders can be cancelled. The cancellation is saved
first (with the optimistic version check), then every variant line's
reservation is released through the stock ledger. The ledger keys each
release by order item, so a second cancel path can never give the same
units back twice.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from storefront.application.dto import StatusChangeDTO
from storefront.application.notifications import NotificationDispatcher
from storefront.domain.clock import utcnow
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.order import Order
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.domain.service.stock_ledger import StockLedger

logger = logging.getLogger(__name__)

RELEASE_EVENT = "cancel"


class CancelOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        variant_repo: VariantRepository,
        notifications: NotificationDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._ledger = StockLedger(variant_repo)
        self._notifications = notifications
        self._clock = clock

    def handle(
        self,
        order_id: int,
        reason: str | None = None,
        customer_id: str | None = None,
    ) -> StatusChangeDTO:
        """Cancel an order.

        Args:
            order_id: The order to cancel.
            reason: Free-text reason stored on the order.
            customer_id: Set when the customer cancels their own order; the
                order must belong to them and administrators are notified.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None or (customer_id is not None and order.customer_id != customer_id):
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return self.cancel(order, reason, by_customer=customer_id is not None)

    def cancel(self, order: Order, reason: str | None, by_customer: bool = False) -> StatusChangeDTO:
        old_status = order.fulfillment_status.value
        order.cancel(reason, at=self._clock())
        self._order_repo.save(order)
        logger.info("Order %s cancelled (was %s)", order.order_number, old_status)

        for item in order.items:
            if item.variant_id is None:
                continue
            try:
                self._ledger.release(item.variant_id, item.quantity.value, item.id, RELEASE_EVENT)
            except EntityNotFoundError:
                logger.error(
                    "Order %s line %s references missing variant %s; stock not released",
                    order.order_number, item.id, item.variant_id,
                )

        self._notifications.status_changed(order)
        if by_customer:
            self._notifications.cancelled_by_customer(order)
        return StatusChangeDTO(order.order_number, old_status, order.fulfillment_status.value)
