"""Application service: Change Payment Status use case.

Payment is its own axis. It never gates fulfillment: cash-on-delivery
orders ship while payment is still pending.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from storefront.application.dto import StatusChangeDTO
from storefront.application.notifications import NotificationDispatcher
from storefront.domain.clock import utcnow
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.order import PaymentStatus
from storefront.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class ChangePaymentStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        notifications: NotificationDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._notifications = notifications
        self._clock = clock

    def handle(self, order_id: int, new_status: str, notes: str | None = None) -> StatusChangeDTO:
        try:
            target = PaymentStatus(new_status.strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown payment status '{new_status}'")

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        old_status = order.payment_status.value
        order.change_payment_status(target, notes, at=self._clock())
        self._order_repo.save(order)
        logger.info("Order %s payment %s -> %s", order.order_number, old_status, target.value)

        self._notifications.payment_changed(order)
        return StatusChangeDTO(order.order_number, old_status, target.value)
