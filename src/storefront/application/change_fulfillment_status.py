"""Application service: Change Fulfillment Status use case.

Drives the fulfillment state machine for administrators. A move into
``cancelled`` is routed through the cancel use case so the stock release
always happens the same way.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from storefront.application.cancel_order import CancelOrderHandler
from storefront.application.dto import StatusChangeDTO
from storefront.application.notifications import NotificationDispatcher
from storefront.domain.clock import utcnow
from storefront.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    ValidationError,
)
from storefront.domain.model.order import FulfillmentStatus
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.variant_repository import VariantRepository

logger = logging.getLogger(__name__)


def parse_fulfillment_status(raw: str) -> FulfillmentStatus:
    try:
        return FulfillmentStatus(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in FulfillmentStatus)
        raise ValidationError(f"Unknown fulfillment status '{raw}' (expected one of: {allowed})")


class ChangeFulfillmentStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        variant_repo: VariantRepository,
        notifications: NotificationDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._notifications = notifications
        self._clock = clock
        self._cancel = CancelOrderHandler(order_repo, variant_repo, notifications, clock)

    def handle(
        self,
        order_id: int,
        new_status: str,
        notes: str | None = None,
        expected_status: str | None = None,
    ) -> StatusChangeDTO:
        """Move an order to ``new_status``.

        Args:
            order_id: The order to transition.
            new_status: Target fulfillment status.
            notes: Stored on the status history entry (the reason, for a
                cancellation).
            expected_status: If given, the transition is refused unless the
                order is still in this fulfillment status.
        """
        target = parse_fulfillment_status(new_status)
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        if expected_status is not None:
            expected = parse_fulfillment_status(expected_status)
            if order.fulfillment_status is not expected:
                raise ConcurrentModificationError(
                    f"Order {order.order_number} is {order.fulfillment_status.value}, "
                    f"not {expected.value}"
                )

        if target is FulfillmentStatus.CANCELLED:
            return self._cancel.cancel(order, notes)

        old_status = order.fulfillment_status.value
        order.advance_fulfillment(target, notes, at=self._clock())
        self._order_repo.save(order)
        logger.info("Order %s moved %s -> %s", order.order_number, old_status, target.value)

        self._notifications.status_changed(order)
        return StatusChangeDTO(order.order_number, old_status, target.value)
