"""Application service: Submit Return use case.

A customer may ask to return an item from a delivered order, within the
return window, once per item (a rejected request can be raised again).
The order gets the ``return_requested`` overlay; stock is untouched until
an administrator completes the return.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable

from storefront.application.notifications import NotificationDispatcher
from storefront.domain.clock import utcnow
from storefront.domain.exceptions import EntityNotFoundError, ReturnNotAllowedError
from storefront.domain.model.order import FulfillmentStatus
from storefront.domain.model.returns import ReturnRequest, ReturnStatus
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.return_repository import ReturnRepository

logger = logging.getLogger(__name__)

DEFAULT_RETURN_WINDOW_DAYS = 7


class SubmitReturnHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        return_repo: ReturnRepository,
        notifications: NotificationDispatcher,
        return_window_days: int = DEFAULT_RETURN_WINDOW_DAYS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._return_repo = return_repo
        self._notifications = notifications
        self._return_window = timedelta(days=return_window_days)
        self._clock = clock

    def handle(
        self,
        order_item_id: str,
        reason: str,
        notes: str | None = None,
        customer_id: str | None = None,
    ) -> ReturnRequest:
        order = self._order_repo.get_by_item_id(order_item_id)
        if order is None or (customer_id is not None and order.customer_id != customer_id):
            raise EntityNotFoundError(f"Order item '{order_item_id}' not found")
        item = order.find_item(order_item_id)

        if order.fulfillment_status is not FulfillmentStatus.DELIVERED:
            raise ReturnNotAllowedError(
                f"Order {order.order_number} is {order.fulfillment_status.value}; "
                f"only delivered orders can be returned"
            )
        now = self._clock()
        if order.delivered_at is not None and now > order.delivered_at + self._return_window:
            raise ReturnNotAllowedError(
                f"The return window of {self._return_window.days} days for order "
                f"{order.order_number} has closed"
            )
        for existing in self._return_repo.list_for_order(order.id):  # type: ignore[arg-type]
            if existing.order_item_id == item.id and existing.status is not ReturnStatus.REJECTED:
                raise ReturnNotAllowedError(
                    f"A return for {item.product_name} already exists ({existing.status.value})"
                )

        request = ReturnRequest(
            id=uuid.uuid4().hex,
            order_id=order.id,  # type: ignore[arg-type]
            order_item_id=item.id,
            product_id=item.product_id,
            product_name=item.product_name,
            customer_id=order.customer_id,
            reason=reason.strip() if reason else reason,
            additional_notes=(notes or "").strip() or None,
            created_at=now,
            updated_at=now,
        )
        order.mark_return_requested(f"Return requested for {item.product_name}", at=now)
        self._order_repo.save(order)
        self._return_repo.save(request)
        logger.info("Return %s opened for order %s item %s", request.id, order.order_number, item.id)

        self._notifications.return_submitted(order, request)
        return request
