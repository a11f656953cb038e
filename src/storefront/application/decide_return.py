"""Application service: Decide Return use case.

Administrator decisions on a return request:

- approved: the customer is told to send the item back; the order keeps
  its ``return_requested`` flag and stock is not touched.
- rejected: the order drops the flag (back to delivered, or returned if
  another item of it was already returned); no stock effect.
- completed: the item's reservation is released, the order becomes
  ``returned``.

The order is saved and stock released before the request itself is saved,
so an attempt that fails part-way leaves the request undecided and can be
repeated; the stock ledger refuses a second release for the same order
item. Completing (or rejecting) a request a second time is a logged no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from storefront.application.notifications import NotificationDispatcher
from storefront.domain.clock import utcnow
from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.order import Order, OrderStatus
from storefront.domain.model.returns import ReturnRequest, ReturnStatus
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.return_repository import ReturnRepository
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.domain.service.stock_ledger import ReleaseOutcome, StockLedger

logger = logging.getLogger(__name__)

RELEASE_EVENT = "return"


@dataclass(frozen=True)
class ReturnDecisionDTO:
    return_id: str
    old_status: str
    new_status: str
    changed: bool
    stock_released: bool = False


class DecideReturnHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        return_repo: ReturnRepository,
        variant_repo: VariantRepository,
        notifications: NotificationDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._return_repo = return_repo
        self._ledger = StockLedger(variant_repo)
        self._notifications = notifications
        self._clock = clock

    def handle(self, return_id: str, decision: str, admin_note: str | None = None) -> ReturnDecisionDTO:
        try:
            target = ReturnStatus(decision.strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown return decision '{decision}'")

        request = self._return_repo.get_by_id(return_id)
        if request is None:
            raise EntityNotFoundError(f"Return '{return_id}' not found")

        if request.is_terminal and request.status is target:
            logger.warning("Return %s is already %s; ignoring", return_id, target.value)
            return ReturnDecisionDTO(return_id, target.value, target.value, changed=False)

        order = self._order_repo.get_by_id(request.order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{request.order_id} not found")

        now = self._clock()
        previous = request.decide(target, admin_note, at=now)
        released = False
        if target is ReturnStatus.REJECTED:
            restore_to = self._restore_status(order, exclude=request.id)
            if restore_to is not OrderStatus.RETURN_REQUESTED:
                order.clear_return_request(
                    restore_to, f"Return rejected for {request.product_name}", at=now
                )
                self._order_repo.save(order)
        elif target is ReturnStatus.COMPLETED:
            order.mark_returned(f"Return completed for {request.product_name}", at=now)
            self._order_repo.save(order)
            released = self._release(order, request)
        self._return_repo.save(request)

        logger.info(
            "Return %s for order %s: %s -> %s",
            return_id, order.order_number, previous.value, target.value,
        )
        self._notifications.return_decided(order, request)
        return ReturnDecisionDTO(
            return_id, previous.value, target.value, changed=True, stock_released=released
        )

    def _restore_status(self, order: Order, exclude: str) -> OrderStatus:
        others = [
            r
            for r in self._return_repo.list_for_order(order.id)  # type: ignore[arg-type]
            if r.id != exclude
        ]
        if any(r.is_open for r in others):
            return OrderStatus.RETURN_REQUESTED
        if any(r.status is ReturnStatus.COMPLETED for r in others):
            return OrderStatus.RETURNED
        return OrderStatus.DELIVERED

    def _release(self, order: Order, request: ReturnRequest) -> bool:
        item = order.find_item(request.order_item_id)
        if item.variant_id is None:
            return False
        outcome = self._ledger.release(item.variant_id, item.quantity.value, item.id, RELEASE_EVENT)
        return outcome is not ReleaseOutcome.DUPLICATE
