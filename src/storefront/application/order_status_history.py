"""Application service: Order Status History use case (query)."""

from __future__ import annotations

from storefront.application.dto import StatusHistoryDTO, history_to_dto
from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.repository.order_repository import OrderRepository


class OrderStatusHistoryHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int) -> list[StatusHistoryDTO]:
        """Every recorded transition, oldest first."""
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return [history_to_dto(entry) for entry in order.history]
