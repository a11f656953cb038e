"""Application service: List Returns use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.repository.return_repository import ReturnRepository


@dataclass(frozen=True)
class ReturnDTO:
    id: str
    order_id: int
    order_item_id: str
    product_name: str
    customer_id: str
    reason: str
    status: str
    admin_note: str | None
    created_at: str


class ListReturnsHandler:

    def __init__(self, return_repo: ReturnRepository) -> None:
        self._return_repo = return_repo

    def handle(self, status: str | None = None) -> list[ReturnDTO]:
        requests = sorted(self._return_repo.list_all(), key=lambda r: r.created_at, reverse=True)
        if status:
            requests = [r for r in requests if r.status.value == status.strip().lower()]
        return [
            ReturnDTO(
                id=r.id,
                order_id=r.order_id,
                order_item_id=r.order_item_id,
                product_name=r.product_name,
                customer_id=r.customer_id,
                reason=r.reason,
                status=r.status.value,
                admin_note=r.admin_note,
                created_at=r.created_at.strftime("%Y-%m-%d %H:%M UTC"),
            )
            for r in requests
        ]
