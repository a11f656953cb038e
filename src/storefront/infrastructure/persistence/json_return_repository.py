"""JSON-file-backed implementation of ReturnRepository."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from storefront.domain.model.returns import ReturnRequest, ReturnStatus
from storefront.domain.repository.return_repository import ReturnRepository
from storefront.infrastructure.persistence.json_store import JsonFileStore


class JsonReturnRepository(ReturnRepository):

    def __init__(self, file_path: Path) -> None:
        self._store = JsonFileStore(file_path)

    def get_by_id(self, return_id: str) -> ReturnRequest | None:
        for raw in self._store.load():
            if raw["id"] == return_id:
                return self._to_domain(raw)
        return None

    def list_for_order(self, order_id: int) -> list[ReturnRequest]:
        return [self._to_domain(raw) for raw in self._store.load() if raw["order_id"] == order_id]

    def list_all(self) -> list[ReturnRequest]:
        return [self._to_domain(raw) for raw in self._store.load()]

    def save(self, request: ReturnRequest) -> None:
        with self._store.transaction() as records:
            for i, raw in enumerate(records):
                if raw["id"] == request.id:
                    records[i] = self._to_raw(request)
                    return
            records.append(self._to_raw(request))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(request: ReturnRequest) -> dict:
        return {
            "id": request.id,
            "order_id": request.order_id,
            "order_item_id": request.order_item_id,
            "product_id": request.product_id,
            "product_name": request.product_name,
            "customer_id": request.customer_id,
            "reason": request.reason,
            "additional_notes": request.additional_notes,
            "status": request.status.value,
            "admin_note": request.admin_note,
            "created_at": request.created_at.isoformat(),
            "updated_at": request.updated_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> ReturnRequest:
        return ReturnRequest(
            id=raw["id"],
            order_id=raw["order_id"],
            order_item_id=raw["order_item_id"],
            product_id=raw["product_id"],
            product_name=raw["product_name"],
            customer_id=raw["customer_id"],
            reason=raw["reason"],
            additional_notes=raw.get("additional_notes"),
            status=ReturnStatus(raw["status"]),
            admin_note=raw.get("admin_note"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
        )
