"""Application service: Show Inventory use cases (queries)."""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.repository.variant_repository import VariantRepository
from storefront.domain.service.stock_ledger import StockLedger


@dataclass(frozen=True)
class InventoryLineDTO:
    variant_id: str
    product_id: str
    label: str
    total: int
    reserved: int
    available: int


class ShowInventoryHandler:

    def __init__(self, variant_repo: VariantRepository) -> None:
        self._variant_repo = variant_repo

    def handle(self) -> list[InventoryLineDTO]:
        variants = sorted(self._variant_repo.list_all(), key=lambda v: (v.product_id, v.id))
        return [
            InventoryLineDTO(
                variant_id=variant.id,
                product_id=variant.product_id,
                label=variant.label,
                total=variant.total_stock,
                reserved=variant.reserved_stock,
                available=variant.available_stock,
            )
            for variant in variants
        ]


class AvailableStockHandler:

    def __init__(self, variant_repo: VariantRepository) -> None:
        self._ledger = StockLedger(variant_repo)

    def handle(self, variant_id: str) -> int:
        return self._ledger.available_stock(variant_id)
