"""Application service: Set Inventory use case.

Corrects the physical count of a variant. Reserved units are left alone
and the count can never drop below them.
"""

from __future__ import annotations

from storefront.application.show_inventory import InventoryLineDTO
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.domain.service.stock_ledger import StockLedger


class SetInventoryHandler:

    def __init__(self, variant_repo: VariantRepository) -> None:
        self._ledger = StockLedger(variant_repo)

    def handle(self, variant_id: str, total_stock: int) -> InventoryLineDTO:
        variant = self._ledger.adjust_total(variant_id, total_stock)
        return InventoryLineDTO(
            variant_id=variant.id,
            product_id=variant.product_id,
            label=variant.label,
            total=variant.total_stock,
            reserved=variant.reserved_stock,
            available=variant.available_stock,
        )
