"""JSON-file-backed implementation of VariantRepository.

Stock counters live in ``variants.json``; the release ledger (which order
items already had their reservation given back) lives in
``stock_releases.json`` next to it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Callable, TypeVar

from storefront.domain.exceptions import DoubleReleaseError, EntityNotFoundError, ValidationError
from storefront.domain.model.variant import Variant
from storefront.domain.repository.variant_repository import VariantRepository
from storefront.infrastructure.persistence.json_store import JsonFileStore

T = TypeVar("T")


class JsonVariantRepository(VariantRepository):

    def __init__(self, file_path: Path, releases_path: Path) -> None:
        self._store = JsonFileStore(file_path)
        self._releases = JsonFileStore(releases_path)

    # --- VariantRepository interface ------------------------------------------

    def get_by_id(self, variant_id: str) -> Variant | None:
        for raw in self._store.load():
            if raw["id"] == variant_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Variant]:
        return [self._to_domain(raw) for raw in self._store.load()]

    def add(self, variant: Variant) -> None:
        with self._store.transaction() as records:
            if any(raw["id"] == variant.id for raw in records):
                raise ValidationError(f"Variant '{variant.id}' already exists")
            records.append(self._to_raw(variant))

    def mutate(self, variant_id: str, mutation: Callable[[Variant], T]) -> T:
        with self._store.transaction() as records:
            for i, raw in enumerate(records):
                if raw["id"] == variant_id:
                    variant = self._to_domain(raw)
                    result = mutation(variant)
                    records[i] = self._to_raw(variant)
                    return result
            raise EntityNotFoundError(f"Variant '{variant_id}' not found")

    def claim_release(self, release_key: str, event: str) -> None:
        with self._releases.transaction() as records:
            if any(raw["key"] == release_key for raw in records):
                raise DoubleReleaseError(release_key)
            records.append(
                {
                    "key": release_key,
                    "event": event,
                    "released_at": datetime.now(timezone.utc).isoformat(),
                }
            )

    def unclaim_release(self, release_key: str) -> None:
        with self._releases.transaction() as records:
            records[:] = [raw for raw in records if raw["key"] != release_key]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(variant: Variant) -> dict:
        return {
            "id": variant.id,
            "product_id": variant.product_id,
            "size": variant.size,
            "color": variant.color,
            "price_adjustment": str(variant.price_adjustment),
            "total_stock": variant.total_stock,
            "reserved_stock": variant.reserved_stock,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Variant:
        return Variant(
            id=raw["id"],
            product_id=raw["product_id"],
            size=raw.get("size", ""),
            color=raw.get("color", ""),
            price_adjustment=Decimal(raw.get("price_adjustment", "0")),
            total_stock=raw["total_stock"],
            reserved_stock=raw.get("reserved_stock", 0),
        )
