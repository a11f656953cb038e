"""JSON-file-backed implementation of OfferRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from storefront.domain.model.discount import DiscountType, Offer, OfferScope
from storefront.domain.repository.offer_repository import OfferRepository
from storefront.infrastructure.persistence.json_store import JsonFileStore


class JsonOfferRepository(OfferRepository):

    def __init__(self, file_path: Path) -> None:
        self._store = JsonFileStore(file_path)

    def list_running(self, now: datetime) -> list[Offer]:
        offers = [self._to_domain(raw) for raw in self._store.load()]
        return [offer for offer in offers if offer.is_running(now)]

    def save(self, offer: Offer) -> None:
        with self._store.transaction() as records:
            for i, raw in enumerate(records):
                if raw["id"] == offer.id:
                    records[i] = self._to_raw(offer)
                    return
            records.append(self._to_raw(offer))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(offer: Offer) -> dict:
        return {
            "id": offer.id,
            "title": offer.title,
            "discount_type": offer.discount_type.value,
            "discount_value": str(offer.discount_value),
            "applies_to": offer.applies_to.value,
            "product_ids": sorted(offer.product_ids),
            "variant_ids": sorted(offer.variant_ids),
            "start_date": offer.start_date.isoformat(),
            "end_date": offer.end_date.isoformat(),
            "is_active": offer.is_active,
            "created_at": offer.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Offer:
        return Offer(
            id=raw["id"],
            title=raw["title"],
            discount_type=DiscountType(raw["discount_type"]),
            discount_value=Decimal(raw["discount_value"]),
            applies_to=OfferScope(raw.get("applies_to", "all")),
            product_ids=frozenset(raw.get("product_ids", [])),
            variant_ids=frozenset(raw.get("variant_ids", [])),
            start_date=datetime.fromisoformat(raw["start_date"]),
            end_date=datetime.fromisoformat(raw["end_date"]),
            is_active=raw.get("is_active", True),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
