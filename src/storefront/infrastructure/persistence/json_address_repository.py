"""JSON-file-backed view of the customer address book."""

from __future__ import annotations

from pathlib import Path

from storefront.domain.model.value_objects import ShippingAddress
from storefront.domain.repository.address_repository import AddressRepository
from storefront.infrastructure.persistence.json_store import JsonFileStore

_ADDRESS_FIELDS = (
    "full_name",
    "phone",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
)


class JsonAddressRepository(AddressRepository):

    def __init__(self, file_path: Path) -> None:
        self._store = JsonFileStore(file_path)

    def get_for_customer(self, customer_id: str, address_id: str) -> ShippingAddress | None:
        for raw in self._store.load():
            if raw["id"] == address_id and raw["customer_id"] == customer_id:
                return ShippingAddress(**{k: raw[k] for k in _ADDRESS_FIELDS if k in raw})
        return None
