"""Read-only port onto the customer address book.

The address book is owned elsewhere; checkout only copies a record onto
the order as a snapshot.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.value_objects import ShippingAddress


class AddressRepository(ABC):

    @abstractmethod
    def get_for_customer(self, customer_id: str, address_id: str) -> ShippingAddress | None:
        """Return the customer's saved address, or None if it is not theirs."""
