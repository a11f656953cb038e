"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Order | None:
        """Return an order by its human-readable number, or None."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Order | None:
        """Return the order placed under a checkout idempotency key, or None."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order.

        New orders (``id is None``) get an ID assigned. For existing orders
        the stored version must equal ``order.version``, otherwise
        ConcurrentModificationError is raised and nothing is written. On
        success ``order.version`` is incremented.

        An idempotency key belongs to one order only; saving a second order
        with the same key raises DuplicateIdempotencyKeyError.
        """

    @abstractmethod
    def get_by_item_id(self, item_id: str) -> Order | None:
        """Return the order that owns a line item, or None."""
