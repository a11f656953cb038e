"""Abstract repository for ReturnRequest aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.returns import ReturnRequest


class ReturnRepository(ABC):

    @abstractmethod
    def get_by_id(self, return_id: str) -> ReturnRequest | None:
        """Return a return request by its ID, or None if not found."""

    @abstractmethod
    def list_for_order(self, order_id: int) -> list[ReturnRequest]:
        """Return every return request raised against an order."""

    @abstractmethod
    def list_all(self) -> list[ReturnRequest]:
        """Return every return request."""

    @abstractmethod
    def save(self, request: ReturnRequest) -> None:
        """Persist a new or updated return request."""
