"""Abstract repository for the Variant aggregate (the stock ledger store).

Stock counters are never written with a plain load/save pair. Every change
goes through ``mutate``, which implementations must run as one atomic
read-modify-write so that two checkouts can never both see the same
available units.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, TypeVar

from storefront.domain.model.variant import Variant

T = TypeVar("T")


class VariantRepository(ABC):

    @abstractmethod
    def get_by_id(self, variant_id: str) -> Variant | None:
        """Return a variant by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Variant]:
        """Return every variant."""

    @abstractmethod
    def add(self, variant: Variant) -> None:
        """Register a new variant (catalog management)."""

    @abstractmethod
    def mutate(self, variant_id: str, mutation: Callable[[Variant], T]) -> T:
        """Atomically load a variant, apply ``mutation`` and persist it.

        If ``mutation`` raises, nothing is persisted and the exception
        propagates. Raises EntityNotFoundError for an unknown variant.
        """

    @abstractmethod
    def claim_release(self, release_key: str, event: str) -> None:
        """Record that the reservation behind ``release_key`` is released.

        Raises DoubleReleaseError if the key was already claimed.
        """

    @abstractmethod
    def unclaim_release(self, release_key: str) -> None:
        """Forget a claim whose release could not be applied."""
