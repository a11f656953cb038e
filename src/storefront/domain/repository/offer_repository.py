"""Abstract repository for Offer aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.discount import Offer


class OfferRepository(ABC):

    @abstractmethod
    def list_running(self, now: datetime) -> list[Offer]:
        """Return active offers whose window contains ``now``."""

    @abstractmethod
    def save(self, offer: Offer) -> None:
        """Persist a new or updated offer."""
