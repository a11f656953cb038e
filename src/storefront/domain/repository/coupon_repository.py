"""Abstract repository for Coupon aggregate.

``used_count`` is owned by this repository: it only moves through
``claim_usage``/``restore_usage``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from storefront.domain.model.discount import Coupon


class CouponRepository(ABC):

    @abstractmethod
    def get_by_code(self, code: str) -> Coupon | None:
        """Return a coupon by code (case-insensitive), or None."""

    @abstractmethod
    def list_all(self) -> list[Coupon]:
        """Return every coupon."""

    @abstractmethod
    def save(self, coupon: Coupon) -> None:
        """Persist a new or updated coupon definition.

        Implementations keep the stored ``used_count`` for existing coupons.
        """

    @abstractmethod
    def claim_usage(self, code: str, now: datetime) -> Coupon:
        """Atomically increment ``used_count`` if the coupon is usable at ``now``.

        Raises InvalidCouponError (and changes nothing) otherwise.
        """

    @abstractmethod
    def restore_usage(self, code: str) -> None:
        """Undo one ``claim_usage`` after a checkout rolled back."""
