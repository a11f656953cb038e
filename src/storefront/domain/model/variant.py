"""Variant aggregate: one purchasable SKU and its stock ledger entry.

Each variant knows how many units physically exist (``total_stock``) and
how many of them are committed to in-flight orders (``reserved_stock``).
``reserved_stock`` is only ever changed through ``reserve``/``release``,
and those are only ever called through ``VariantRepository.mutate`` so the
read-modify-write happens atomically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from storefront.domain.exceptions import InsufficientStockError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class Variant:
    """Aggregate root for per-SKU stock.

    Invariants:
    - ``0 <= reserved_stock <= total_stock``
    - ``available_stock`` is always >= 0
    """

    id: str
    product_id: str
    size: str = ""
    color: str = ""
    price_adjustment: Decimal = Decimal("0")
    total_stock: int = 0
    reserved_stock: int = 0

    def __post_init__(self) -> None:
        if self.total_stock < 0:
            raise ValidationError("Total stock cannot be negative")
        if not 0 <= self.reserved_stock <= self.total_stock:
            raise ValidationError(
                f"Reserved stock {self.reserved_stock} outside 0..{self.total_stock}"
            )

    @property
    def available_stock(self) -> int:
        return self.total_stock - self.reserved_stock

    @property
    def label(self) -> str:
        parts = [p for p in (self.color, self.size) if p]
        return f"{self.product_id} ({' / '.join(parts)})" if parts else self.product_id

    def reserve(self, quantity: int) -> None:
        """Commit ``quantity`` units to an order.

        Raises InsufficientStockError and leaves the record untouched if
        fewer than ``quantity`` units are available.
        """
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        if quantity > self.available_stock:
            raise InsufficientStockError(
                self.id, quantity, self.available_stock, label=self.label
            )
        self.reserved_stock += quantity

    def release(self, quantity: int) -> int:
        """Return ``quantity`` reserved units to the available pool.

        Releasing more than is reserved means an upstream bookkeeping bug;
        the release is clamped at zero and logged rather than corrupting
        the ledger. Returns the number of units actually released.
        """
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")
        if quantity > self.reserved_stock:
            logger.error(
                "Release of %d units for variant %s exceeds reserved %d; clamping",
                quantity, self.id, self.reserved_stock,
            )
            quantity = self.reserved_stock
        self.reserved_stock -= quantity
        return quantity

    def adjust_total(self, new_total: int) -> None:
        """Administrative correction of the physical count."""
        if new_total < 0:
            raise ValidationError("Total stock cannot be negative")
        if new_total < self.reserved_stock:
            raise ValidationError(
                f"Cannot set total stock of {self.label} to {new_total} "
                f"while {self.reserved_stock} units are reserved"
            )
        self.total_stock = new_total
