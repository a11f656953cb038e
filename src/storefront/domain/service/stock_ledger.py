"""Domain service: Stock Ledger.

The single entry point for every change to ``reserved_stock`` and
``total_stock``. Checkout, cancellation, returns and inventory
administration all come through here; none of them touch the counters
directly.

Reservations for an order are all-or-nothing: availability is checked for
every line before anything is mutated, and if a reservation still loses a
race afterwards the ones already taken are rolled back.

Releases tied to an order item are recorded in a release ledger, so a
reservation can be given back at most once no matter how many callers
ask for it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from storefront.domain.exceptions import (
    DoubleReleaseError,
    EntityNotFoundError,
    InsufficientStockError,
)
from storefront.domain.model.variant import Variant
from storefront.domain.repository.variant_repository import VariantRepository

logger = logging.getLogger(__name__)


class ReleaseOutcome(Enum):
    RELEASED = "released"
    CLAMPED = "clamped"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class StockLine:
    """A quantity of one variant that an order wants to hold."""

    variant_id: str
    quantity: int
    label: str = ""


class StockLedger:

    def __init__(self, variant_repo: VariantRepository) -> None:
        self._variant_repo = variant_repo

    # --- Queries --------------------------------------------------------------

    def available_stock(self, variant_id: str) -> int:
        return self._get(variant_id).available_stock

    def check_availability(self, lines: list[StockLine]) -> None:
        """Fail fast if any line asks for more than is available.

        Read-only. Quantities for the same variant are summed so two cart
        lines cannot each pass on their own and jointly oversell.
        """
        wanted: dict[str, int] = {}
        labels: dict[str, str] = {}
        for line in lines:
            wanted[line.variant_id] = wanted.get(line.variant_id, 0) + line.quantity
            labels.setdefault(line.variant_id, line.label)

        for variant_id, quantity in wanted.items():
            variant = self._get(variant_id)
            if quantity > variant.available_stock:
                raise InsufficientStockError(
                    variant_id,
                    quantity,
                    variant.available_stock,
                    label=labels[variant_id] or variant.label,
                )

    # --- Commands -------------------------------------------------------------

    def reserve(self, variant_id: str, quantity: int) -> None:
        """Atomically commit ``quantity`` units or raise InsufficientStockError."""
        try:
            self._variant_repo.mutate(variant_id, lambda v: v.reserve(quantity))
        except InsufficientStockError as exc:
            logger.info(
                "Reservation of %d units for variant %s refused (%d available)",
                quantity, variant_id, exc.available,
            )
            raise

    def reserve_all(self, lines: list[StockLine]) -> None:
        """Reserve every line or none of them."""
        taken: list[StockLine] = []
        try:
            for line in lines:
                self.reserve(line.variant_id, line.quantity)
                taken.append(line)
        except Exception:
            if taken:
                self.rollback(taken)
            raise

    def rollback(self, lines: list[StockLine]) -> None:
        """Give back reservations taken by ``reserve_all`` in the same unit of work."""
        logger.warning("Rolling back %d reservation(s)", len(lines))
        for line in reversed(lines):
            self._variant_repo.mutate(line.variant_id, lambda v, q=line.quantity: v.release(q))

    def release(
        self,
        variant_id: str,
        quantity: int,
        release_key: str,
        event: str,
    ) -> ReleaseOutcome:
        """Return reserved units for one order item to the available pool.

        ``release_key`` identifies the reservation (the order item id); a
        second release for the same key is logged and ignored.
        """
        try:
            self._variant_repo.claim_release(release_key, event)
        except DoubleReleaseError:
            logger.warning(
                "Ignoring duplicate %s release of %d units for variant %s (item %s)",
                event, quantity, variant_id, release_key,
            )
            return ReleaseOutcome.DUPLICATE

        try:
            released = self._variant_repo.mutate(variant_id, lambda v: v.release(quantity))
        except Exception:
            self._variant_repo.unclaim_release(release_key)
            raise

        logger.info(
            "Released %d units for variant %s on %s (item %s)",
            released, variant_id, event, release_key,
        )
        return ReleaseOutcome.RELEASED if released == quantity else ReleaseOutcome.CLAMPED

    def adjust_total(self, variant_id: str, new_total: int) -> Variant:
        """Administrative correction of a variant's physical count."""

        def _apply(variant: Variant) -> Variant:
            variant.adjust_total(new_total)
            return variant

        variant = self._variant_repo.mutate(variant_id, _apply)
        logger.info("Total stock for variant %s set to %d", variant_id, new_total)
        return variant

    # --- Internal helpers -----------------------------------------------------

    def _get(self, variant_id: str) -> Variant:
        variant = self._variant_repo.get_by_id(variant_id)
        if variant is None:
            raise EntityNotFoundError(f"Variant '{variant_id}' not found")
        return variant
