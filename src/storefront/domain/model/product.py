"""Product aggregate.

Products are owned by the catalog. Checkout only reads them to snapshot
the name and base price onto order lines; later catalog edits never
reach placed orders.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog.

    ``stock_quantity`` is a plain counter for products sold without
    variants; it does not take part in reservations.
    """

    id: str
    name: str
    base_price: Money
    stock_quantity: int = 0
    is_active: bool = True
