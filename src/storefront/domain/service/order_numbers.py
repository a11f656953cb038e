"""Human-readable order numbers: ``ORD-YYYYMMDD-XXXXXX``."""

from __future__ import annotations

import secrets
from datetime import datetime
from typing import Callable

from storefront.domain.exceptions import DomainException

MAX_ATTEMPTS = 10


def generate_order_number(
    now: datetime,
    is_taken: Callable[[str], bool],
    token: Callable[[], str] = lambda: secrets.token_hex(3),
) -> str:
    """Random daily suffix, collision-checked against existing orders."""
    for _ in range(MAX_ATTEMPTS):
        candidate = f"ORD-{now:%Y%m%d}-{token().upper()}"
        if not is_taken(candidate):
            return candidate
    raise DomainException("Could not allocate a unique order number")
