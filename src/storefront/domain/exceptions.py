"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so callers (CLI, HTTP adapters) can catch them uniformly and display
user-friendly messages.
"""

from __future__ import annotations

from enum import Enum


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ConcurrentModificationError(DomainException):
    """The record changed since it was loaded (optimistic version check)."""


class DuplicateIdempotencyKeyError(ConcurrentModificationError):
    """Another order was already saved under the same checkout idempotency key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"An order with idempotency key '{key}' already exists")


class InsufficientStockError(ValidationError):
    """Not enough available stock to satisfy a reservation."""

    def __init__(self, variant_id: str, requested: int, available: int, label: str = "") -> None:
        self.variant_id = variant_id
        self.requested = requested
        self.available = available
        name = label or f"variant {variant_id}"
        super().__init__(
            f"Insufficient stock for {name} "
            f"(need {requested}, have {available} available)"
        )


class InvalidTransitionError(ValidationError):
    """An illegal move in one of the order state machines."""

    def __init__(self, current: str, requested: str, detail: str = "") -> None:
        self.current = current
        self.requested = requested
        message = f"Cannot move from '{current}' to '{requested}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MissingTrackingInfoError(ValidationError):
    """A shipment was attempted without a shipping partner and tracking id."""


class CouponRejection(Enum):
    UNKNOWN_CODE = "unknown_code"
    INACTIVE = "inactive"
    NOT_STARTED = "not_started"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    NOT_ELIGIBLE = "not_eligible"


class InvalidCouponError(ValidationError):
    """A coupon cannot be applied; ``reason`` says why."""

    def __init__(self, code: str, reason: CouponRejection, detail: str = "") -> None:
        self.code = code
        self.reason = reason
        message = f"Coupon '{code}' cannot be applied ({reason.value})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EmptyCartError(ValidationError):
    """Checkout was attempted with no cart lines."""


class NoAddressSelectedError(ValidationError):
    """Checkout was attempted without a shipping address."""


class ReturnNotAllowedError(ValidationError):
    """A return request does not satisfy the return policy."""


class DoubleReleaseError(DomainException):
    """A reservation for an order item was already released.

    Raised by the release ledger and handled by the stock ledger, which
    logs it and carries on; it is never surfaced to callers.
    """

    def __init__(self, release_key: str) -> None:
        self.release_key = release_key
        super().__init__(f"Stock for '{release_key}' was already released")
