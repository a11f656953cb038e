"""ReturnRequest aggregate: a customer's claim against a delivered item."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import InvalidTransitionError, ValidationError


class ReturnStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


_RETURN_TRANSITIONS: dict[ReturnStatus, frozenset[ReturnStatus]] = {
    ReturnStatus.PENDING: frozenset(
        {ReturnStatus.APPROVED, ReturnStatus.REJECTED, ReturnStatus.COMPLETED}
    ),
    ReturnStatus.APPROVED: frozenset({ReturnStatus.REJECTED, ReturnStatus.COMPLETED}),
    ReturnStatus.REJECTED: frozenset(),
    ReturnStatus.COMPLETED: frozenset(),
}

OPEN_STATUSES = frozenset({ReturnStatus.PENDING, ReturnStatus.APPROVED})


@dataclass
class ReturnRequest:
    """Terminal at REJECTED or COMPLETED.

    Stock for the item goes back to the pool only on the move into
    COMPLETED; approving or rejecting has no stock effect.
    """

    id: str
    order_id: int
    order_item_id: str
    product_id: str
    product_name: str
    customer_id: str
    reason: str
    additional_notes: str | None = None
    status: ReturnStatus = ReturnStatus.PENDING
    admin_note: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.reason or not self.reason.strip():
            raise ValidationError("A reason is required for a return")

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @property
    def is_terminal(self) -> bool:
        return not _RETURN_TRANSITIONS[self.status]

    def decide(
        self, decision: ReturnStatus, admin_note: str | None = None, at: datetime | None = None
    ) -> ReturnStatus:
        """Apply an admin decision and return the previous status."""
        previous = self.status
        if decision not in _RETURN_TRANSITIONS[previous]:
            raise InvalidTransitionError(previous.value, decision.value, "return request")
        self.status = decision
        if admin_note is not None:
            self.admin_note = admin_note.strip() or None
        self.updated_at = at or datetime.now(timezone.utc)
        return previous
