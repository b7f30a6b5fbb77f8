"""Settlement state machine with transition validation."""

from __future__ import annotations

from enum import Enum
from uuid import UUID

from trip_settlement.config import SettlementPolicy


class SettlementStatus(str, Enum):
    """Settlement status values."""

    PENDING = "pending"
    REVIEW = "review"
    APPROVED = "approved"
    PAID = "paid"


class EntryStatus(str, Enum):
    """Receivable and payable status values."""

    OPEN = "open"
    PAID = "paid"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class SettlementLockedError(Exception):
    """Raised when a paid settlement would be recomputed or edited."""

    def __init__(self, settlement_id: UUID | None, action: str):
        self.settlement_id = settlement_id
        self.action = action
        super().__init__(f"Settlement {settlement_id} is paid and locked; cannot {action}")


class SettlementStateMachine:
    """State machine for settlement status transitions.

    Allowed transitions:
    - pending → review
    - review → approved
    - approved → review (reopen)
    - pending/review/approved → paid (mark as paid)

    Paid is terminal.
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        SettlementStatus.PENDING: [SettlementStatus.REVIEW, SettlementStatus.PAID],
        SettlementStatus.REVIEW: [SettlementStatus.APPROVED, SettlementStatus.PAID],
        SettlementStatus.APPROVED: [SettlementStatus.REVIEW, SettlementStatus.PAID],
        SettlementStatus.PAID: [],  # Terminal state
    }

    # Statuses where amounts may be recomputed in place
    RECALCULATION_ALLOWED = {
        SettlementStatus.PENDING,
        SettlementStatus.REVIEW,
        SettlementStatus.APPROVED,
    }

    @classmethod
    def can_transition(
        cls, from_status: str, to_status: str, policy: SettlementPolicy | None = None
    ) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        if to_status not in allowed:
            return False
        if (
            to_status == SettlementStatus.PAID
            and policy is not None
            and policy.require_approval_before_payment
        ):
            return from_status == SettlementStatus.APPROVED
        return True

    @classmethod
    def validate_transition(
        cls, from_status: str, to_status: str, policy: SettlementPolicy | None = None
    ) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status, policy):
            reason = None
            if from_status == SettlementStatus.PAID:
                reason = "paid is terminal"
            elif to_status == SettlementStatus.PAID:
                reason = "settlement must be approved before payment"
            else:
                allowed = cls.get_next_statuses(from_status)
                if allowed:
                    reason = "allowed: " + ", ".join(SettlementStatus(s).value for s in allowed)
                else:
                    reason = "unknown status"
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def can_recalculate(cls, status: str) -> bool:
        """Check if amounts may be recomputed in this status."""
        return status in cls.RECALCULATION_ALLOWED

    @classmethod
    def validate_recalculation(cls, status: str, settlement_id: UUID | None = None) -> None:
        """Raise SettlementLockedError if the settlement can no longer change."""
        if not cls.can_recalculate(status):
            raise SettlementLockedError(settlement_id, "recalculate")

    @classmethod
    def is_reopen(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition is a reopen (approved → review)."""
        return from_status == SettlementStatus.APPROVED and to_status == SettlementStatus.REVIEW

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
