"""Review state machines for payment records and the per-post access state."""

from __future__ import annotations

from enum import Enum

MANUAL_PAYMENT_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["approved", "rejected"],
    "approved": [],
    "rejected": [],
}

WALLET_TRANSACTION_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["verified", "rejected"],
    "verified": [],
    "rejected": [],
}


class InvalidTransitionError(ValueError):
    """Raised when a record is moved out of a state it cannot leave."""


class AccessState(str, Enum):
    """Contact access of one tutor to one post."""

    LOCKED = "locked"
    PENDING_REVIEW = "pending_review"
    UNLOCKED = "unlocked"


def validate_transition(
    transitions: dict[str, list[str]],
    current_status: str,
    target_status: str,
) -> None:
    """Validate a state transition. Raises InvalidTransitionError if invalid."""
    valid = transitions.get(current_status, [])
    if target_status not in valid:
        msg = f"Invalid transition: {current_status} -> {target_status}. Valid transitions: {valid}"
        raise InvalidTransitionError(msg)


def resolve_access_state(has_paid_unlock: bool, has_pending_payment: bool) -> AccessState:
    """
    Collapse unlock/payment facts into the access state.

    A rejected payment leaves no pending one behind, so the pair falls back to
    LOCKED and may be resubmitted.
    """
    if has_paid_unlock:
        return AccessState.UNLOCKED
    if has_pending_payment:
        return AccessState.PENDING_REVIEW
    return AccessState.LOCKED
