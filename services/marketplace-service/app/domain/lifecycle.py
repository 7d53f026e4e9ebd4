"""
Investment lifecycle rules.

PENDING investments are either approved (ACTIVE) or cancelled; ACTIVE
investments complete. COMPLETED and CANCELLED are terminal.
"""

from typing import Dict, FrozenSet

from .entities import InvestmentStatus
from .exceptions import InvalidTransitionError

ALLOWED_TRANSITIONS: Dict[InvestmentStatus, FrozenSet[InvestmentStatus]] = {
    InvestmentStatus.PENDING: frozenset({InvestmentStatus.ACTIVE, InvestmentStatus.CANCELLED}),
    InvestmentStatus.ACTIVE: frozenset({InvestmentStatus.COMPLETED}),
    InvestmentStatus.COMPLETED: frozenset(),
    InvestmentStatus.CANCELLED: frozenset(),
}

# Statuses whose amount counts toward a business's raised capital
CAPACITY_HOLDING_STATUSES = frozenset(
    {InvestmentStatus.PENDING, InvestmentStatus.ACTIVE, InvestmentStatus.COMPLETED}
)

# Statuses that block a second investment in the same business
OPEN_STATUSES = frozenset({InvestmentStatus.PENDING, InvestmentStatus.ACTIVE})

STATUS_MESSAGES: Dict[InvestmentStatus, str] = {
    InvestmentStatus.PENDING: "Your investment is pending review",
    InvestmentStatus.ACTIVE: "Your investment has been approved and is now active",
    InvestmentStatus.COMPLETED: "Your investment has been completed",
    InvestmentStatus.CANCELLED: "Your investment has been cancelled",
}


def can_transition(current: InvestmentStatus, target: InvestmentStatus) -> bool:
    """Return True when ``current`` may move to ``target``."""
    return InvestmentStatus(target) in ALLOWED_TRANSITIONS[InvestmentStatus(current)]


def ensure_transition(current: InvestmentStatus, target: InvestmentStatus) -> None:
    """
    Validate a status change.

    Raises:
        InvalidTransitionError: If the move is a no-op or not allowed
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(InvestmentStatus(current).value, InvestmentStatus(target).value)


def holds_capacity(status: InvestmentStatus) -> bool:
    return InvestmentStatus(status) in CAPACITY_HOLDING_STATUSES


def releases_capacity(current: InvestmentStatus, target: InvestmentStatus) -> bool:
    """True when moving from ``current`` to ``target`` frees raised capital."""
    return holds_capacity(current) and not holds_capacity(target)


def status_message(status: InvestmentStatus) -> str:
    return STATUS_MESSAGES[InvestmentStatus(status)]
