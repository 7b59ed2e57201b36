"""
Bug Lifecycle
=============
Status state machine for bug records.

    open ──start-progress──▶ in-progress ──resolve──▶ resolved
      ▲                                                  │
      └────────────────────────reopen────────────────────┘

There is no terminal state. Writing the current status again is a no-op
transition and always allowed. The open → resolved shortcut exists only
when ALLOW_DIRECT_RESOLVE is enabled.
"""
from typing import Dict, FrozenSet, List, Optional, Tuple

from app.core import config
from app.core.constants import STATUSES

OPEN = "open"
IN_PROGRESS = "in-progress"
RESOLVED = "resolved"

# action name → (from_status, to_status)
ACTIONS: Dict[str, Tuple[str, str]] = {
    "start-progress": (OPEN, IN_PROGRESS),
    "resolve": (IN_PROGRESS, RESOLVED),
    "reopen": (RESOLVED, OPEN),
}

TRANSITIONS: FrozenSet[Tuple[str, str]] = frozenset(ACTIONS.values())
DIRECT_RESOLVE = (OPEN, RESOLVED)


def allowed_transitions(allow_direct_resolve: Optional[bool] = None) -> FrozenSet[Tuple[str, str]]:
    if allow_direct_resolve is None:
        allow_direct_resolve = config.ALLOW_DIRECT_RESOLVE
    if allow_direct_resolve:
        return TRANSITIONS | {DIRECT_RESOLVE}
    return TRANSITIONS


def can_transition(from_status: str, to_status: str, allow_direct_resolve: Optional[bool] = None) -> bool:
    """
    Return True if a record in from_status may move to to_status.

    Unknown statuses on either side are never legal.
    """
    if from_status not in STATUSES or to_status not in STATUSES:
        return False
    if from_status == to_status:
        return True
    return (from_status, to_status) in allowed_transitions(allow_direct_resolve)


def available_actions(status: str) -> List[str]:
    """Operator actions that can be applied to a record in this status."""
    return [name for name, (source, _) in ACTIONS.items() if source == status]


def resolve_action(action: str) -> Optional[Tuple[str, str]]:
    """Map an action name to its (from, to) pair, or None if unknown."""
    return ACTIONS.get(action)


def transition_error_message(from_status: str, to_status: str) -> str:
    return f"Cannot change status from {from_status} to {to_status}"
