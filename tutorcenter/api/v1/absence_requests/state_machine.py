"""
Absence request lifecycle.

    (none)    --create-->            PENDING
    PENDING   --resolve(APPROVED)--> APPROVED
    PENDING   --resolve(DECLINED)--> DECLINED
    PENDING   --withdraw-->          WITHDRAWN
    WITHDRAWN --resubmit-->          PENDING

APPROVED and DECLINED are terminal. WITHDRAWN may only go back to PENDING.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from tutorcenter.core.enums import AbsenceRequestStatus as S
from tutorcenter.core.exceptions import (
    REASON_REQUEST_DUPLICATE,
    REASON_REQUEST_STATUS_INVALID,
    REASON_REQUEST_WITHDRAWN_NOT_RESOLVABLE,
    Conflict,
)


class Action(str, Enum):
    CREATE = "create"
    RESOLVE = "resolve"
    WITHDRAW = "withdraw"
    RESUBMIT = "resubmit"


ALLOWED_TRANSITIONS: Dict[Optional[S], FrozenSet[S]] = {
    None: frozenset({S.PENDING}),
    S.PENDING: frozenset({S.APPROVED, S.DECLINED, S.WITHDRAWN}),
    S.WITHDRAWN: frozenset({S.PENDING}),
    S.APPROVED: frozenset(),
    S.DECLINED: frozenset(),
}

# action -> (required current status, permitted targets)
ACTION_EDGES: Dict[Action, Tuple[Optional[S], FrozenSet[S]]] = {
    Action.CREATE: (None, frozenset({S.PENDING})),
    Action.RESOLVE: (S.PENDING, frozenset({S.APPROVED, S.DECLINED})),
    Action.WITHDRAW: (S.PENDING, frozenset({S.WITHDRAWN})),
    Action.RESUBMIT: (S.WITHDRAWN, frozenset({S.PENDING})),
}


_CONFLICT_MESSAGES: Dict[Action, str] = {
    Action.CREATE: "Absence request already exists for this session and student",
    Action.RESOLVE: "Request already resolved",
    Action.WITHDRAW: "Request cannot be withdrawn",
    Action.RESUBMIT: "Request cannot be resubmitted",
}


def is_allowed(current: Optional[S], target: S) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def required_status(action: Action) -> Optional[S]:
    return ACTION_EDGES[action][0]


def targets(action: Action) -> FrozenSet[S]:
    return ACTION_EDGES[action][1]


def transition_conflict(action: Action, current: S) -> Conflict:
    """Build the Conflict reported when `action` is attempted on a row in `current` status."""
    current = S(current)
    if action == Action.RESOLVE and current == S.WITHDRAWN:
        # Withdrawn requests belong to the parent; staff never resolve them
        return Conflict(
            "Request is withdrawn",
            reason=REASON_REQUEST_WITHDRAWN_NOT_RESOLVABLE,
            details={"status": current.value},
        )
    return Conflict(
        _CONFLICT_MESSAGES[action],
        reason=REASON_REQUEST_DUPLICATE if action == Action.CREATE else REASON_REQUEST_STATUS_INVALID,
        details={"status": current.value},
    )


def ensure_transition(action: Action, current: Optional[S], target: S) -> None:
    """Raise Conflict unless `action` moves `current` to `target` along the graph."""
    if current is not None:
        current = S(current)
    if current != required_status(action) or target not in targets(action) or not is_allowed(current, target):
        if current is None:
            raise Conflict("Request does not exist yet", reason=REASON_REQUEST_STATUS_INVALID)
        raise transition_conflict(action, current)
