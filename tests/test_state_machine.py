"""Unit tests for the absence request transition graph."""

import pytest

from tutorcenter.api.v1.absence_requests.state_machine import (
    ALLOWED_TRANSITIONS,
    Action,
    ensure_transition,
    is_allowed,
    transition_conflict,
)
from tutorcenter.core.enums import AbsenceRequestStatus as S
from tutorcenter.core.exceptions import Conflict


def test_graph_edges() -> None:
    """Exactly the five documented edges exist."""
    edges = {(src, dst) for src, dsts in ALLOWED_TRANSITIONS.items() for dst in dsts}
    assert edges == {
        (None, S.PENDING),
        (S.PENDING, S.APPROVED),
        (S.PENDING, S.DECLINED),
        (S.PENDING, S.WITHDRAWN),
        (S.WITHDRAWN, S.PENDING),
    }


@pytest.mark.parametrize("terminal", [S.APPROVED, S.DECLINED])
def test_resolved_states_are_terminal(terminal: S) -> None:
    for target in S:
        assert not is_allowed(terminal, target)


def test_withdrawn_only_reopens() -> None:
    assert is_allowed(S.WITHDRAWN, S.PENDING)
    for target in (S.APPROVED, S.DECLINED, S.WITHDRAWN):
        assert not is_allowed(S.WITHDRAWN, target)


def test_resolving_withdrawn_has_dedicated_reason() -> None:
    with pytest.raises(Conflict) as exc:
        ensure_transition(Action.RESOLVE, S.WITHDRAWN, S.APPROVED)
    assert exc.value.reason == "REQUEST_WITHDRAWN_NOT_RESOLVABLE"
    assert exc.value.status_code == 409


def test_conflict_reports_current_status() -> None:
    err = transition_conflict(Action.WITHDRAW, S.APPROVED)
    assert err.reason == "REQUEST_STATUS_INVALID"
    assert err.details == {"status": "APPROVED"}


def test_duplicate_create_is_conflict() -> None:
    err = transition_conflict(Action.CREATE, S.WITHDRAWN)
    assert err.reason == "REQUEST_DUPLICATE"
    assert err.details["status"] == "WITHDRAWN"


def test_action_must_match_edge() -> None:
    # PENDING -> PENDING is not a resubmit
    with pytest.raises(Conflict):
        ensure_transition(Action.RESUBMIT, S.PENDING, S.PENDING)
    # withdraw cannot be used to approve
    with pytest.raises(Conflict):
        ensure_transition(Action.WITHDRAW, S.PENDING, S.APPROVED)
    ensure_transition(Action.RESOLVE, S.PENDING, S.DECLINED)
    ensure_transition(Action.CREATE, None, S.PENDING)
