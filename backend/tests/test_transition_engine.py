"""Unit tests for the approval transition engine.

The engine is pure, so every test builds workflow values directly.
"""
from datetime import datetime, timezone

import pytest

from adminos.core.roles import Role
from adminos.schemas.approval_workflow import LevelStatus, RequestType, WorkflowStatus
from adminos.services.approval_chain import new_workflow
from adminos.services.transition import (
    TransitionError,
    approve_at_level,
    reject_at_level,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _two_level():
    return new_workflow(
        request_type=RequestType.EXPENSE,
        requested_by="requester",
        levels=[(Role.DEPT_MANAGER, ["u1"]), (Role.FINANCE_DIRECTOR, ["u2"])],
        description="Team dinner",
        amount=500,
    )


def _chain(n: int):
    return new_workflow(
        request_type=RequestType.BUDGET,
        requested_by="requester",
        levels=[(Role.DEPT_MANAGER, [f"a{i}", f"b{i}"]) for i in range(n)],
    )


# ─── Concrete scenarios ───────────────────────────────────────────────────────

def test_two_level_chain_full_approval():
    wf = _two_level()
    assert wf.current_approval_level == 0
    assert wf.overall_status == WorkflowStatus.PENDING

    first = approve_at_level(wf, "u1", now=NOW)
    assert first.ok
    wf = first.workflow
    assert wf.approval_chain[0].status == LevelStatus.APPROVED
    assert wf.approval_chain[0].acted_by == "u1"
    assert wf.approval_chain[0].acted_at == NOW
    assert wf.current_approval_level == 1
    assert wf.overall_status == WorkflowStatus.PENDING

    second = approve_at_level(wf, "u2", comment="ok", now=NOW)
    assert second.ok
    wf = second.workflow
    assert wf.approval_chain[1].status == LevelStatus.APPROVED
    assert wf.approval_chain[1].comments == "ok"
    assert wf.current_approval_level == 2
    assert wf.overall_status == WorkflowStatus.APPROVED

    late = reject_at_level(wf, "u2", "too late")
    assert late.error == TransitionError.ALREADY_TERMINAL
    assert late.workflow == wf


def test_two_level_chain_rejection_freezes_cursor():
    wf = _two_level()

    result = reject_at_level(wf, "u1", "over budget", now=NOW)
    assert result.ok
    wf = result.workflow
    assert wf.approval_chain[0].status == LevelStatus.REJECTED
    assert wf.approval_chain[0].comments == "over budget"
    assert wf.approval_chain[1].status == LevelStatus.PENDING
    assert wf.current_approval_level == 0
    assert wf.overall_status == WorkflowStatus.REJECTED

    after = approve_at_level(wf, "u2")
    assert after.error == TransitionError.ALREADY_TERMINAL
    assert after.workflow == wf


# ─── Properties ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize("n", [1, 2, 5])
def test_full_chain_approval_reaches_end(n):
    wf = _chain(n)
    for i in range(n):
        before = wf.current_approval_level
        result = approve_at_level(wf, f"b{i}")
        assert result.ok
        wf = result.workflow
        assert wf.current_approval_level == before + 1
        expected = WorkflowStatus.APPROVED if i == n - 1 else WorkflowStatus.PENDING
        assert wf.overall_status == expected
    assert wf.current_approval_level == n
    assert all(level.status == LevelStatus.APPROVED for level in wf.approval_chain)


@pytest.mark.parametrize("level", [0, 1, 2])
def test_reject_at_any_level_keeps_cursor(level):
    wf = _chain(3)
    for i in range(level):
        wf = approve_at_level(wf, f"a{i}").workflow

    result = reject_at_level(wf, f"a{level}", "no")
    assert result.ok
    assert result.workflow.current_approval_level == level
    assert result.workflow.overall_status == WorkflowStatus.REJECTED


def test_unauthorized_actor_gets_not_authorized():
    wf = _two_level()
    # u2 is an approver, but not for the current level
    for actor in ("u2", "stranger", "requester"):
        assert approve_at_level(wf, actor).error == TransitionError.NOT_AUTHORIZED
        assert reject_at_level(wf, actor, "x").error == TransitionError.NOT_AUTHORIZED

    wf = approve_at_level(wf, "u1").workflow
    assert approve_at_level(wf, "u1").error == TransitionError.NOT_AUTHORIZED


def test_any_listed_approver_may_act():
    wf = _chain(1)
    assert approve_at_level(wf, "a0").ok
    assert approve_at_level(wf, "b0").ok


def test_terminal_workflow_is_left_unchanged():
    wf = approve_at_level(_chain(1), "a0").workflow
    snapshot = wf.model_copy(deep=True)

    for result in (approve_at_level(wf, "a0"), reject_at_level(wf, "a0", "why")):
        assert result.error == TransitionError.ALREADY_TERMINAL
        assert not result.ok
    assert wf == snapshot


# ─── Input handling ───────────────────────────────────────────────────────────

@pytest.mark.parametrize("reason", [None, "", "   "])
def test_reject_requires_reason(reason):
    wf = _two_level()
    result = reject_at_level(wf, "u1", reason)
    assert result.error == TransitionError.INVALID_INPUT
    assert result.workflow.overall_status == WorkflowStatus.PENDING


def test_reject_checks_authorization_before_reason():
    result = reject_at_level(_two_level(), "stranger", "")
    assert result.error == TransitionError.NOT_AUTHORIZED


def test_engine_does_not_mutate_its_input():
    wf = _two_level()
    snapshot = wf.model_copy(deep=True)

    approve_at_level(wf, "u1")
    reject_at_level(wf, "u1", "no")

    assert wf == snapshot


def test_approve_stamps_updated_at():
    wf = _two_level()
    result = approve_at_level(wf, "u1", now=NOW)
    assert result.workflow.updated_at == NOW


def test_actor_id_compared_as_string():
    wf = new_workflow(
        request_type=RequestType.LEAVE,
        requested_by="1",
        levels=[(Role.HR_HEAD, ["42"])],
    )
    assert approve_at_level(wf, 42).ok
