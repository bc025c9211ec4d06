"""Tests for the read-only chain queries and workflow construction."""
import pytest

from adminos.core.roles import Role
from adminos.schemas.approval_workflow import (
    ApprovalLevel,
    LevelStatus,
    RequestType,
    WorkflowStatus,
)
from adminos.services.approval_chain import (
    ChainConfigurationError,
    current_level,
    involves,
    is_authorized,
    is_terminal,
    new_workflow,
    pending_approvers,
    validate_chain,
)
from adminos.services.transition import approve_at_level, reject_at_level


def _wf():
    return new_workflow(
        request_type=RequestType.PROJECT,
        requested_by="req",
        levels=[(Role.DEPT_MANAGER, ["m1", "m2"]), (Role.EXECUTIVE, ["ceo"])],
        description="New CRM rollout",
    )


def test_new_workflow_starts_pending_at_zero():
    wf = _wf()
    assert wf.current_approval_level == 0
    assert wf.overall_status == WorkflowStatus.PENDING
    assert [lvl.level for lvl in wf.approval_chain] == [0, 1]
    assert all(lvl.status == LevelStatus.PENDING for lvl in wf.approval_chain)
    assert wf.version == 0
    assert wf.id is None


def test_current_level_follows_cursor():
    wf = _wf()
    assert current_level(wf).role == Role.DEPT_MANAGER

    wf = approve_at_level(wf, "m1").workflow
    assert current_level(wf).role == Role.EXECUTIVE

    wf = approve_at_level(wf, "ceo").workflow
    assert current_level(wf) is None


def test_is_authorized_only_for_current_level():
    wf = _wf()
    assert is_authorized(wf, "m1")
    assert is_authorized(wf, "m2")
    assert not is_authorized(wf, "ceo")
    assert not is_authorized(wf, "req")


def test_is_terminal():
    wf = _wf()
    assert not is_terminal(wf)
    assert is_terminal(reject_at_level(wf, "m2", "no").workflow)


def test_involves_requester_and_every_approver():
    wf = _wf()
    for actor in ("req", "m1", "m2", "ceo"):
        assert involves(wf, actor)
    assert not involves(wf, "outsider")


def test_pending_approvers():
    wf = _wf()
    assert pending_approvers(wf) == ["m1", "m2"]
    assert pending_approvers(reject_at_level(wf, "m1", "no").workflow) == []


def test_approver_ids_are_deduplicated():
    level = ApprovalLevel(level=0, role=Role.HR_HEAD, approver_ids=["a", "b", "a"])
    assert level.approver_ids == ["a", "b"]


def test_empty_chain_rejected():
    with pytest.raises(ChainConfigurationError, match="at least one level"):
        new_workflow(request_type=RequestType.LEAVE, requested_by="req", levels=[])


def test_level_without_approvers_rejected():
    with pytest.raises(ChainConfigurationError, match="no eligible approvers"):
        new_workflow(
            request_type=RequestType.LEAVE,
            requested_by="req",
            levels=[(Role.DEPT_MANAGER, ["m1"]), (Role.HR_HEAD, [])],
        )


def test_validate_chain_requires_pending_levels():
    level = ApprovalLevel(
        level=0, role=Role.HR_HEAD, approver_ids=["h"], status=LevelStatus.APPROVED
    )
    with pytest.raises(ChainConfigurationError, match="must start pending"):
        validate_chain([level])


def test_requester_cannot_approve_own_request():
    with pytest.raises(ChainConfigurationError, match="requester"):
        new_workflow(
            request_type=RequestType.EXPENSE,
            requested_by="req",
            levels=[(Role.DEPT_MANAGER, ["m1"]), (Role.EXECUTIVE, ["ceo", "req"])],
        )


def test_validate_chain_without_requester_skips_self_check():
    level = ApprovalLevel(level=0, role=Role.HR_HEAD, approver_ids=["req"])
    validate_chain([level])
    with pytest.raises(ChainConfigurationError):
        validate_chain([level], requested_by="req")
