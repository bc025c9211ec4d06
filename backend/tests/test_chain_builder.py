"""Tests for default chain construction from roles and delegations."""
from datetime import date, timedelta
from decimal import Decimal

import pytest

from adminos.core.roles import Role
from adminos.models.delegation import UserDelegation
from adminos.models.user import User
from adminos.schemas.approval_workflow import RequestType
from adminos.services import chain_builder
from adminos.services.approval_chain import ChainConfigurationError
from adminos.services.chain_builder import EscalationStep


def _user(db, email, role, **kw):
    user = User(email=email, name=email.split("@")[0], role=role.value, **kw)
    db.add(user)
    db.flush()
    return user


@pytest.mark.parametrize(
    "amount,expected",
    [
        (None, [Role.FINANCE_DIRECTOR]),
        (Decimal("4999.99"), [Role.FINANCE_DIRECTOR]),
        (Decimal("5000"), [Role.DEPT_MANAGER, Role.FINANCE_DIRECTOR]),
    ],
)
def test_expense_steps_by_amount(amount, expected):
    steps = chain_builder.steps_for(RequestType.EXPENSE, amount)
    assert [s.role for s in steps] == expected


def test_budget_escalates_lowest_authority_first():
    steps = chain_builder.steps_for(RequestType.BUDGET, Decimal("75000"))
    assert [s.role for s in steps] == [Role.DEPT_MANAGER, Role.FINANCE_DIRECTOR, Role.EXECUTIVE]


def test_custom_policy_overrides_default():
    policy = {RequestType.LEAVE: (EscalationStep(Role.HR_HEAD, Decimal("0"), "HR"),)}
    assert [s.role for s in chain_builder.steps_for(RequestType.LEAVE, None, policy)] == [Role.HR_HEAD]


def test_resolve_approvers_skips_inactive_and_requester(db):
    alice = _user(db, "alice@example.com", Role.FINANCE_DIRECTOR)
    bob = _user(db, "bob@example.com", Role.FINANCE_DIRECTOR)
    _user(db, "carol@example.com", Role.FINANCE_DIRECTOR, is_active=False)
    _user(db, "dave@example.com", Role.HR_HEAD)

    approvers = chain_builder.resolve_approvers(db, Role.FINANCE_DIRECTOR, requested_by=str(bob.id))

    assert approvers == [str(alice.id)]


def test_resolve_approvers_includes_current_delegates(db):
    manager = _user(db, "mgr@example.com", Role.DEPT_MANAGER)
    deputy = _user(db, "deputy@example.com", Role.EMPLOYEE)
    expired = _user(db, "old@example.com", Role.EMPLOYEE)
    today = date(2026, 3, 10)
    db.add_all([
        UserDelegation(
            delegator_id=manager.id, delegate_id=deputy.id,
            valid_from=today - timedelta(days=1), valid_until=today + timedelta(days=5),
            is_active=True,
        ),
        UserDelegation(
            delegator_id=manager.id, delegate_id=expired.id,
            valid_from=today - timedelta(days=10), valid_until=today - timedelta(days=1),
            is_active=True,
        ),
    ])
    db.flush()

    approvers = chain_builder.resolve_approvers(db, Role.DEPT_MANAGER, on_date=today)

    assert approvers == [str(manager.id), str(deputy.id)]


def test_build_approval_chain(db):
    mgr = _user(db, "mgr@example.com", Role.DEPT_MANAGER)
    fd = _user(db, "fd@example.com", Role.FINANCE_DIRECTOR)

    levels = chain_builder.build_approval_chain(
        db, RequestType.EXPENSE, Decimal("8000"), requested_by="someone"
    )

    assert levels == [
        (Role.DEPT_MANAGER, [str(mgr.id)]),
        (Role.FINANCE_DIRECTOR, [str(fd.id)]),
    ]


def test_build_approval_chain_missing_role_raises(db):
    _user(db, "mgr@example.com", Role.DEPT_MANAGER)

    with pytest.raises(ChainConfigurationError, match="finance_director"):
        chain_builder.build_approval_chain(db, RequestType.EXPENSE, Decimal("8000"), "someone")


def test_build_approval_chain_requester_only_holder_raises(db):
    fd = _user(db, "fd@example.com", Role.FINANCE_DIRECTOR)

    with pytest.raises(ChainConfigurationError):
        chain_builder.build_approval_chain(db, RequestType.EXPENSE, None, str(fd.id))


def test_single_level_chain_stringifies_ids():
    assert chain_builder.single_level_chain(Role.SUPER_ADMIN, [1, "x"]) == [(Role.SUPER_ADMIN, ["1", "x"])]
