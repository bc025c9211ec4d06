"""Tests for the role/permission table."""
import pytest

from adminos.core.roles import Permission, Role, has_permission, parse_role


def test_every_role_can_create_and_manage_own_delegation():
    for role in Role:
        assert has_permission(role, Permission.WORKFLOW_CREATE)
        assert has_permission(role, Permission.DELEGATION_MANAGE_OWN)


@pytest.mark.parametrize("role", [Role.SUPER_ADMIN, Role.EXECUTIVE, Role.AUDITOR])
def test_oversight_roles_view_all(role):
    assert has_permission(role, Permission.WORKFLOW_VIEW_ALL)


def test_regular_roles_do_not_view_all():
    assert not has_permission(Role.EMPLOYEE, Permission.WORKFLOW_VIEW_ALL)
    assert not has_permission("dept_manager", Permission.WORKFLOW_VIEW_ALL)


def test_only_super_admin_manages_any_delegation():
    holders = [r for r in Role if has_permission(r, Permission.DELEGATION_MANAGE_ANY)]
    assert holders == [Role.SUPER_ADMIN]


def test_unknown_role_string():
    assert not has_permission("ADMIN", Permission.WORKFLOW_CREATE)
    with pytest.raises(ValueError):
        parse_role("ADMIN")
    assert parse_role("hr_head") is Role.HR_HEAD
