"""Organizational roles and the permissions they carry.

Roles are a closed set; anything arriving from the identity provider is
parsed into ``Role`` at the boundary so the rest of the code never
compares raw strings.
"""
import enum


class Role(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    EXECUTIVE = "executive"
    HR_HEAD = "hr_head"
    HR_OFFICER = "hr_officer"
    FINANCE_DIRECTOR = "finance_director"
    ACCOUNTANT = "accountant"
    FINANCE_OFFICER = "finance_officer"
    DEPT_MANAGER = "dept_manager"
    PROJECT_MANAGER = "project_manager"
    EMPLOYEE = "employee"
    IT_MANAGER = "it_manager"
    IT_SUPPORT = "it_support"
    TRAINER = "trainer"
    PROCUREMENT_OFFICER = "procurement_officer"
    FACILITIES_MANAGER = "facilities_manager"
    HSE_MANAGER = "hse_manager"
    CSR_MANAGER = "csr_manager"
    SECURITY_MANAGER = "security_manager"
    SECURITY_ADMIN = "security_admin"
    RND_MANAGER = "rnd_manager"
    WELLNESS_MANAGER = "wellness_manager"
    LEGAL_COUNSEL = "legal_counsel"
    AUDITOR = "auditor"


class Permission(str, enum.Enum):
    WORKFLOW_CREATE = "workflow:create"
    WORKFLOW_VIEW_ALL = "workflow:view_all"
    DELEGATION_MANAGE_OWN = "delegation:manage_own"
    DELEGATION_MANAGE_ANY = "delegation:manage_any"


_BASELINE = frozenset({Permission.WORKFLOW_CREATE, Permission.DELEGATION_MANAGE_OWN})

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {role: _BASELINE for role in Role}
ROLE_PERMISSIONS[Role.SUPER_ADMIN] = frozenset(Permission)
ROLE_PERMISSIONS[Role.EXECUTIVE] = _BASELINE | {Permission.WORKFLOW_VIEW_ALL}
ROLE_PERMISSIONS[Role.AUDITOR] = _BASELINE | {Permission.WORKFLOW_VIEW_ALL}


def parse_role(value: "str | Role") -> Role:
    """Coerce a stored role string to ``Role``; raises ValueError if unknown."""
    return value if isinstance(value, Role) else Role(value)


def has_permission(role: "str | Role", permission: Permission) -> bool:
    try:
        parsed = parse_role(role)
    except ValueError:
        return False
    return permission in ROLE_PERMISSIONS[parsed]
