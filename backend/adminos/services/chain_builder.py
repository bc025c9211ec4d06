"""Default approval chains for business requests.

Each request type has an escalation list of ``(role, threshold)`` steps,
ordered from the lowest authority up. A step joins the chain when the
request amount reaches its threshold (no amount counts as zero).

Approvers for a step are the active users holding its role, plus anyone
those users have delegated to for today. The requester never approves
their own request.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from adminos.core.roles import Role
from adminos.schemas.approval_workflow import RequestType
from adminos.services.approval_chain import ChainConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EscalationStep:
    role: Role
    threshold: Decimal
    label: str


DEFAULT_POLICY: dict[RequestType, tuple[EscalationStep, ...]] = {
    RequestType.BUDGET: (
        EscalationStep(Role.DEPT_MANAGER, Decimal("10000"), "Department Manager (10K+)"),
        EscalationStep(Role.FINANCE_DIRECTOR, Decimal("50000"), "Finance Director (50K+)"),
        EscalationStep(Role.EXECUTIVE, Decimal("0"), "CEO (All budgets)"),
    ),
    RequestType.LEAVE: (
        EscalationStep(Role.DEPT_MANAGER, Decimal("0"), "Department Manager"),
        EscalationStep(Role.HR_HEAD, Decimal("0"), "HR Head"),
        EscalationStep(Role.EXECUTIVE, Decimal("0"), "CEO"),
    ),
    RequestType.EXPENSE: (
        EscalationStep(Role.DEPT_MANAGER, Decimal("5000"), "Dept Manager (5K+)"),
        EscalationStep(Role.FINANCE_DIRECTOR, Decimal("0"), "Finance Director (All)"),
    ),
    RequestType.PROJECT: (
        EscalationStep(Role.DEPT_MANAGER, Decimal("0"), "Department Manager (All)"),
        EscalationStep(Role.EXECUTIVE, Decimal("100000"), "CEO (100K+)"),
    ),
    RequestType.ASSET: (
        EscalationStep(Role.PROCUREMENT_OFFICER, Decimal("0"), "Procurement Officer"),
        EscalationStep(Role.FINANCE_DIRECTOR, Decimal("50000"), "Finance Director (50K+)"),
    ),
}


def steps_for(
    request_type: RequestType,
    amount: Decimal | None,
    policy: dict[RequestType, tuple[EscalationStep, ...]] | None = None,
) -> list[EscalationStep]:
    """Escalation steps that apply to a request of this type and amount."""
    policy = policy or DEFAULT_POLICY
    value = Decimal(str(amount)) if amount is not None else Decimal("0")
    return [step for step in policy.get(request_type, ()) if value >= step.threshold]


def resolve_approvers(
    db: Session,
    role: Role,
    requested_by: str | None = None,
    on_date: date | None = None,
) -> list[str]:
    """Active holders of ``role`` plus their delegates valid on ``on_date``."""
    from adminos.models.delegation import UserDelegation
    from adminos.models.user import User

    on_date = on_date or date.today()

    holders = db.execute(
        select(User.id).where(
            User.role == role.value,
            User.is_active.is_(True),
            User.deleted_at.is_(None),
        ).order_by(User.created_at)
    ).scalars().all()

    approver_ids = [str(uid) for uid in holders]

    if holders:
        delegates = db.execute(
            select(UserDelegation.delegate_id).where(
                UserDelegation.delegator_id.in_(holders),
                UserDelegation.is_active.is_(True),
                UserDelegation.valid_from <= on_date,
                or_(UserDelegation.valid_until.is_(None), UserDelegation.valid_until >= on_date),
            )
        ).scalars().all()
        approver_ids.extend(str(d) for d in delegates)

    seen: set[str] = set()
    result: list[str] = []
    for uid in approver_ids:
        if uid in seen or uid == requested_by:
            continue
        seen.add(uid)
        result.append(uid)
    return result


def build_approval_chain(
    db: Session,
    request_type: RequestType,
    amount: Decimal | None,
    requested_by: str,
    policy: dict[RequestType, tuple[EscalationStep, ...]] | None = None,
) -> list[tuple[Role, list[str]]]:
    """Return ``(role, approver_ids)`` per level, ready for ``new_workflow``.

    Raises:
        ChainConfigurationError: No step applies, or a step resolves to nobody.
    """
    steps = steps_for(request_type, amount, policy)
    if not steps:
        raise ChainConfigurationError(
            f"No approval policy applies to {request_type.value} requests."
        )

    levels: list[tuple[Role, list[str]]] = []
    for step in steps:
        approvers = resolve_approvers(db, step.role, requested_by=requested_by)
        if not approvers:
            logger.warning(
                "build_approval_chain: no active %s available for %s request by %s",
                step.role.value, request_type.value, requested_by,
            )
            raise ChainConfigurationError(
                f"No active approver holds role '{step.role.value}' ({step.label})."
            )
        levels.append((step.role, approvers))
    return levels


def single_level_chain(role: Role, approver_ids: Iterable[str]) -> list[tuple[Role, list[str]]]:
    """One-gate chain for simple sign-off requests."""
    return [(role, [str(a) for a in approver_ids])]
