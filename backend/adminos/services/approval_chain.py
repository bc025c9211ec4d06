"""Read-only queries over an approval chain, plus creation-time checks.

Nothing here mutates a workflow. The transition engine
(``adminos.services.transition``) is the only writer.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from adminos.core.roles import Role
from adminos.schemas.approval_workflow import (
    TERMINAL_STATUSES,
    ApprovalLevel,
    ApprovalWorkflow,
    LevelStatus,
    RequestType,
    WorkflowStatus,
)


class ChainConfigurationError(ValueError):
    """The chain cannot be used as configured (empty, a level nobody can act on, or self-approval)."""


# ─── Queries ───

def current_level(workflow: ApprovalWorkflow) -> ApprovalLevel | None:
    """Level under the cursor, or None once the cursor has run off the end."""
    idx = workflow.current_approval_level
    if 0 <= idx < len(workflow.approval_chain):
        return workflow.approval_chain[idx]
    return None


def is_authorized(workflow: ApprovalWorkflow, actor_id: str) -> bool:
    level = current_level(workflow)
    return level is not None and str(actor_id) in level.approver_ids


def is_terminal(workflow: ApprovalWorkflow) -> bool:
    return workflow.overall_status in TERMINAL_STATUSES


def involves(workflow: ApprovalWorkflow, actor_id: str) -> bool:
    """True if the actor requested the workflow or sits anywhere in its chain."""
    actor_id = str(actor_id)
    if workflow.requested_by == actor_id:
        return True
    return any(actor_id in level.approver_ids for level in workflow.approval_chain)


def pending_approvers(workflow: ApprovalWorkflow) -> list[str]:
    if is_terminal(workflow):
        return []
    level = current_level(workflow)
    return list(level.approver_ids) if level else []


# ─── Construction ───

def validate_chain(levels: Iterable[ApprovalLevel], requested_by: str | None = None) -> None:
    """Raise ChainConfigurationError for chains that could never complete.

    A level with no approver ids would stall the workflow forever, so it is
    refused here instead of being discovered at decision time. When
    ``requested_by`` is given, no level may list the requester.
    """
    levels = list(levels)
    if not levels:
        raise ChainConfigurationError("Approval chain must contain at least one level.")
    for idx, level in enumerate(levels):
        if not level.approver_ids:
            raise ChainConfigurationError(
                f"Approval level {idx} ({level.role.value}) has no eligible approvers."
            )
        if level.status != LevelStatus.PENDING:
            raise ChainConfigurationError(
                f"Approval level {idx} must start pending (got {level.status.value})."
            )
        if requested_by is not None and str(requested_by) in level.approver_ids:
            raise ChainConfigurationError(
                f"Approval level {idx} ({level.role.value}) lists the requester as an approver."
            )


def new_workflow(
    request_type: RequestType,
    requested_by: str,
    levels: Iterable[tuple[Role, Iterable[str]]],
    description: str = "",
    amount: Decimal | None = None,
    details: dict[str, Any] | None = None,
) -> ApprovalWorkflow:
    """Build a fresh workflow at cursor 0 with every level pending."""
    chain = [
        ApprovalLevel(level=idx, role=role, approver_ids=[str(a) for a in approver_ids])
        for idx, (role, approver_ids) in enumerate(levels)
    ]
    validate_chain(chain, requested_by)
    now = datetime.now(timezone.utc)
    return ApprovalWorkflow(
        request_type=request_type,
        requested_by=str(requested_by),
        description=description,
        amount=amount,
        details=details or {},
        approval_chain=chain,
        current_approval_level=0,
        overall_status=WorkflowStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
