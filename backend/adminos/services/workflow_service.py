"""Approval workflow lifecycle service.

Glues the pure transition engine to the store: read, decide, conditional
write, audit, notify. All functions accept a sync SQLAlchemy Session and
commit on success.
"""
import logging
import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from adminos.core.config import settings
from adminos.core.roles import Role
from adminos.schemas.approval_workflow import ApprovalWorkflow, RequestType, WorkflowStatus
from adminos.services import audit as audit_svc
from adminos.services import chain_builder
from adminos.services.approval_chain import new_workflow
from adminos.services.transition import TransitionResult, approve_at_level, reject_at_level
from adminos.services.workflow_store import (
    SqlWorkflowStore,
    StaleWriteError,
    WorkflowFilter,
)

logger = logging.getLogger(__name__)

ACTIONS = ("approve", "reject")


def _snapshot(workflow: ApprovalWorkflow) -> dict:
    return {
        "current_approval_level": workflow.current_approval_level,
        "overall_status": workflow.overall_status.value,
        "version": workflow.version,
    }


def _enqueue_notification(workflow_id: uuid.UUID) -> None:
    """Hand notification off to Celery; a broker outage never blocks a decision."""
    from adminos.workers.notification_tasks import notify_workflow_update

    try:
        notify_workflow_update.delay(str(workflow_id))
    except Exception as exc:
        logger.warning("Could not enqueue notification for workflow %s: %s", workflow_id, exc)


# ─── Create ───

def create_workflow(
    db: Session,
    request_type: RequestType,
    requested_by: str,
    description: str,
    amount: Decimal | None = None,
    details: dict[str, Any] | None = None,
    levels: list[tuple[Role, list[str]]] | None = None,
    approver_role: Role | None = None,
) -> ApprovalWorkflow:
    """Create and persist a workflow at level 0.

    ``levels`` wins when given. Otherwise ``approver_role`` yields a single
    sign-off level, and with neither the chain comes from the default
    escalation policy for ``request_type``.

    Raises:
        ChainConfigurationError: The chain is empty or has a level nobody can act on.
    """
    if levels is None and approver_role is not None:
        levels = chain_builder.single_level_chain(
            approver_role,
            chain_builder.resolve_approvers(db, approver_role, requested_by=requested_by),
        )
    elif levels is None:
        levels = chain_builder.build_approval_chain(db, request_type, amount, requested_by)

    workflow = new_workflow(
        request_type=request_type,
        requested_by=requested_by,
        levels=levels,
        description=description,
        amount=amount,
        details=details,
    )
    stored = SqlWorkflowStore(db).create(workflow)

    audit_svc.log(
        db=db,
        action="workflow.created",
        entity_type="approval_workflow",
        entity_id=stored.id,
        actor_id=requested_by,
        after={
            **_snapshot(stored),
            "request_type": stored.request_type.value,
            "levels": [level.role.value for level in stored.approval_chain],
        },
    )
    db.commit()

    logger.info(
        "Workflow created: id=%s type=%s requested_by=%s levels=%d",
        stored.id, stored.request_type.value, requested_by, len(stored.approval_chain),
    )
    _enqueue_notification(stored.id)
    return stored


# ─── Decide ───

def decide(
    db: Session,
    workflow_id: uuid.UUID,
    action: str,
    actor_id: str,
    comment: str | None = None,
    max_attempts: int | None = None,
) -> TransitionResult:
    """Apply an approve/reject decision and persist it.

    Engine refusals come back as a failed TransitionResult and nothing is
    written. A concurrent write is retried from a fresh read, so a second
    approver racing the first sees the post-decision state.

    Raises:
        ValueError: Unknown action.
        WorkflowNotFoundError: No such workflow.
        StaleWriteError: Still conflicting after ``max_attempts`` tries.
    """
    if action not in ACTIONS:
        raise ValueError(f"Invalid action '{action}'. Must be 'approve' or 'reject'.")

    store = SqlWorkflowStore(db)
    attempts = max(1, max_attempts or settings.WORKFLOW_WRITE_MAX_ATTEMPTS)

    for attempt in range(1, attempts + 1):
        workflow = store.get(workflow_id)
        if action == "approve":
            result = approve_at_level(workflow, actor_id, comment)
        else:
            result = reject_at_level(workflow, actor_id, comment)

        if not result.ok:
            return result

        try:
            stored = store.put(result.workflow)
        except StaleWriteError:
            db.rollback()
            logger.warning(
                "Stale write on workflow %s (attempt %d/%d); re-reading.",
                workflow_id, attempt, attempts,
            )
            if attempt == attempts:
                raise
            continue

        audit_svc.log(
            db=db,
            action=f"workflow.{'approved' if action == 'approve' else 'rejected'}_at_level",
            entity_type="approval_workflow",
            entity_id=workflow_id,
            actor_id=actor_id,
            before=_snapshot(workflow),
            after=_snapshot(stored),
            notes=comment,
        )
        db.commit()

        logger.info(
            "Workflow decision: workflow=%s action=%s actor=%s status=%s",
            workflow_id, action, actor_id, stored.overall_status.value,
        )
        _enqueue_notification(workflow_id)
        return TransitionResult(workflow=stored)

    raise StaleWriteError(workflow_id, -1)  # loop always returns or raises


# ─── Read ───

def get_workflow(db: Session, workflow_id: uuid.UUID) -> ApprovalWorkflow:
    return SqlWorkflowStore(db).get(workflow_id)


def list_workflows(
    db: Session,
    status: WorkflowStatus | None = None,
    involving_actor_id: str | None = None,
) -> list[ApprovalWorkflow]:
    return SqlWorkflowStore(db).list(
        WorkflowFilter(status=status, involving_actor_id=involving_actor_id)
    )
