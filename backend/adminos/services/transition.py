"""Approval transition engine.

The only code allowed to change a workflow's approval state. Both entry
points are pure: they take a workflow value, never touch the database, and
return a ``TransitionResult`` carrying either the updated copy or the reason
the action was refused. Refusals are values, not exceptions, so callers have
to look at them before persisting anything.

State machine over ``(current_approval_level, overall_status)`` for a chain
of length N:

    approve  (i, pending) -> (i+1, pending)   if i+1 < N
             (i, pending) -> (N, approved)    if i+1 == N
    reject   (i, pending) -> (i, rejected)

``approved`` and ``rejected`` have no outgoing transitions. A rejected
workflow keeps its cursor on the level that rejected it.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from adminos.schemas.approval_workflow import ApprovalWorkflow, LevelStatus, WorkflowStatus
from adminos.services.approval_chain import current_level, is_authorized, is_terminal

logger = logging.getLogger(__name__)


class TransitionError(str, enum.Enum):
    ALREADY_TERMINAL = "already_terminal"
    NOT_AUTHORIZED = "not_authorized"
    INVALID_INPUT = "invalid_input"


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one approve/reject call.

    On success ``workflow`` is the updated copy. On failure it is the input
    workflow, untouched, and ``error``/``message`` say why.
    """

    workflow: ApprovalWorkflow
    error: TransitionError | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


def _refuse(workflow: ApprovalWorkflow, error: TransitionError, message: str) -> TransitionResult:
    logger.info(
        "Transition refused: workflow=%s error=%s (%s)", workflow.id, error.value, message
    )
    return TransitionResult(workflow=workflow, error=error, message=message)


def _guard(workflow: ApprovalWorkflow, actor_id: str) -> TransitionResult | None:
    if is_terminal(workflow):
        return _refuse(
            workflow,
            TransitionError.ALREADY_TERMINAL,
            f"Workflow is already {workflow.overall_status.value}.",
        )
    if not is_authorized(workflow, actor_id):
        return _refuse(
            workflow,
            TransitionError.NOT_AUTHORIZED,
            f"Actor {actor_id} is not an approver for level {workflow.current_approval_level}.",
        )
    return None


def approve_at_level(
    workflow: ApprovalWorkflow,
    actor_id: str,
    comment: str | None = None,
    now: datetime | None = None,
) -> TransitionResult:
    """Approve the current level and advance the cursor.

    Overall approval happens only when the last level approves; there is
    no shortcut past intermediate levels.
    """
    actor_id = str(actor_id)
    refused = _guard(workflow, actor_id)
    if refused is not None:
        return refused

    now = now or datetime.now(timezone.utc)
    updated = workflow.model_copy(deep=True)
    level = current_level(updated)

    level.status = LevelStatus.APPROVED
    level.acted_by = actor_id
    level.acted_at = now
    level.comments = comment

    updated.current_approval_level += 1
    if updated.current_approval_level == len(updated.approval_chain):
        updated.overall_status = WorkflowStatus.APPROVED
    updated.updated_at = now

    logger.info(
        "Transition applied: workflow=%s action=approve actor=%s level=%s status=%s",
        updated.id, actor_id, level.level, updated.overall_status.value,
    )
    return TransitionResult(workflow=updated)


def reject_at_level(
    workflow: ApprovalWorkflow,
    actor_id: str,
    reason: str | None,
    now: datetime | None = None,
) -> TransitionResult:
    """Reject at the current level, closing the whole workflow.

    The cursor stays on the rejecting level. ``reason`` must be non-blank.
    """
    actor_id = str(actor_id)
    refused = _guard(workflow, actor_id)
    if refused is not None:
        return refused
    if reason is None or not reason.strip():
        return _refuse(workflow, TransitionError.INVALID_INPUT, "A rejection reason is required.")

    now = now or datetime.now(timezone.utc)
    updated = workflow.model_copy(deep=True)
    level = current_level(updated)

    level.status = LevelStatus.REJECTED
    level.acted_by = actor_id
    level.acted_at = now
    level.comments = reason

    updated.overall_status = WorkflowStatus.REJECTED
    updated.updated_at = now

    logger.info(
        "Transition applied: workflow=%s action=reject actor=%s level=%s status=%s",
        updated.id, actor_id, level.level, updated.overall_status.value,
    )
    return TransitionResult(workflow=updated)
