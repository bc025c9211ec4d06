"""Multi-level approval workflow API endpoints (JWT required).

  GET  /workflows                     — list workflows (mine or all)
  GET  /workflows/{workflow_id}       — workflow detail
  POST /workflows                     — create a workflow
  POST /workflows/{workflow_id}/approve
  POST /workflows/{workflow_id}/reject
"""
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from adminos.core.config import settings
from adminos.core.deps import get_current_user, require_permission
from adminos.core.limiter import limiter
from adminos.core.roles import Permission, has_permission
from adminos.db.session import get_sync_session
from adminos.schemas.approval_workflow import (
    ApprovalWorkflow,
    ApproveRequest,
    RejectRequest,
    WorkflowCreateRequest,
    WorkflowListResponse,
    WorkflowOut,
    WorkflowStatus,
)
from adminos.services import workflow_service
from adminos.services.approval_chain import (
    ChainConfigurationError,
    involves,
    is_authorized,
    is_terminal,
)
from adminos.services.transition import TransitionError, TransitionResult
from adminos.services.workflow_store import StaleWriteError, WorkflowNotFoundError

router = APIRouter()

_ERROR_STATUS = {
    TransitionError.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    TransitionError.ALREADY_TERMINAL: status.HTTP_409_CONFLICT,
    TransitionError.INVALID_INPUT: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def _decision_rate_limit() -> str:
    return settings.DECISION_RATE_LIMIT


def _to_out(workflow: ApprovalWorkflow, user) -> WorkflowOut:
    actor_id = str(user.id)
    return WorkflowOut(
        **workflow.model_dump(),
        can_act=not is_terminal(workflow) and is_authorized(workflow, actor_id),
    )


def _load_visible(db: Session, workflow_id: uuid.UUID, user) -> ApprovalWorkflow:
    try:
        workflow = workflow_service.get_workflow(db, workflow_id)
    except WorkflowNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workflow not found.")
    if not involves(workflow, str(user.id)) and not has_permission(
        user.role, Permission.WORKFLOW_VIEW_ALL
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not involved in this workflow.",
        )
    return workflow


def _apply(db: Session, workflow_id: uuid.UUID, action: str, user, comment: str | None) -> WorkflowOut:
    try:
        result: TransitionResult = workflow_service.decide(
            db=db,
            workflow_id=workflow_id,
            action=action,
            actor_id=str(user.id),
            comment=comment,
        )
    except WorkflowNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workflow not found.")
    except StaleWriteError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    if not result.ok:
        raise HTTPException(
            status_code=_ERROR_STATUS[result.error],
            detail={"code": result.error.value, "message": result.message},
        )
    return _to_out(result.workflow, user)


# ─── List ───

@router.get(
    "",
    response_model=WorkflowListResponse,
    summary="List approval workflows involving the current user (or all)",
)
def list_workflows(
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
    status_filter: WorkflowStatus | None = Query(None, alias="status"),
    scope: Literal["mine", "all"] = Query("mine"),
):
    if scope == "all" and not has_permission(current_user.role, Permission.WORKFLOW_VIEW_ALL):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Listing all workflows requires workflow:view_all.",
        )
    involving = None if scope == "all" else str(current_user.id)
    workflows = workflow_service.list_workflows(db, status=status_filter, involving_actor_id=involving)
    items = [_to_out(w, current_user) for w in workflows]
    return WorkflowListResponse(items=items, total=len(items))


# ─── Detail ───

@router.get(
    "/{workflow_id}",
    response_model=WorkflowOut,
    summary="Get an approval workflow",
)
def get_workflow(
    workflow_id: uuid.UUID,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
):
    return _to_out(_load_visible(db, workflow_id, current_user), current_user)


# ─── Create ───

@router.post(
    "",
    response_model=WorkflowOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create an approval workflow",
)
def create_workflow(
    body: WorkflowCreateRequest,
    current_user=Depends(require_permission(Permission.WORKFLOW_CREATE)),
    db: Session = Depends(get_sync_session),
):
    levels = None
    if body.approval_chain is not None:
        levels = [(lvl.role, lvl.approver_ids) for lvl in body.approval_chain]
    try:
        workflow = workflow_service.create_workflow(
            db=db,
            request_type=body.request_type,
            requested_by=str(current_user.id),
            description=body.description,
            amount=body.amount,
            details=body.details,
            levels=levels,
            approver_role=body.approver_role,
        )
    except ChainConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return _to_out(workflow, current_user)


# ─── Approve ───

@router.post(
    "/{workflow_id}/approve",
    response_model=WorkflowOut,
    summary="Approve the current level of a workflow",
)
@limiter.limit(_decision_rate_limit)
def approve_workflow(
    request: Request,
    workflow_id: uuid.UUID,
    body: ApproveRequest,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
):
    return _apply(db, workflow_id, "approve", current_user, body.comments)


# ─── Reject ───

@router.post(
    "/{workflow_id}/reject",
    response_model=WorkflowOut,
    summary="Reject a workflow at its current level",
)
@limiter.limit(_decision_rate_limit)
def reject_workflow(
    request: Request,
    workflow_id: uuid.UUID,
    body: RejectRequest,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_sync_session),
):
    return _apply(db, workflow_id, "reject", current_user, body.reason)
