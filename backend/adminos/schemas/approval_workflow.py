"""Approval workflow value types and API schemas.

``ApprovalLevel`` and ``ApprovalWorkflow`` are the values the transition
engine consumes and produces. They carry no behaviour of their own; the
queries over them live in ``adminos.services.approval_chain``.
"""
import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from adminos.core.roles import Role


# ─── Status enums ───

class LevelStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WorkflowStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({WorkflowStatus.APPROVED, WorkflowStatus.REJECTED})


class RequestType(str, enum.Enum):
    EXPENSE = "expense"
    LEAVE = "leave"
    ASSET = "asset"
    PROJECT = "project"
    BUDGET = "budget"


def _dedupe(ids: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


# ─── Chain values ───

class ApprovalLevel(BaseModel):
    """One gate in an approval chain."""

    model_config = ConfigDict(from_attributes=True)

    level: int
    role: Role
    approver_ids: list[str] = Field(default_factory=list)
    status: LevelStatus = LevelStatus.PENDING
    acted_by: str | None = None
    acted_at: datetime | None = None
    comments: str | None = None

    @field_validator("approver_ids")
    @classmethod
    def _unique_approvers(cls, v: list[str]) -> list[str]:
        return _dedupe([str(i) for i in v])


class ApprovalWorkflow(BaseModel):
    """A workflow instance: fixed chain, cursor, overall status.

    ``version`` is 0 until the store has persisted the value.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID | None = None
    request_type: RequestType
    requested_by: str
    description: str = ""
    amount: Decimal | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    approval_chain: list[ApprovalLevel]
    current_approval_level: int = 0
    overall_status: WorkflowStatus = WorkflowStatus.PENDING
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ─── API: create ───

class ApprovalLevelIn(BaseModel):
    role: Role
    approver_ids: list[str]


class WorkflowCreateRequest(BaseModel):
    request_type: RequestType
    description: str
    amount: Decimal | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    # Omit both to derive the chain from the default escalation policy
    approval_chain: list[ApprovalLevelIn] | None = None
    # Single sign-off by whoever holds this role
    approver_role: Role | None = None

    @model_validator(mode="after")
    def _one_chain_source(self) -> "WorkflowCreateRequest":
        if self.approval_chain is not None and self.approver_role is not None:
            raise ValueError("Give either approval_chain or approver_role, not both.")
        return self


# ─── API: decisions ───

class ApproveRequest(BaseModel):
    comments: str | None = None


class RejectRequest(BaseModel):
    reason: str | None = None


# ─── API: output ───

class WorkflowOut(ApprovalWorkflow):
    id: uuid.UUID
    # Populated by the router for the calling user
    can_act: bool = False


class WorkflowListResponse(BaseModel):
    items: list[WorkflowOut]
    total: int
