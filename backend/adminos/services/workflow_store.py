"""Persistence boundary for approval workflows.

Writes are guarded by an optimistic lock: every stored row carries an
integer ``version`` and ``put`` only succeeds when the version it read is
still the current one. A mismatch raises ``StaleWriteError``; the caller
re-reads and re-applies its transition.

The store never commits. Callers own the transaction, matching the audit
helper.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from adminos.models.approval_workflow import ApprovalWorkflowRecord
from adminos.schemas.approval_workflow import ApprovalWorkflow, WorkflowStatus
from adminos.services.approval_chain import involves, validate_chain

logger = logging.getLogger(__name__)


class WorkflowNotFoundError(LookupError):
    pass


class StaleWriteError(Exception):
    """The stored workflow changed since it was read."""

    def __init__(self, workflow_id: uuid.UUID, expected_version: int):
        super().__init__(
            f"Workflow {workflow_id} was modified concurrently "
            f"(expected version {expected_version})."
        )
        self.workflow_id = workflow_id
        self.expected_version = expected_version


@dataclass(frozen=True)
class WorkflowFilter:
    status: WorkflowStatus | None = None
    involving_actor_id: str | None = None


class WorkflowStore(Protocol):
    def get(self, workflow_id: uuid.UUID) -> ApprovalWorkflow: ...

    def create(self, workflow: ApprovalWorkflow) -> ApprovalWorkflow: ...

    def put(self, workflow: ApprovalWorkflow) -> ApprovalWorkflow: ...

    def list(self, filter: WorkflowFilter | None = None) -> list[ApprovalWorkflow]: ...


# ─── Row <-> value mapping ───

def to_value(record: ApprovalWorkflowRecord) -> ApprovalWorkflow:
    return ApprovalWorkflow.model_validate(record)


def _chain_json(workflow: ApprovalWorkflow) -> list[dict]:
    return [level.model_dump(mode="json") for level in workflow.approval_chain]


# ─── SQLAlchemy implementation ───

class SqlWorkflowStore:
    """WorkflowStore backed by the ``approval_workflows`` table (sync session)."""

    def __init__(self, db: Session):
        self.db = db

    def _load(self, workflow_id: uuid.UUID) -> ApprovalWorkflowRecord | None:
        return self.db.execute(
            select(ApprovalWorkflowRecord)
            .where(ApprovalWorkflowRecord.id == workflow_id)
            .execution_options(populate_existing=True)
        ).scalars().first()

    def get(self, workflow_id: uuid.UUID) -> ApprovalWorkflow:
        record = self._load(workflow_id)
        if record is None:
            raise WorkflowNotFoundError(f"Workflow {workflow_id} not found.")
        return to_value(record)

    def create(self, workflow: ApprovalWorkflow) -> ApprovalWorkflow:
        validate_chain(workflow.approval_chain, workflow.requested_by)
        now = datetime.now(timezone.utc)
        record = ApprovalWorkflowRecord(
            request_type=workflow.request_type.value,
            requested_by=workflow.requested_by,
            description=workflow.description,
            amount=workflow.amount,
            details=workflow.details,
            approval_chain=_chain_json(workflow),
            current_approval_level=workflow.current_approval_level,
            overall_status=workflow.overall_status.value,
            version=1,
            created_at=workflow.created_at or now,
            updated_at=workflow.updated_at or now,
        )
        if workflow.id is not None:
            record.id = workflow.id
        self.db.add(record)
        self.db.flush()
        logger.info(
            "Workflow stored: id=%s type=%s levels=%d",
            record.id, record.request_type, len(record.approval_chain),
        )
        return to_value(record)

    def put(self, workflow: ApprovalWorkflow) -> ApprovalWorkflow:
        if workflow.id is None:
            raise WorkflowNotFoundError("Cannot update a workflow that was never stored.")

        result = self.db.execute(
            update(ApprovalWorkflowRecord)
            .where(
                ApprovalWorkflowRecord.id == workflow.id,
                ApprovalWorkflowRecord.version == workflow.version,
            )
            .values(
                description=workflow.description,
                amount=workflow.amount,
                details=workflow.details,
                approval_chain=_chain_json(workflow),
                current_approval_level=workflow.current_approval_level,
                overall_status=workflow.overall_status.value,
                updated_at=workflow.updated_at or datetime.now(timezone.utc),
                version=ApprovalWorkflowRecord.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            if self._load(workflow.id) is None:
                raise WorkflowNotFoundError(f"Workflow {workflow.id} not found.")
            raise StaleWriteError(workflow.id, workflow.version)

        return self.get(workflow.id)

    def list(self, filter: WorkflowFilter | None = None) -> list[ApprovalWorkflow]:
        filter = filter or WorkflowFilter()
        stmt = select(ApprovalWorkflowRecord).order_by(ApprovalWorkflowRecord.created_at.desc())
        if filter.status is not None:
            stmt = stmt.where(ApprovalWorkflowRecord.overall_status == filter.status.value)

        workflows = [to_value(r) for r in self.db.execute(stmt).scalars().all()]
        if filter.involving_actor_id is not None:
            # Chain membership lives in JSON; filter here to stay dialect-agnostic
            workflows = [w for w in workflows if involves(w, filter.involving_actor_id)]
        return workflows
