"""Celery tasks that notify people about workflow progress."""
import logging
import uuid

from adminos.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


def _email_addresses(db, actor_ids: list[str]) -> dict[str, str]:
    """Map actor ids to the email of the matching active directory user.

    Ids that are not UUIDs, or that match no active user, are left out.
    """
    from sqlalchemy import select

    from adminos.models.user import User

    by_uuid: dict[uuid.UUID, str] = {}
    for actor_id in actor_ids:
        try:
            by_uuid[uuid.UUID(actor_id)] = actor_id
        except ValueError:
            continue
    if not by_uuid:
        return {}

    rows = db.execute(
        select(User.id, User.email).where(
            User.id.in_(list(by_uuid)),
            User.is_active.is_(True),
            User.deleted_at.is_(None),
        )
    ).all()
    return {by_uuid[user_id]: email for user_id, email in rows}


@celery_app.task(bind=True, name="tasks.notify_workflow_update", max_retries=3)
def notify_workflow_update(self, workflow_id: str) -> dict:
    """Email the approvers now on turn, or the requester once the workflow is decided."""
    from adminos.db.session import SyncSessionLocal
    from adminos.services import email as email_svc
    from adminos.services.approval_chain import is_terminal, pending_approvers
    from adminos.services.workflow_store import SqlWorkflowStore, WorkflowNotFoundError

    db = SyncSessionLocal()
    try:
        try:
            workflow = SqlWorkflowStore(db).get(uuid.UUID(workflow_id))
        except WorkflowNotFoundError:
            logger.warning("notify_workflow_update: workflow %s no longer exists", workflow_id)
            return {"workflow_id": workflow_id, "notified": []}

        recipients = [workflow.requested_by] if is_terminal(workflow) else pending_approvers(workflow)
        addresses = _email_addresses(db, recipients)
        notified = []
        for actor_id in recipients:
            address = addresses.get(actor_id)
            if address is None:
                logger.warning(
                    "notify_workflow_update: no directory email for %s on workflow %s",
                    actor_id, workflow_id,
                )
                continue
            if is_terminal(workflow):
                email_svc.send_workflow_decided_email(workflow, address)
            else:
                email_svc.send_pending_approval_email(workflow, address)
            notified.append(actor_id)

        logger.info(
            "notify_workflow_update: workflow=%s status=%s notified=%d",
            workflow_id, workflow.overall_status.value, len(notified),
        )
        return {"workflow_id": workflow_id, "notified": notified}
    except Exception as exc:
        logger.error("notify_workflow_update failed for %s: %s", workflow_id, exc)
        raise self.retry(exc=exc, countdown=30)
    finally:
        db.close()
