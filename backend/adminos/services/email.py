"""Email notification service — console mock for MVP (MAIL_ENABLED=False).

When MAIL_ENABLED is False, email content is printed to logs instead of
being sent via SMTP. Set MAIL_ENABLED=True to wire a real transport.
"""
import logging

from adminos.core.config import settings

logger = logging.getLogger(__name__)


def _workflow_url(workflow) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/approvals/{workflow.id}"


def _amount_str(workflow) -> str:
    amount = getattr(workflow, "amount", None)
    return f"${float(amount):,.2f}" if amount is not None else "N/A"


def _deliver(to: str, subject: str, body: str) -> None:
    if not settings.MAIL_ENABLED:
        logger.info(
            "\n"
            "=== EMAIL ===\n"
            "From: %s <%s>\n"
            "To: %s\n"
            "Subject: %s\n"
            "%s\n"
            "=============",
            settings.MAIL_FROM_NAME, settings.MAIL_FROM, to, subject, body,
        )
        return

    # Real SMTP path (not implemented in MVP)
    logger.warning(
        "MAIL_ENABLED=True but SMTP transport is not configured. "
        "Falling back to console log for %s.",
        to,
    )
    logger.info("EMAIL (unsent): to=%s subject=%s", to, subject)


# ─── Pending approval ───

def send_pending_approval_email(workflow, to: str) -> None:
    """Tell an approver (by email address) that a workflow is waiting on their level."""
    level = workflow.current_approval_level
    subject = (
        f"Action Required: {workflow.request_type.value} request — {_amount_str(workflow)}"
    )
    body = (
        f"Level {level + 1} of {len(workflow.approval_chain)} awaits your decision.\n"
        f"Description: {workflow.description}\n"
        f"Review: {_workflow_url(workflow)}"
    )
    _deliver(to, subject, body)


# ─── Final decision ───

def send_workflow_decided_email(workflow, to: str) -> None:
    """Tell the requester (by email address) their workflow reached a final decision."""
    status = workflow.overall_status.value
    subject = f"Your {workflow.request_type.value} request was {status}"
    body = f"Description: {workflow.description}\nDetails: {_workflow_url(workflow)}"
    if status == "rejected":
        level = workflow.approval_chain[workflow.current_approval_level]
        body += f"\nRejected at level {level.level + 1} ({level.role.value}): {level.comments}"
    _deliver(to, subject, body)
