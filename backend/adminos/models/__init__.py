from adminos.models.user import User
from adminos.models.delegation import UserDelegation
from adminos.models.approval_workflow import ApprovalWorkflowRecord
from adminos.models.audit import AuditLog

__all__ = [
    "User",
    "UserDelegation",
    "ApprovalWorkflowRecord",
    "AuditLog",
]
