from decimal import Decimal

from sqlalchemy import JSON, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adminos.db.base import Base, TimestampMixin, UUIDMixin


class ApprovalWorkflowRecord(Base, UUIDMixin, TimestampMixin):
    """Durable row for one multi-level approval workflow.

    ``approval_chain`` holds the serialized levels; ``version`` is the
    optimistic-lock counter bumped on every successful write.
    """

    __tablename__ = "approval_workflows"

    request_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    requested_by: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    approval_chain: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    current_approval_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overall_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", index=True
    )  # pending, approved, rejected
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
