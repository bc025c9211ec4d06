"""User delegation model."""
import uuid
from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from adminos.db.base import Base, TimestampMixin, UUIDMixin


class UserDelegation(Base, UUIDMixin, TimestampMixin):
    """Temporarily delegates approval authority from one user to another."""

    __tablename__ = "user_delegations"

    delegator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    delegate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
