"""Pydantic schemas for user delegations."""
import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class UserDelegationIn(BaseModel):
    delegate_id: uuid.UUID
    valid_from: date
    valid_until: date | None = None


class UserDelegationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    delegator_id: uuid.UUID
    delegate_id: uuid.UUID
    valid_from: date
    valid_until: date | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
