import uuid

from pydantic import BaseModel, ConfigDict


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: str
    department: str | None = None
    # Raw directory value; unknown roles are reported with no permissions
    role: str
    is_active: bool
    permissions: list[str] = []
