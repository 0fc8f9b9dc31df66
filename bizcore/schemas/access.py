"""Team member, role grant and feature toggle schemas."""


from datetime import datetime
from typing import Literal

from pydantic import Field

from bizcore.schemas.common import CamelModel

# "<resource>:<action>", e.g. "customer:delete"
PERMISSION_PATTERN = r"^[a-z_]+:[a-z_]+$"

# Owners are created at registration only.
AssignableRole = Literal["manager", "staff"]

class UserCreate(CamelModel):
    email: str = Field(min_length=3, max_length=255)
    full_name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8)
    role: AssignableRole = "staff"

    model_config = {"extra": "forbid"}

class RolePermissionCreate(CamelModel):
    role: AssignableRole
    permission: str = Field(pattern=PERMISSION_PATTERN, max_length=100)

    model_config = {"extra": "forbid"}

class RolePermissionOut(CamelModel):
    id: str
    role: str
    permission: str
    created_at: datetime

class FeatureToggleCreate(CamelModel):
    """is_allowed=True grants the permission, False denies it; no expiry means permanent."""

    permission: str = Field(pattern=PERMISSION_PATTERN, max_length=100)
    is_allowed: bool = True
    expires_at: datetime | None = None
    reason: str | None = Field(default=None, max_length=1000)

    model_config = {"extra": "forbid"}

class FeatureToggleOut(CamelModel):
    id: str
    user_id: str
    permission: str
    is_allowed: bool
    expires_at: datetime | None = None
    reason: str | None = None
    created_at: datetime
