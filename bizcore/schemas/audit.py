"""Audit log read models."""


from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field

from bizcore.schemas.common import CamelModel

class AuditLogOut(CamelModel):
    id: str
    business_id: str
    user_id: str | None = None
    action: str
    resource_type: str
    resource_id: str | None = None
    old_values: Any = None
    new_values: Any = None
    # ORM attribute is `meta`; the column and the API field are "metadata"
    meta: Any = Field(
        default=None,
        validation_alias=AliasChoices("meta", "metadata"),
        serialization_alias="metadata",
    )
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime

class CountByKey(CamelModel):
    key: str | None
    count: int

class AuditSummaryOut(CamelModel):
    period: str
    total_actions: int
    unique_users: int
    resource_types: int
    action_types: int
    latest_action: datetime | None = None
    earliest_action: datetime | None = None
    actions_by_type: list[CountByKey]
    actions_by_resource: list[CountByKey]
    top_users: list[CountByKey]
