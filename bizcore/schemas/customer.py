"""Customer Pydantic schemas (request DTOs and response models).

Request bodies never carry business_id: the tenant always comes from the
session token, so unknown fields are rejected outright.
"""


from datetime import datetime
from typing import Literal

from pydantic import field_validator

from bizcore.schemas.common import CamelModel

class CustomerCreate(CamelModel):
    first_name: str
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    notes: str | None = None

    model_config = {"extra": "forbid"}

class CustomerUpdate(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    status: Literal["active", "inactive"] | None = None
    notes: str | None = None

    model_config = {"extra": "forbid"}

    # Omitting these leaves them unchanged; an explicit null would violate NOT NULL.
    @field_validator("first_name", "status")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value

class CustomerOut(CamelModel):
    id: str
    business_id: str
    first_name: str
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    status: str
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
