"""Registration, login and session schemas."""


from datetime import datetime

from pydantic import Field

from bizcore.schemas.common import CamelModel

class RegisterRequest(CamelModel):
    business_name: str = Field(min_length=1, max_length=255)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    timezone: str = "UTC"
    full_name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8)

class LoginRequest(CamelModel):
    email: str
    password: str

class UserOut(CamelModel):
    id: str
    business_id: str
    email: str
    full_name: str
    role: str
    is_active: bool
    last_login_at: datetime | None = None

class SessionOut(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
