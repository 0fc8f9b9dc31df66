"""Per-request security context and the FastAPI dependencies that build it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from bizcore.core.exceptions import UnauthorizedError
from bizcore.core.security import CredentialService


@dataclass(frozen=True)
class RequestContext:
    """Who is acting, for which business, from where.

    Passed explicitly into every service call. ``business_id`` only ever comes
    from a verified session token.
    """

    business_id: str
    user_id: str
    role: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def is_owner(self) -> bool:
        return self.role == "owner"


def get_credentials(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_current_token(request: Request) -> str:
    # Authorization header (API / mobile)
    auth = request.headers.get("Authorization")
    token = None
    if auth and auth.startswith("Bearer "):
        token = auth.split(" ", 1)[1].strip()

    # cookie (web)
    if not token:
        token = request.cookies.get("access_token")

    if not token:
        raise UnauthorizedError("Not authenticated")

    return token


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_request_context(
    request: Request,
    token: str = Depends(get_current_token),
    credentials: CredentialService = Depends(get_credentials),
) -> RequestContext:
    claims = credentials.verify_token(token)
    return RequestContext(
        business_id=str(claims["business_id"]),
        user_id=str(claims["user_id"]),
        role=claims["role"],
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
