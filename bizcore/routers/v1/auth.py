"""Registration, login and current-session endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from bizcore.core.context import RequestContext, client_ip, get_request_context
from bizcore.core.response import DataResponse
from bizcore.schemas.auth import LoginRequest, RegisterRequest, SessionOut, UserOut
from bizcore.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


def _svc(request: Request) -> AuthService:
    state = request.app.state
    return AuthService(state.gateway, state.credentials, state.audit)


@router.post("/register", response_model=DataResponse[SessionOut], status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, request: Request):
    """Create a business with its owner account and return a session."""
    session = await _svc(request).register(
        body, client_ip(request), request.headers.get("user-agent")
    )
    return {"data": session}


@router.post("/login", response_model=DataResponse[SessionOut])
async def login(body: LoginRequest, request: Request):
    session = await _svc(request).login(
        body, client_ip(request), request.headers.get("user-agent")
    )
    return {"data": session}


@router.get("/me", response_model=DataResponse[UserOut])
async def me(request: Request, ctx: RequestContext = Depends(get_request_context)):
    return {"data": await _svc(request).current_user(ctx)}
