"""Team member and per-user feature toggle endpoints (owners only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from bizcore.core.context import RequestContext
from bizcore.core.permissions import require_roles
from bizcore.core.response import DataResponse
from bizcore.schemas.access import FeatureToggleCreate, FeatureToggleOut, UserCreate
from bizcore.schemas.auth import UserOut
from bizcore.services.access import AccessService

router = APIRouter(prefix="/users", tags=["Users"])

_owner = require_roles("owner")


def _svc(request: Request) -> AccessService:
    state = request.app.state
    return AccessService(state.gateway, state.credentials, state.audit)


@router.get("", response_model=DataResponse[list[UserOut]])
async def list_users(request: Request, ctx: RequestContext = Depends(_owner)):
    return {"data": await _svc(request).list_users(ctx)}


@router.post("", response_model=DataResponse[UserOut], status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, request: Request, ctx: RequestContext = Depends(_owner)):
    """Add a manager or staff member to the business."""
    return {"data": await _svc(request).create_user(ctx, body)}


@router.post("/{user_id}/deactivate", response_model=DataResponse[UserOut])
async def deactivate_user(user_id: str, request: Request, ctx: RequestContext = Depends(_owner)):
    return {"data": await _svc(request).deactivate_user(ctx, user_id)}


@router.get("/{user_id}/feature-toggles", response_model=DataResponse[list[FeatureToggleOut]])
async def list_feature_toggles(
    user_id: str, request: Request, ctx: RequestContext = Depends(_owner)
):
    return {"data": await _svc(request).list_feature_toggles(ctx, user_id)}


@router.post(
    "/{user_id}/feature-toggles",
    response_model=DataResponse[FeatureToggleOut],
    status_code=status.HTTP_201_CREATED,
)
async def grant_feature_toggle(
    user_id: str,
    body: FeatureToggleCreate,
    request: Request,
    ctx: RequestContext = Depends(_owner),
):
    """Grant (isAllowed=true) or deny (false) one permission to one user, optionally until expiresAt."""
    return {"data": await _svc(request).grant_feature_toggle(ctx, user_id, body)}


@router.delete("/{user_id}/feature-toggles/{toggle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_feature_toggle(
    user_id: str,
    toggle_id: str,
    request: Request,
    ctx: RequestContext = Depends(_owner),
):
    await _svc(request).revoke_feature_toggle(ctx, user_id, toggle_id)
