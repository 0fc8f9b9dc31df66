"""Role grant endpoints (owners only)."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from bizcore.core.context import RequestContext
from bizcore.core.permissions import require_roles
from bizcore.core.response import DataResponse
from bizcore.schemas.access import RolePermissionCreate, RolePermissionOut
from bizcore.services.access import AccessService

router = APIRouter(prefix="/role-permissions", tags=["Permissions"])

_owner = require_roles("owner")


def _svc(request: Request) -> AccessService:
    state = request.app.state
    return AccessService(state.gateway, state.credentials, state.audit)


@router.get("", response_model=DataResponse[list[RolePermissionOut]])
async def list_role_permissions(
    request: Request,
    role: Optional[str] = Query(default=None),
    ctx: RequestContext = Depends(_owner),
):
    return {"data": await _svc(request).list_role_permissions(ctx, role)}


@router.post("", response_model=DataResponse[RolePermissionOut], status_code=status.HTTP_201_CREATED)
async def grant_role_permission(
    body: RolePermissionCreate, request: Request, ctx: RequestContext = Depends(_owner)
):
    return {"data": await _svc(request).grant_role_permission(ctx, body)}


@router.delete("/{grant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_role_permission(
    grant_id: str, request: Request, ctx: RequestContext = Depends(_owner)
):
    await _svc(request).revoke_role_permission(ctx, grant_id)
