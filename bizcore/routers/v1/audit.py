"""Audit log read endpoints (owners and managers only)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bizcore.core.context import RequestContext
from bizcore.core.pagination import PaginationParams
from bizcore.core.permissions import require_roles
from bizcore.core.response import DataResponse, ListResponse, paginated
from bizcore.db.base import get_db
from bizcore.schemas.audit import AuditLogOut, AuditSummaryOut
from bizcore.services.audit_log import DEFAULT_PERIOD, AuditLogService

router = APIRouter(prefix="/audit-logs", tags=["Audit"])

_can_view = require_roles("owner", "manager")


@router.get("", response_model=ListResponse[AuditLogOut])
async def search_audit_logs(
    action: Optional[str] = Query(default=None),
    resource_type: Optional[str] = Query(default=None, alias="resourceType"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    search: Optional[str] = Query(default=None),
    pagination: PaginationParams = Depends(),
    ctx: RequestContext = Depends(_can_view),
    session: AsyncSession = Depends(get_db),
):
    items, total = await AuditLogService(session, ctx.business_id).search(
        pagination,
        action=action,
        resource_type=resource_type,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return paginated(
        [AuditLogOut.model_validate(i) for i in items],
        total, pagination.page, pagination.limit,
    )


@router.get("/recent", response_model=DataResponse[list[AuditLogOut]])
async def recent_activity(
    limit: int = Query(default=10, ge=1, le=100),
    ctx: RequestContext = Depends(_can_view),
    session: AsyncSession = Depends(get_db),
):
    items = await AuditLogService(session, ctx.business_id).recent(limit)
    return {"data": [AuditLogOut.model_validate(i) for i in items]}


@router.get("/summary", response_model=DataResponse[AuditSummaryOut])
async def audit_summary(
    period: str = Query(default=DEFAULT_PERIOD, description="1d | 7d | 30d | 90d"),
    ctx: RequestContext = Depends(_can_view),
    session: AsyncSession = Depends(get_db),
):
    return {"data": await AuditLogService(session, ctx.business_id).summary(period)}


@router.get("/{log_id}", response_model=DataResponse[AuditLogOut])
async def get_audit_log(
    log_id: str,
    ctx: RequestContext = Depends(_can_view),
    session: AsyncSession = Depends(get_db),
):
    entry = await AuditLogService(session, ctx.business_id).get(log_id)
    return {"data": AuditLogOut.model_validate(entry)}
