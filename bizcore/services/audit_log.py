"""Audit log queries — search, lookup, recent activity and period summaries."""


from datetime import datetime, timedelta, timezone

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from bizcore.core.exceptions import NotFoundError
from bizcore.core.pagination import PaginationParams
from bizcore.db.gateway import escape_like
from bizcore.domain.audit import AuditLog
from bizcore.repositories.audit import AuditLogRepository

SUMMARY_PERIODS: dict[str, timedelta] = {
    "1d": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}
DEFAULT_PERIOD = "7d"
SORTABLE = {"created_at", "action", "resource_type", "user_id"}


class AuditLogService:
    def __init__(self, session: AsyncSession, business_id: str):
        self._repo = AuditLogRepository(session, business_id)

    async def search(
        self,
        pagination: PaginationParams,
        *,
        action: str | None = None,
        resource_type: str | None = None,
        user_id: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        search: str | None = None,
    ) -> tuple[list[AuditLog], int]:
        conditions = []
        if start_date:
            conditions.append(AuditLog.created_at >= start_date)
        if end_date:
            conditions.append(AuditLog.created_at <= end_date)
        if search:
            pattern = f"%{escape_like(search)}%"
            conditions.append(
                or_(
                    AuditLog.action.ilike(pattern, escape="\\"),
                    AuditLog.resource_type.ilike(pattern, escape="\\"),
                )
            )
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort if pagination.sort in SORTABLE else "created_at",
            order=pagination.order,
            filters={"action": action, "resource_type": resource_type, "user_id": user_id},
            conditions=conditions,
        )

    async def get(self, log_id: str) -> AuditLog:
        entry = await self._repo.get_by_id(log_id)
        if not entry:
            raise NotFoundError("Audit log", log_id)
        return entry

    async def recent(self, limit: int = 10) -> list[AuditLog]:
        items, _ = await self._repo.list(limit=limit)
        return items

    async def summary(self, period: str = DEFAULT_PERIOD) -> dict:
        # Unknown periods fall back to the default window
        if period not in SUMMARY_PERIODS:
            period = DEFAULT_PERIOD
        since = datetime.now(timezone.utc) - SUMMARY_PERIODS[period]
        totals = await self._repo.totals_since(since)
        return {
            "period": period,
            **totals,
            "actions_by_type": await self._repo.top_counts("action", since),
            "actions_by_resource": await self._repo.top_counts("resource_type", since),
            "top_users": await self._repo.top_counts("user_id", since),
        }
