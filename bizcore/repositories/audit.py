"""Audit log repository — read-only; audit rows are only ever inserted by AuditRecorder."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select

from bizcore.domain.audit import AuditLog
from bizcore.repositories.base import TenantRepository


class AuditLogRepository(TenantRepository[AuditLog]):
    model = AuditLog

    async def totals_since(self, since: datetime) -> dict:
        q = select(
            func.count().label("total_actions"),
            func.count(func.distinct(AuditLog.user_id)).label("unique_users"),
            func.count(func.distinct(AuditLog.resource_type)).label("resource_types"),
            func.count(func.distinct(AuditLog.action)).label("action_types"),
            func.max(AuditLog.created_at).label("latest_action"),
            func.min(AuditLog.created_at).label("earliest_action"),
        ).where(
            AuditLog.business_id == self._business_id,
            AuditLog.created_at >= since,
        )
        row = (await self._session.execute(q)).mappings().one()
        return dict(row)

    async def top_counts(self, column_name: str, since: datetime, limit: int = 10) -> list[dict]:
        """Most frequent values of one column (action, resource_type, user_id) since a point in time."""
        column = getattr(AuditLog, column_name)
        count = func.count().label("count")
        q = (
            select(column.label("key"), count)
            .where(
                AuditLog.business_id == self._business_id,
                AuditLog.created_at >= since,
            )
            .group_by(column)
            .order_by(count.desc())
            .limit(limit)
        )
        return [dict(row) for row in (await self._session.execute(q)).mappings().all()]
