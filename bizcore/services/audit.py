"""Audit recorder — appends who-did-what-to-what rows to audit_logs.

Audit writes are a side channel: ``log_action`` never raises. A failed insert
is logged at WARNING and counted in ``failures``; the calling mutation has
already committed and its result is unaffected.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, Optional

from pydantic_core import to_jsonable_python
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bizcore.core.context import RequestContext
from bizcore.domain.audit import AuditLog

logger = logging.getLogger("bizcore.audit")


def _snapshot(value: Any) -> Any:
    """Dicts and pydantic models both land in the JSON columns as plain JSON."""
    if value is None:
        return None
    return to_jsonable_python(value)


class AuditRecorder:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._pending: set[asyncio.Task] = set()
        self.failures = 0

    async def log_action(
        self,
        *,
        business_id: str,
        user_id: Optional[str],
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        old_values: Any = None,
        new_values: Any = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        try:
            async with self._session_factory() as session:
                session.add(
                    AuditLog(
                        business_id=business_id,
                        user_id=user_id,
                        action=action,
                        resource_type=resource_type,
                        resource_id=str(resource_id) if resource_id is not None else None,
                        old_values=_snapshot(old_values),
                        new_values=_snapshot(new_values),
                        ip_address=ip_address,
                        user_agent=user_agent,
                        meta=_snapshot(metadata),
                    )
                )
                await session.commit()
        except Exception as exc:
            self.failures += 1
            logger.warning(
                "Audit write failed | action=%s business_id=%s resource=%s/%s | %s",
                action, business_id, resource_type, resource_id, exc,
            )

    async def log_for(
        self,
        ctx: RequestContext,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        *,
        old_values: Any = None,
        new_values: Any = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Record an arbitrary action attributed to the request's business and user."""
        await self.log_action(
            business_id=ctx.business_id,
            user_id=ctx.user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
            metadata=metadata,
        )

    async def log_create(
        self,
        ctx: RequestContext,
        resource_type: str,
        resource_id: Optional[str],
        new_values: Any,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        await self.log_for(
            ctx, f"{resource_type}.created", resource_type, resource_id,
            new_values=new_values, metadata=metadata,
        )

    async def log_update(
        self,
        ctx: RequestContext,
        resource_type: str,
        resource_id: Optional[str],
        old_values: Any,
        new_values: Any,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        await self.log_for(
            ctx, f"{resource_type}.updated", resource_type, resource_id,
            old_values=old_values, new_values=new_values, metadata=metadata,
        )

    async def log_delete(
        self,
        ctx: RequestContext,
        resource_type: str,
        resource_id: Optional[str],
        old_values: Any,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        await self.log_for(
            ctx, f"{resource_type}.deleted", resource_type, resource_id,
            old_values=old_values, metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Fire-and-forget scheduling
    # ------------------------------------------------------------------

    def spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        """Schedule an audit write without awaiting it."""
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled audit write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
