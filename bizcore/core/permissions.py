"""Role and permission checks, exposed as FastAPI dependencies.

A non-owner user holds a permission when
  * their role is granted it in role_permissions and no active denying
    toggle exists for them, or
  * an active granting toggle exists for them.
Owners hold every permission. A toggle is active until its expires_at.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends, Request

from bizcore.core.context import RequestContext, get_request_context
from bizcore.core.exceptions import ForbiddenError
from bizcore.db.gateway import QueryGateway

logger = logging.getLogger(__name__)

# Seeded for every new business. Owners are not listed: they bypass checks.
DEFAULT_ROLE_PERMISSIONS: dict[str, tuple[str, ...]] = {
    "manager": (
        "customer:read",
        "customer:create",
        "customer:update",
        "customer:delete",
        "audit:read",
    ),
    "staff": (
        "customer:read",
        "customer:create",
    ),
}

_PERMISSION_CHECK_SQL = """
SELECT 1 AS granted
FROM users u
WHERE u.id = $1
  AND u.business_id = $3
  AND u.is_active = true
  AND (
    (
      EXISTS (
        SELECT 1 FROM role_permissions rp
        WHERE rp.business_id = u.business_id
          AND rp.role = u.role
          AND rp.permission = $2
      )
      AND NOT EXISTS (
        SELECT 1 FROM user_feature_toggles uft
        WHERE uft.user_id = u.id
          AND uft.permission = $2
          AND uft.is_allowed = false
          AND (uft.expires_at IS NULL OR uft.expires_at > $4)
      )
    )
    OR EXISTS (
      SELECT 1 FROM user_feature_toggles uft
      WHERE uft.user_id = u.id
        AND uft.permission = $2
        AND uft.is_allowed = true
        AND (uft.expires_at IS NULL OR uft.expires_at > $4)
    )
  )
LIMIT 1
"""


def get_gateway(request: Request) -> QueryGateway:
    return request.app.state.gateway


async def has_permission(
    gateway: QueryGateway,
    ctx: RequestContext,
    permission: str,
    now: datetime | None = None,
) -> bool:
    if ctx.is_owner:
        return True
    now = now or datetime.now(timezone.utc)
    rows = await gateway.execute(
        _PERMISSION_CHECK_SQL, [ctx.user_id, permission, ctx.business_id, now]
    )
    return bool(rows)


def require_permission(permission: str):
    """Dependency factory: `Depends(require_permission("customer:create"))`."""

    async def _check(
        ctx: RequestContext = Depends(get_request_context),
        gateway: QueryGateway = Depends(get_gateway),
    ) -> RequestContext:
        if not await has_permission(gateway, ctx, permission):
            logger.warning(
                "Permission denied | user_id=%s role=%s permission=%s",
                ctx.user_id, ctx.role, permission,
            )
            raise ForbiddenError(f"Missing permission '{permission}'")
        return ctx

    return _check


def require_roles(*roles: str):
    async def _check(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if ctx.role not in roles:
            logger.warning("Role denied | user_id=%s role=%s", ctx.user_id, ctx.role)
            raise ForbiddenError("Insufficient role for this resource")
        return ctx

    return _check
