"""Team members, role grants and per-user feature toggles.

Owners manage who belongs to the business and what each role may do. Every
write is tenant-scoped and audited like any other resource:
  user.created / user.updated
  role_permission.created / role_permission.deleted
  feature_toggle.created / feature_toggle.deleted
"""


import logging
import uuid
from datetime import datetime, timezone

from bizcore.core.context import RequestContext
from bizcore.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from bizcore.core.security import CredentialService
from bizcore.db.gateway import QueryGateway
from bizcore.schemas.access import (
    FeatureToggleCreate,
    FeatureToggleOut,
    RolePermissionCreate,
    RolePermissionOut,
    UserCreate,
)
from bizcore.schemas.auth import UserOut
from bizcore.services.audit import AuditRecorder
from bizcore.services.auth import USER_COLUMNS

logger = logging.getLogger(__name__)

_GRANT_COLUMNS = "id, role, permission, created_at"
_TOGGLE_COLUMNS = "id, user_id, permission, is_allowed, expires_at, reason, created_at"


class AccessService:
    def __init__(
        self,
        gateway: QueryGateway,
        credentials: CredentialService,
        audit: AuditRecorder,
    ):
        self._db = gateway
        self._credentials = credentials
        self._audit = audit

    # ------------------------------------------------------------------
    # Team members
    # ------------------------------------------------------------------

    async def list_users(self, ctx: RequestContext) -> list[UserOut]:
        rows = await self._db.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE business_id = $1 ORDER BY created_at",
            [ctx.business_id],
        )
        return [UserOut.model_validate(r) for r in rows]

    async def get_user(self, ctx: RequestContext, user_id: str) -> UserOut:
        rows = await self._db.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = $1 AND business_id = $2",
            [user_id, ctx.business_id],
        )
        if not rows:
            raise NotFoundError("User", user_id)
        return UserOut.model_validate(rows[0])

    async def create_user(self, ctx: RequestContext, data: UserCreate) -> UserOut:
        email = data.email.strip().lower()
        if await self._db.execute("SELECT id FROM users WHERE email = $1", [email]):
            raise ConflictError("An account with this email already exists")

        password_hash = await self._credentials.hash_password(data.password)
        now = datetime.now(timezone.utc)
        rows = await self._db.execute(
            f"""
            INSERT INTO users (
                id, business_id, email, full_name, password_hash, role,
                is_active, created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $8)
            RETURNING {USER_COLUMNS}
            """,
            [str(uuid.uuid4()), ctx.business_id, email, data.full_name, password_hash, data.role, True, now],
        )
        user = UserOut.model_validate(rows[0])
        logger.info(
            "User added | business_id=%s user_id=%s role=%s", ctx.business_id, user.id, user.role
        )
        self._audit.spawn(
            self._audit.log_create(
                ctx, "user", user.id, {"email": email, "full_name": data.full_name, "role": data.role}
            )
        )
        return user

    async def deactivate_user(self, ctx: RequestContext, user_id: str) -> UserOut:
        """Block further logins and permission grants; tokens already issued run out on expiry."""
        user = await self.get_user(ctx, user_id)
        if user.id == ctx.user_id:
            raise ValidationError("You cannot deactivate your own account")
        if user.role == "owner":
            raise ForbiddenError("The business owner cannot be deactivated")
        if not user.is_active:
            return user

        rows = await self._db.execute(
            f"""
            UPDATE users SET is_active = $1, updated_at = $2
            WHERE id = $3 AND business_id = $4
            RETURNING {USER_COLUMNS}
            """,
            [False, datetime.now(timezone.utc), user_id, ctx.business_id],
        )
        updated = UserOut.model_validate(rows[0])
        self._audit.spawn(
            self._audit.log_update(ctx, "user", user_id, {"is_active": True}, {"is_active": False})
        )
        return updated

    # ------------------------------------------------------------------
    # Role grants
    # ------------------------------------------------------------------

    async def list_role_permissions(
        self, ctx: RequestContext, role: str | None = None
    ) -> list[RolePermissionOut]:
        sql = f"SELECT {_GRANT_COLUMNS} FROM role_permissions WHERE business_id = $1"
        params: list = [ctx.business_id]
        if role:
            params.append(role)
            sql += " AND role = $2"
        rows = await self._db.execute(sql + " ORDER BY role, permission", params)
        return [RolePermissionOut.model_validate(r) for r in rows]

    async def grant_role_permission(
        self, ctx: RequestContext, data: RolePermissionCreate
    ) -> RolePermissionOut:
        existing = await self._db.execute(
            "SELECT id FROM role_permissions WHERE business_id = $1 AND role = $2 AND permission = $3",
            [ctx.business_id, data.role, data.permission],
        )
        if existing:
            raise ConflictError(f"Role '{data.role}' already has '{data.permission}'")

        now = datetime.now(timezone.utc)
        rows = await self._db.execute(
            f"""
            INSERT INTO role_permissions (id, business_id, role, permission, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $5)
            RETURNING {_GRANT_COLUMNS}
            """,
            [str(uuid.uuid4()), ctx.business_id, data.role, data.permission, now],
        )
        grant = RolePermissionOut.model_validate(rows[0])
        self._audit.spawn(
            self._audit.log_create(
                ctx, "role_permission", grant.id, {"role": grant.role, "permission": grant.permission}
            )
        )
        return grant

    async def revoke_role_permission(self, ctx: RequestContext, grant_id: str) -> None:
        rows = await self._db.execute(
            f"DELETE FROM role_permissions WHERE id = $1 AND business_id = $2 RETURNING {_GRANT_COLUMNS}",
            [grant_id, ctx.business_id],
        )
        if not rows:
            raise NotFoundError("Role permission", grant_id)
        before = RolePermissionOut.model_validate(rows[0])
        self._audit.spawn(
            self._audit.log_delete(
                ctx, "role_permission", grant_id, {"role": before.role, "permission": before.permission}
            )
        )

    # ------------------------------------------------------------------
    # Feature toggles
    # ------------------------------------------------------------------

    async def list_feature_toggles(
        self, ctx: RequestContext, user_id: str
    ) -> list[FeatureToggleOut]:
        await self.get_user(ctx, user_id)
        rows = await self._db.execute(
            f"""
            SELECT {_TOGGLE_COLUMNS} FROM user_feature_toggles
            WHERE user_id = $1 AND business_id = $2
            ORDER BY created_at
            """,
            [user_id, ctx.business_id],
        )
        return [FeatureToggleOut.model_validate(r) for r in rows]

    async def grant_feature_toggle(
        self, ctx: RequestContext, user_id: str, data: FeatureToggleCreate
    ) -> FeatureToggleOut:
        await self.get_user(ctx, user_id)  # 404 for users of other businesses
        expires_at = data.expires_at
        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        now = datetime.now(timezone.utc)
        rows = await self._db.execute(
            f"""
            INSERT INTO user_feature_toggles (
                id, business_id, user_id, permission, is_allowed, expires_at, reason,
                created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $8)
            RETURNING {_TOGGLE_COLUMNS}
            """,
            [
                str(uuid.uuid4()),
                ctx.business_id,
                user_id,
                data.permission,
                data.is_allowed,
                expires_at,
                data.reason,
                now,
            ],
        )
        toggle = FeatureToggleOut.model_validate(rows[0])
        logger.info(
            "Feature toggle set | business_id=%s user_id=%s permission=%s allowed=%s",
            ctx.business_id, user_id, toggle.permission, toggle.is_allowed,
        )
        self._audit.spawn(
            self._audit.log_create(
                ctx,
                "feature_toggle",
                toggle.id,
                {
                    "user_id": user_id,
                    "permission": toggle.permission,
                    "is_allowed": toggle.is_allowed,
                    "expires_at": expires_at,
                    "reason": toggle.reason,
                },
            )
        )
        return toggle

    async def revoke_feature_toggle(
        self, ctx: RequestContext, user_id: str, toggle_id: str
    ) -> None:
        rows = await self._db.execute(
            f"""
            DELETE FROM user_feature_toggles
            WHERE id = $1 AND user_id = $2 AND business_id = $3
            RETURNING {_TOGGLE_COLUMNS}
            """,
            [toggle_id, user_id, ctx.business_id],
        )
        if not rows:
            raise NotFoundError("Feature toggle", toggle_id)
        self._audit.spawn(
            self._audit.log_delete(
                ctx, "feature_toggle", toggle_id, FeatureToggleOut.model_validate(rows[0])
            )
        )
