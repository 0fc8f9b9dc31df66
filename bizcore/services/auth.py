"""Business registration, login and session lookup."""


import logging
import uuid
from datetime import datetime, timezone

from bizcore.core.context import RequestContext
from bizcore.core.exceptions import ConflictError, NotFoundError, UnauthorizedError
from bizcore.core.permissions import DEFAULT_ROLE_PERMISSIONS
from bizcore.core.security import CredentialService
from bizcore.db.gateway import QueryGateway
from bizcore.schemas.auth import LoginRequest, RegisterRequest, SessionOut, UserOut
from bizcore.services.audit import AuditRecorder

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, business_id, email, full_name, role, is_active, last_login_at"


class AuthService:
    def __init__(
        self,
        gateway: QueryGateway,
        credentials: CredentialService,
        audit: AuditRecorder,
    ):
        self._db = gateway
        self._credentials = credentials
        self._audit = audit

    def _session_for(self, user: UserOut) -> SessionOut:
        token = self._credentials.issue_token(
            {"user_id": user.id, "business_id": user.business_id, "role": user.role}
        )
        return SessionOut(
            access_token=token,
            expires_in=int(self._credentials.ttl.total_seconds()),
            user=user,
        )

    async def register(
        self,
        data: RegisterRequest,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SessionOut:
        """Create a business and its owner account in one transaction."""
        email = data.email.strip().lower()
        existing = await self._db.execute("SELECT id FROM users WHERE email = $1", [email])
        if existing:
            raise ConflictError("An account with this email already exists")

        password_hash = await self._credentials.hash_password(data.password)
        business_id = str(uuid.uuid4())
        user_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)

        async with self._db.acquire_client() as client:
            await client.begin()
            try:
                await client.set_tenant(business_id)
                await client.query(
                    """
                    INSERT INTO businesses (id, name, currency, timezone, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $5)
                    """,
                    [business_id, data.business_name, data.currency.upper(), data.timezone, now],
                )
                rows = await client.query(
                    f"""
                    INSERT INTO users (
                        id, business_id, email, full_name, password_hash, role,
                        is_active, created_at, updated_at
                    )
                    VALUES ($1, $2, $3, $4, $5, 'owner', $6, $7, $7)
                    RETURNING {USER_COLUMNS}
                    """,
                    [user_id, business_id, email, data.full_name, password_hash, True, now],
                )
                for role, permissions in DEFAULT_ROLE_PERMISSIONS.items():
                    for permission in permissions:
                        await client.query(
                            """
                            INSERT INTO role_permissions (
                                id, business_id, role, permission, created_at, updated_at
                            )
                            VALUES ($1, $2, $3, $4, $5, $5)
                            """,
                            [str(uuid.uuid4()), business_id, role, permission, now],
                        )
                await client.commit()
            except Exception:
                await client.rollback()
                logger.exception("Business registration rolled back | email=%s", email)
                raise

        owner = UserOut.model_validate(rows[0])
        logger.info("Business registered | business_id=%s owner_id=%s", business_id, user_id)

        ctx = RequestContext(
            business_id=business_id,
            user_id=user_id,
            role=owner.role,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._audit.spawn(
            self._audit.log_create(
                ctx,
                "business",
                business_id,
                {"name": data.business_name, "currency": data.currency.upper(), "owner_email": email},
            )
        )
        return self._session_for(owner)

    async def login(
        self,
        data: LoginRequest,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SessionOut:
        email = data.email.strip().lower()
        rows = await self._db.execute(
            f"SELECT {USER_COLUMNS}, password_hash FROM users WHERE email = $1", [email]
        )
        row = rows[0] if rows else None
        if (
            row is None
            or not row["is_active"]
            or not await self._credentials.verify_password(data.password, row["password_hash"])
        ):
            logger.warning("LOGIN FAILED | email=%s ip=%s", email, ip_address)
            raise UnauthorizedError("Invalid credentials")

        now = datetime.now(timezone.utc)
        await self._db.execute(
            "UPDATE users SET last_login_at = $1 WHERE id = $2 AND business_id = $3",
            [now, row["id"], row["business_id"]],
        )
        user = UserOut.model_validate({**row, "last_login_at": now})
        logger.info("LOGIN SUCCESS | user_id=%s business_id=%s", user.id, user.business_id)

        ctx = RequestContext(
            business_id=user.business_id,
            user_id=user.id,
            role=user.role,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._audit.spawn(self._audit.log_for(ctx, "user.login", "user", user.id))
        return self._session_for(user)

    async def current_user(self, ctx: RequestContext) -> UserOut:
        rows = await self._db.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = $1 AND business_id = $2",
            [ctx.user_id, ctx.business_id],
        )
        if not rows:
            raise NotFoundError("User", ctx.user_id)
        return UserOut.model_validate(rows[0])
