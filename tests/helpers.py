"""Test helpers shared across modules."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from bizcore.core.context import RequestContext

TEST_SECRET = "test-signing-secret"
PASSWORD = "correct-horse-battery"


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register_business(client, email: str, business_name: str = "Test Business") -> dict:
    """Register a business through the API; returns the session payload."""
    response = await client.post(
        "/api/v1/auth/register",
        json={
            "businessName": business_name,
            "fullName": "Test Owner",
            "email": email,
            "password": PASSWORD,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def add_user(gateway, credentials, business_id: str, email: str, role: str = "staff") -> str:
    """Insert a user straight into the tenant, bypassing the API; returns its id."""
    user_id = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    await gateway.execute(
        """
        INSERT INTO users (
            id, business_id, email, full_name, password_hash, role, is_active, created_at, updated_at
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $8)
        """,
        [
            user_id,
            business_id,
            email,
            f"Test {role.title()}",
            await credentials.hash_password(PASSWORD),
            role,
            True,
            now,
        ],
    )
    return user_id


async def invite_user(client, owner_headers: dict, email: str, role: str = "staff") -> dict:
    """Add a team member through the owner-only users endpoint; returns the user."""
    response = await client.post(
        "/api/v1/users",
        json={"email": email, "fullName": f"Test {role.title()}", "password": PASSWORD, "role": role},
        headers=owner_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def login(client, email: str) -> str:
    response = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()["data"]["accessToken"]


def make_context(business_id: str = "biz-1", user_id: str = "user-9", role: str = "owner") -> RequestContext:
    return RequestContext(
        business_id=business_id,
        user_id=user_id,
        role=role,
        ip_address="203.0.113.7",
        user_agent="pytest",
    )


async def audit_rows(app, **filters) -> list:
    """Every audit_logs row (oldest first), optionally filtered by column equality."""
    from sqlalchemy import select

    from bizcore.domain.audit import AuditLog

    await app.state.audit.drain()
    q = select(AuditLog).order_by(AuditLog.created_at)
    for column, value in filters.items():
        q = q.where(getattr(AuditLog, column) == value)
    async with app.state.session_factory() as session:
        return list((await session.execute(q)).scalars().all())
