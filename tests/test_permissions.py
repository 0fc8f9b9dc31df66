"""Tests — role grants, per-user toggles and owner bypass."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from bizcore.core.permissions import has_permission
from tests.helpers import add_user, make_context, register_business


@pytest.fixture
async def tenant(client):
    session = await register_business(client, "owner@perm.test")
    return session["user"]["businessId"]


async def _toggle(gateway, business_id, user_id, permission, allowed, expires_at=None):
    now = datetime.now(timezone.utc)
    await gateway.execute(
        """
        INSERT INTO user_feature_toggles (
            id, business_id, user_id, permission, is_allowed, expires_at, created_at, updated_at
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $7)
        """,
        [str(uuid.uuid4()), business_id, user_id, permission, allowed, expires_at, now],
    )


async def test_owner_has_everything(gateway):
    assert await has_permission(gateway, make_context(role="owner"), "anything:at-all")


async def test_staff_default_grants(gateway, credentials, tenant):
    staff_id = await add_user(gateway, credentials, tenant, "staff@perm.test")
    ctx = make_context(tenant, staff_id, "staff")

    assert await has_permission(gateway, ctx, "customer:read")
    assert await has_permission(gateway, ctx, "customer:create")
    assert not await has_permission(gateway, ctx, "customer:delete")
    assert not await has_permission(gateway, ctx, "audit:read")


async def test_manager_default_grants(gateway, credentials, tenant):
    manager_id = await add_user(gateway, credentials, tenant, "manager@perm.test", role="manager")
    ctx = make_context(tenant, manager_id, "manager")
    assert await has_permission(gateway, ctx, "customer:delete")


async def test_denying_toggle_overrides_role(gateway, credentials, tenant):
    staff_id = await add_user(gateway, credentials, tenant, "staff@perm.test")
    await _toggle(gateway, tenant, staff_id, "customer:create", False)
    assert not await has_permission(gateway, make_context(tenant, staff_id, "staff"), "customer:create")


async def test_granting_toggle_adds_permission(gateway, credentials, tenant):
    staff_id = await add_user(gateway, credentials, tenant, "staff@perm.test")
    await _toggle(gateway, tenant, staff_id, "customer:delete", True)
    assert await has_permission(gateway, make_context(tenant, staff_id, "staff"), "customer:delete")


async def test_expired_toggles_are_ignored(gateway, credentials, tenant):
    staff_id = await add_user(gateway, credentials, tenant, "staff@perm.test")
    last_year = datetime.now(timezone.utc) - timedelta(days=365)
    await _toggle(gateway, tenant, staff_id, "customer:delete", True, last_year)
    await _toggle(gateway, tenant, staff_id, "customer:create", False, last_year)

    ctx = make_context(tenant, staff_id, "staff")
    assert not await has_permission(gateway, ctx, "customer:delete")
    assert await has_permission(gateway, ctx, "customer:create")


async def test_grants_do_not_cross_tenants(client, gateway, credentials, tenant):
    other = await register_business(client, "owner@other.test", "Other Business")
    staff_id = await add_user(gateway, credentials, tenant, "staff@perm.test")

    # token claiming the other business cannot borrow this tenant's grants
    ctx = make_context(other["user"]["businessId"], staff_id, "staff")
    assert not await has_permission(gateway, ctx, "customer:read")


async def test_inactive_user_has_nothing(gateway, credentials, tenant):
    staff_id = await add_user(gateway, credentials, tenant, "staff@perm.test")
    await gateway.execute("UPDATE users SET is_active = $1 WHERE id = $2", [False, staff_id])
    assert not await has_permission(gateway, make_context(tenant, staff_id, "staff"), "customer:read")
