"""Tests — audit recorder attribution, action naming and failure isolation."""

from __future__ import annotations

from typing import get_type_hints

import pytest
from pydantic import BaseModel

from bizcore.core.context import RequestContext
from bizcore.db.base import build_engine, build_session_factory
from bizcore.services.audit import AuditRecorder
from tests.helpers import audit_rows, make_context


class CustomerSnapshot(BaseModel):
    name: str
    credit_limit: float


async def test_log_create_scenario(app, audit):
    ctx = make_context(business_id="biz-1", user_id="user-9")

    await audit.log_create(ctx, "customer", "cust-123", {"name": "Jane"})

    rows = await audit_rows(app)
    assert len(rows) == 1
    entry = rows[0]
    assert entry.action == "customer.created"
    assert entry.resource_type == "customer"
    assert entry.resource_id == "cust-123"
    assert entry.new_values == {"name": "Jane"}
    assert entry.old_values is None
    assert entry.business_id == "biz-1"
    assert entry.user_id == "user-9"
    assert entry.ip_address == "203.0.113.7"
    assert entry.user_agent == "pytest"
    assert entry.created_at is not None


@pytest.mark.parametrize(
    "method, args, expected",
    [
        ("log_create", ({"a": 1},), "invoice.created"),
        ("log_update", ({"a": 1}, {"a": 2}), "invoice.updated"),
        ("log_delete", ({"a": 1},), "invoice.deleted"),
    ],
)
async def test_action_names(app, audit, method, args, expected):
    await getattr(audit, method)(make_context(), "invoice", "inv-1", *args)
    (entry,) = await audit_rows(app)
    assert entry.action == expected
    assert entry.resource_type == "invoice"


async def test_update_keeps_both_snapshots(app, audit):
    await audit.log_update(make_context(), "expense", "exp-1", {"amount": 10}, {"amount": 12})
    (entry,) = await audit_rows(app)
    assert entry.old_values == {"amount": 10}
    assert entry.new_values == {"amount": 12}


async def test_delete_keeps_old_snapshot_only(app, audit):
    await audit.log_delete(make_context(), "expense", "exp-1", {"amount": 10})
    (entry,) = await audit_rows(app)
    assert entry.old_values == {"amount": 10}
    assert entry.new_values is None


async def test_pydantic_snapshot_and_metadata(app, audit):
    await audit.log_create(
        make_context(),
        "customer",
        "cust-1",
        CustomerSnapshot(name="Jane", credit_limit=250.0),
        metadata={"source": "pos"},
    )
    (entry,) = await audit_rows(app)
    assert entry.new_values == {"name": "Jane", "credit_limit": 250.0}
    assert entry.meta == {"source": "pos"}


async def test_attribution_follows_context(app, audit):
    await audit.log_create(make_context("biz-A", "user-A"), "customer", "c-1", {})
    await audit.log_create(make_context("biz-B", "user-B"), "customer", "c-2", {})

    rows = await audit_rows(app)
    assert {(r.resource_id, r.business_id, r.user_id) for r in rows} == {
        ("c-1", "biz-A", "user-A"),
        ("c-2", "biz-B", "user-B"),
    }


async def test_failure_is_swallowed_and_counted(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'nowhere' / 'audit.db'}")
    recorder = AuditRecorder(build_session_factory(engine))

    await recorder.log_create(make_context(), "customer", "cust-1", {"name": "Jane"})

    assert recorder.failures == 1
    await engine.dispose()


async def test_spawned_writes_are_drained(app, audit):
    for i in range(3):
        audit.spawn(audit.log_create(make_context(), "customer", f"cust-{i}", {}))
    await audit.drain()
    assert len(await audit_rows(app)) == 3


@pytest.mark.parametrize("name", ["log_create", "log_update", "log_delete"])
def test_helpers_take_a_typed_context(name):
    hints = get_type_hints(getattr(AuditRecorder, name))
    assert hints["ctx"] is RequestContext
    assert hints["resource_type"] is str
    assert hints["return"] is type(None)
