"""Tests — audit log search, lookup, recent activity and summary."""

from __future__ import annotations

import pytest

from tests.helpers import auth, invite_user, login, register_business


@pytest.fixture
async def owner(app, client):
    session = await register_business(client, "owner@a.test", "Business A")
    headers = auth(session["accessToken"])
    for name in ("Jane", "Bob", "Ann"):
        response = await client.post("/api/v1/customers", json={"firstName": name}, headers=headers)
        assert response.status_code == 201
    await app.state.audit.drain()
    return session


@pytest.fixture
def headers(owner):
    return auth(owner["accessToken"])


async def test_search_all(client, owner, headers):
    response = await client.get("/api/v1/audit-logs", headers=headers)
    assert response.status_code == 200
    body = response.json()
    # business.created + 3 x customer.created
    assert body["meta"]["total"] == 4
    assert all(e["businessId"] == owner["user"]["businessId"] for e in body["data"])
    assert "metadata" in body["data"][0]


async def test_search_filters(client, owner, headers):
    response = await client.get(
        "/api/v1/audit-logs", params={"action": "customer.created", "limit": 2}, headers=headers
    )
    body = response.json()
    assert body["meta"] == {"total": 3, "page": 1, "limit": 2, "pages": 2}
    assert len(body["data"]) == 2

    response = await client.get(
        "/api/v1/audit-logs", params={"resourceType": "business"}, headers=headers
    )
    assert response.json()["meta"]["total"] == 1

    response = await client.get(
        "/api/v1/audit-logs", params={"userId": owner["user"]["id"]}, headers=headers
    )
    assert response.json()["meta"]["total"] == 4

    response = await client.get("/api/v1/audit-logs", params={"search": "BUSINESS"}, headers=headers)
    assert response.json()["meta"]["total"] == 1

    response = await client.get(
        "/api/v1/audit-logs", params={"startDate": "2999-01-01T00:00:00Z"}, headers=headers
    )
    assert response.json()["meta"]["total"] == 0


async def test_get_by_id_is_tenant_scoped(client, headers):
    entry = (await client.get("/api/v1/audit-logs", headers=headers)).json()["data"][0]

    response = await client.get(f"/api/v1/audit-logs/{entry['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["action"] == entry["action"]

    other = await register_business(client, "owner@b.test", "Business B")
    response = await client.get(
        f"/api/v1/audit-logs/{entry['id']}", headers=auth(other["accessToken"])
    )
    assert response.status_code == 404


async def test_recent(client, headers):
    response = await client.get("/api/v1/audit-logs/recent", params={"limit": 2}, headers=headers)
    assert response.status_code == 200
    assert len(response.json()["data"]) == 2


async def test_summary(client, owner, headers):
    response = await client.get("/api/v1/audit-logs/summary", params={"period": "30d"}, headers=headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["period"] == "30d"
    assert data["totalActions"] == 4
    assert data["uniqueUsers"] == 1
    assert data["resourceTypes"] == 2
    assert data["actionTypes"] == 2
    assert data["actionsByType"][0] == {"key": "customer.created", "count": 3}
    assert data["topUsers"][0] == {"key": owner["user"]["id"], "count": 4}


async def test_summary_unknown_period_defaults(client, headers):
    response = await client.get("/api/v1/audit-logs/summary", params={"period": "5y"}, headers=headers)
    assert response.json()["data"]["period"] == "7d"


async def test_staff_cannot_read_audit(client, headers):
    await invite_user(client, headers, "staff@a.test")
    staff_headers = auth(await login(client, "staff@a.test"))
    response = await client.get("/api/v1/audit-logs", headers=staff_headers)
    assert response.status_code == 403


async def test_sort_by_allowed_column(client, headers):
    response = await client.get(
        "/api/v1/audit-logs", params={"sort": "action", "order": "asc"}, headers=headers
    )
    actions = [e["action"] for e in response.json()["data"]]
    assert actions == sorted(actions)


@pytest.mark.parametrize("sort", ["metadata", "meta", "__tablename__", "id; DROP TABLE audit_logs"])
async def test_unknown_sort_falls_back_to_created_at(client, headers, sort):
    response = await client.get("/api/v1/audit-logs", params={"sort": sort}, headers=headers)
    assert response.status_code == 200
    assert response.json()["meta"]["total"] == 4


async def test_search_wildcards_match_literally(client, headers):
    response = await client.get("/api/v1/audit-logs", params={"search": "_"}, headers=headers)
    assert response.json()["meta"]["total"] == 0
