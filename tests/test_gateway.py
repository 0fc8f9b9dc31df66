"""Tests — positional SQL binding, scoped clients and health checks."""

from __future__ import annotations

import logging

import pytest
from sqlalchemy.dialects import postgresql

from bizcore.db.base import build_engine
from bizcore.db.gateway import QueryGateway, QueryParameterError, compile_positional


@pytest.fixture
async def scratch(gateway):
    await gateway.execute("CREATE TABLE t (x TEXT, y INTEGER)")
    return gateway


class TestCompilePositional:
    def test_placeholders_become_binds(self):
        statement = compile_positional("SELECT * FROM t WHERE x=$1 AND y=$2", ["a", 1])
        sql = str(statement)
        assert ":p1" in sql and ":p2" in sql
        assert "'a'" not in sql

    def test_reused_placeholder(self):
        statement = compile_positional("SELECT $1 AS a, $1 AS b", ["v"])
        assert str(statement).count(":p1") == 2

    def test_placeholder_inside_literal_untouched(self):
        statement = compile_positional("SELECT '$1' AS lit, $1 AS val", ["v"])
        assert "'$1'" in str(statement)

    def test_cast_after_placeholder(self):
        statement = compile_positional("SELECT $1::text AS v", ["a"])
        assert str(statement) == "SELECT :p1::text AS v"
        compiled = statement.compile(dialect=postgresql.dialect())
        assert "%(p1)s::text" in str(compiled)
        assert compiled.params == {"p1": "a"}

    def test_colon_inside_literal_is_not_a_bind(self):
        statement = compile_positional("SELECT 'a :b' AS lit, $1 AS v", ["x"])
        assert str(statement) == "SELECT 'a :b' AS lit, :p1 AS v"
        assert set(statement.compile().params) == {"p1"}

    @pytest.mark.parametrize(
        "sql, params",
        [
            ("SELECT $1", []),
            ("SELECT $1", ["a", "b"]),
            ("SELECT $2", ["a"]),
            ("SELECT 1", ["a"]),
        ],
    )
    def test_mismatch_rejected(self, sql, params):
        with pytest.raises(QueryParameterError):
            compile_positional(sql, params)


class TestExecute:
    async def test_binds_positionally(self, scratch):
        await scratch.execute("INSERT INTO t (x, y) VALUES ($1, $2)", ["a", 1])
        await scratch.execute("INSERT INTO t (x, y) VALUES ($1, $2)", ["b", 2])
        rows = await scratch.execute("SELECT * FROM t WHERE x=$1 AND y=$2", ["a", 1])
        assert rows == [{"x": "a", "y": 1}]

    async def test_injection_attempt_is_stored_literally(self, scratch):
        payload = "a'; DROP TABLE t; --"
        await scratch.execute("INSERT INTO t (x, y) VALUES ($1, $2)", [payload, 1])
        rows = await scratch.execute("SELECT x FROM t WHERE x=$1", [payload])
        assert rows == [{"x": payload}]
        # table still exists
        assert await scratch.execute("SELECT COUNT(*) AS n FROM t") == [{"n": 1}]

    async def test_statement_without_rows(self, scratch):
        assert await scratch.execute("INSERT INTO t (x, y) VALUES ($1, $2)", ["a", 1]) == []

    async def test_colons_in_literals_and_values(self, scratch):
        rows = await scratch.execute("SELECT 'a :b' AS lit, '10:30' AS clock, $1 AS v", ["c:d"])
        assert rows == [{"lit": "a :b", "clock": "10:30", "v": "c:d"}]

    async def test_sensitive_parameters_are_not_logged(self, scratch, caplog):
        caplog.set_level(logging.DEBUG, logger="bizcore.db")
        await scratch.execute("CREATE TABLE creds (password_hash TEXT)")
        await scratch.execute("INSERT INTO creds (password_hash) VALUES ($1)", ["$2b$10$hidden"])
        await scratch.execute("SELECT x FROM t WHERE x = $1", ["visible"])
        assert "hidden" not in caplog.text
        assert "<1 redacted>" in caplog.text
        assert "visible" in caplog.text

    async def test_database_errors_propagate(self, scratch):
        with pytest.raises(Exception) as excinfo:
            await scratch.execute("SELECT * FROM missing_table")
        assert "missing_table" in str(excinfo.value)


class TestScopedClient:
    async def test_commit_persists(self, scratch):
        async with scratch.acquire_client() as client:
            await client.begin()
            await client.query("INSERT INTO t (x, y) VALUES ($1, $2)", ["a", 1])
            await client.query("INSERT INTO t (x, y) VALUES ($1, $2)", ["b", 2])
            await client.commit()
        assert len(await scratch.execute("SELECT * FROM t")) == 2

    async def test_rollback_discards(self, scratch):
        async with scratch.acquire_client() as client:
            await client.begin()
            await client.query("INSERT INTO t (x, y) VALUES ($1, $2)", ["a", 1])
            await client.rollback()
        assert await scratch.execute("SELECT * FROM t") == []

    async def test_released_on_error(self, scratch):
        with pytest.raises(RuntimeError):
            async with scratch.acquire_client() as client:
                await client.begin()
                await client.query("INSERT INTO t (x, y) VALUES ($1, $2)", ["a", 1])
                raise RuntimeError("boom")
        # uncommitted work is gone and the gateway still serves queries
        assert await scratch.execute("SELECT * FROM t") == []

    async def test_set_tenant_is_noop_on_sqlite(self, scratch):
        async with scratch.acquire_client() as client:
            await client.begin()
            await client.set_tenant("biz-1")
            await client.rollback()


class TestHealthCheck:
    async def test_healthy(self, gateway):
        health = await gateway.health_check()
        assert health["status"] == "healthy"
        assert "timestamp" in health

    async def test_unhealthy_never_raises(self, tmp_path):
        broken = QueryGateway(build_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'x.db'}"))
        health = await broken.health_check()
        assert health["status"] == "unhealthy"
        assert health["error"]
        await broken.engine.dispose()

    async def test_health_endpoint(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
