"""Parameterized SQL execution over the shared connection pool.

Statements are written with PostgreSQL-style positional placeholders
(``$1``, ``$2``, ...). They are rewritten to SQLAlchemy bind parameters and the
values are bound by the driver; parameter values never become SQL text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import TextClause, text
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

logger = logging.getLogger("bizcore.db")

# Quoted literals are matched first so "$1" inside a string stays text. All
# colons are escaped, in literals too, so text() never reads a cast such as
# "::uuid" or a literal like 'a :b' as a named bind.
_TOKEN_RE = re.compile(r"'(?:[^']|'')*'|\$(\d+)|:")
# Statements touching these columns never log their parameter values.
_SENSITIVE_RE = re.compile(r"password|secret|token", re.IGNORECASE)


class QueryParameterError(ValueError):
    """Placeholders and the supplied parameter list do not line up."""


def compile_positional(sql: str, params: Sequence[Any] = ()) -> TextClause:
    """Turn ``$n`` placeholders into named binds ``:p<n>`` carrying their values.

    Bind types are inferred from the values, so datetimes, decimals and
    booleans go through the dialect's own conversions.
    """
    seen: set[int] = set()

    def _swap(match: re.Match) -> str:
        if match.group(1) is None:
            return match.group(0).replace(":", "\\:")
        index = int(match.group(1))
        seen.add(index)
        return f":p{index}"

    rewritten = _TOKEN_RE.sub(_swap, sql)
    expected = set(range(1, len(params) + 1))
    if seen != expected:
        raise QueryParameterError(
            f"Statement uses placeholders {sorted(seen)} but {len(params)} parameter(s) were supplied"
        )
    statement = text(rewritten)
    if params:
        statement = statement.bindparams(
            **{f"p{i}": value for i, value in enumerate(params, start=1)}
        )
    return statement


def escape_like(value: str) -> str:
    """Escape LIKE wildcards; pair with ``ESCAPE '\\'`` in the statement."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _loggable(sql: str, params: Sequence[Any]) -> Any:
    if params and _SENSITIVE_RE.search(sql):
        return f"<{len(params)} redacted>"
    return list(params)


def _rows(result: Result) -> list[dict[str, Any]]:
    if not result.returns_rows:
        return []
    return [dict(row) for row in result.mappings().all()]


class ScopedClient:
    """One checked-out connection for multi-statement work.

    Transaction boundaries are the caller's: ``begin()`` then ``commit()`` or
    ``rollback()``. Anything left open is rolled back when the connection is
    released.
    """

    def __init__(self, connection: AsyncConnection):
        self._conn = connection

    @property
    def dialect(self) -> str:
        return self._conn.dialect.name

    async def query(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        statement = compile_positional(sql, params)
        logger.debug("client query | %s | params=%s", sql.strip(), _loggable(sql, params))
        result = await self._conn.execute(statement)
        return _rows(result)

    async def begin(self) -> None:
        await self._conn.begin()

    async def commit(self) -> None:
        await self._conn.commit()

    async def rollback(self) -> None:
        await self._conn.rollback()

    async def set_tenant(self, business_id: str) -> None:
        """Expose the tenant to row-level-security policies for this transaction."""
        if self.dialect != "postgresql":
            logger.debug("set_tenant skipped on %s", self.dialect)
            return
        await self.query(
            "SELECT set_config('app.current_business_id', $1, true)", [str(business_id)]
        )


class QueryGateway:
    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run one statement in its own short transaction and return its rows."""
        statement = compile_positional(sql, params)
        logger.debug("query | %s | params=%s", sql.strip(), _loggable(sql, params))
        async with self._engine.begin() as conn:
            result = await conn.execute(statement)
            return _rows(result)

    @asynccontextmanager
    async def acquire_client(self) -> AsyncIterator[ScopedClient]:
        conn = await self._engine.connect()
        try:
            yield ScopedClient(conn)
        finally:
            await conn.close()

    async def health_check(self) -> dict[str, str]:
        try:
            await self.execute("SELECT 1")
        except Exception as exc:
            logger.error("Database health check failed: %s", exc)
            return {"status": "unhealthy", "error": str(exc)}
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
