"""Shared fixtures: a fresh SQLite database and application per test."""

from __future__ import annotations

import httpx
import pytest

import bizcore.domain  # noqa: F401  (registers every table on Base.metadata)
from bizcore.core.config import Settings
from bizcore.db.base import Base
from bizcore.main import create_app
from tests.helpers import TEST_SECRET


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'bizcore_test.db'}",
        jwt_secret=TEST_SECRET,
        app_env="test",
    )


@pytest.fixture
async def app(settings):
    application = create_app(settings)
    engine = application.state.gateway.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield application
    await application.state.audit.drain()
    await engine.dispose()


@pytest.fixture
def gateway(app):
    return app.state.gateway


@pytest.fixture
def audit(app):
    return app.state.audit


@pytest.fixture
def credentials(app):
    return app.state.credentials


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
