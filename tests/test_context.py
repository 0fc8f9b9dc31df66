"""Tests — building the request context from transport metadata and token."""

from __future__ import annotations

import pytest
from starlette.requests import Request

from bizcore.core.context import client_ip, get_current_token, get_request_context
from bizcore.core.exceptions import UnauthorizedError
from bizcore.core.security import CredentialService
from tests.helpers import TEST_SECRET


def _request(headers: dict[str, str] | None = None, client=("198.51.100.4", 5123)) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
            "client": client,
        }
    )


def test_bearer_header_wins_over_cookie():
    request = _request({"Authorization": "Bearer header-token", "Cookie": "access_token=cookie-token"})
    assert get_current_token(request) == "header-token"


def test_cookie_fallback():
    assert get_current_token(_request({"Cookie": "access_token=cookie-token"})) == "cookie-token"


def test_no_token():
    with pytest.raises(UnauthorizedError):
        get_current_token(_request({"Authorization": "Basic abc"}))


def test_client_ip_prefers_forwarded_for():
    assert client_ip(_request({"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})) == "203.0.113.9"
    assert client_ip(_request()) == "198.51.100.4"
    assert client_ip(_request(client=None)) is None


def test_context_from_verified_claims():
    credentials = CredentialService(TEST_SECRET)
    token = credentials.issue_token({"user_id": "user-9", "business_id": "biz-1", "role": "staff"})
    request = _request({"User-Agent": "pos-terminal/2.1"})

    ctx = get_request_context(request, token, credentials)

    assert ctx.business_id == "biz-1"
    assert ctx.user_id == "user-9"
    assert ctx.role == "staff"
    assert ctx.ip_address == "198.51.100.4"
    assert ctx.user_agent == "pos-terminal/2.1"
    assert not ctx.is_owner
