"""Password hashing and session-token signing.

One ``CredentialService`` is built per process in ``create_app`` and shared
through ``app.state``. The signing secret is read once; a missing secret is a
fatal startup condition rather than a per-request error.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from bizcore.core.exceptions import (
    ConfigurationError,
    ExpiredTokenError,
    HashingError,
    InvalidTokenError,
)

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10
DEFAULT_TOKEN_TTL = "7d"
REQUIRED_CLAIMS = ("user_id", "business_id", "role")

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def parse_duration(value: str | int | timedelta) -> timedelta:
    """Parse ``"7d"``, ``"12h"``, ``"30m"``, ``"45s"``, ``"2w"`` or bare seconds."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, int):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(value)
    if not match:
        raise ConfigurationError(f"Unrecognised token lifetime: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def _normalize_password(password: str) -> str:
    """bcrypt only looks at the first 72 bytes; truncate on a UTF-8 boundary."""
    return password.encode("utf-8")[:72].decode("utf-8", errors="ignore")


class CredentialService:
    def __init__(
        self,
        secret: str | None,
        ttl: str | int | timedelta = DEFAULT_TOKEN_TTL,
        algorithm: str = "HS256",
    ):
        if not secret or not secret.strip():
            raise ConfigurationError("JWT_SECRET is not configured")
        self._secret = secret
        self._algorithm = algorithm
        self.ttl = parse_duration(ttl)

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    async def hash_password(self, password: str) -> str:
        try:
            return await run_in_threadpool(pwd_context.hash, _normalize_password(password))
        except (ValueError, TypeError, RuntimeError) as exc:
            logger.error("Password hashing failed: %s", exc)
            raise HashingError() from exc

    async def verify_password(self, password: str, hashed: str) -> bool:
        try:
            return await run_in_threadpool(
                pwd_context.verify, _normalize_password(password), hashed
            )
        except (ValueError, TypeError) as exc:
            raise HashingError("Stored password hash is malformed") from exc

    # ------------------------------------------------------------------
    # Session tokens
    # ------------------------------------------------------------------

    def issue_token(
        self, claims: dict[str, Any], expires_in: timedelta | None = None
    ) -> str:
        missing = [key for key in REQUIRED_CLAIMS if claims.get(key) is None]
        if missing:
            raise ValueError(f"Token claims missing: {', '.join(missing)}")

        issued_at = int(datetime.now(timezone.utc).timestamp())
        lifetime = expires_in if expires_in is not None else self.ttl
        to_encode = dict(claims)
        to_encode.update({"iat": issued_at, "exp": issued_at + int(lifetime.total_seconds())})
        return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)

    def verify_token(self, token: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise ExpiredTokenError() from exc
        except JWTError as exc:
            raise InvalidTokenError() from exc

        if any(payload.get(key) is None for key in REQUIRED_CLAIMS):
            raise InvalidTokenError("Session token is missing identity claims")
        return payload
