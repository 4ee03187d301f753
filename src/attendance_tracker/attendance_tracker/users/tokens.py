"""Signed tokens: bearer tokens for the JSON function endpoints and
password-reset links. Both are HS256 JWTs signed with the app secret."""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta
from typing import Optional

import jwt

from ..common.datetime_utils import utc_now
from ..core.constants import DEFAULT_ACCESS_TOKEN_MINUTES, DEFAULT_RESET_TOKEN_MINUTES
from ..core.exceptions import AuthenticationError

ACCESS = "access"
PASSWORD_RESET = "password_reset"


def password_fingerprint(password_hash: str) -> str:
    """Short digest of the current hash; a reset link dies once the password changes."""
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


class TokenService:
    ALGORITHM = "HS256"

    def __init__(
        self,
        secret: str,
        *,
        access_ttl_minutes: int = DEFAULT_ACCESS_TOKEN_MINUTES,
        reset_ttl_minutes: int = DEFAULT_RESET_TOKEN_MINUTES,
    ):
        self._secret = secret
        self._access_ttl = timedelta(minutes=int(access_ttl_minutes))
        self._reset_ttl = timedelta(minutes=int(reset_ttl_minutes))

    @property
    def access_ttl_seconds(self) -> int:
        return int(self._access_ttl.total_seconds())

    def _encode(self, payload: dict, ttl: timedelta, now: Optional[datetime]) -> str:
        now = now or utc_now()
        claims = dict(payload)
        claims["iat"] = int(now.timestamp())
        claims["exp"] = int((now + ttl).timestamp())
        return jwt.encode(claims, self._secret, algorithm=self.ALGORITHM)

    def issue_access_token(self, user_id: str, *, now: Optional[datetime] = None) -> str:
        return self._encode({"sub": user_id, "purpose": ACCESS}, self._access_ttl, now)

    def issue_reset_token(self, user_id: str, password_hash: str, *, now: Optional[datetime] = None) -> str:
        return self._encode(
            {"sub": user_id, "purpose": PASSWORD_RESET, "fp": password_fingerprint(password_hash)},
            self._reset_ttl,
            now,
        )

    def verify(self, token: str, *, purpose: str) -> dict:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired.")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token.")

        if payload.get("purpose") != purpose or not payload.get("sub"):
            raise AuthenticationError("Invalid token.")
        return payload
