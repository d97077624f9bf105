"""Signed tokens: caller identity, sign-in tokens and blob read links.

All tokens are HS256 JWTs signed with the configured secret. A custom
token minted at sign-up doubles as a bearer token for the callable API.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt

from jomla.application.dto import Caller
from jomla.domain.exceptions import PermissionDeniedError, UnauthenticatedError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ID_TOKEN = "id"
CUSTOM_TOKEN = "custom"
BLOB_TOKEN = "blob"
_RESERVED = {"iss", "sub", "iat", "exp", "typ", "uid"}


class JwtTokenService:

    def __init__(self, secret: str, issuer: str = "jomla", ttl_seconds: int = 3600) -> None:
        self._secret = secret
        self._issuer = issuer
        self._ttl = timedelta(seconds=ttl_seconds)

    # --- Identity -------------------------------------------------------------

    def issue_id_token(self, uid: str, claims: dict | None = None) -> str:
        return self._encode(ID_TOKEN, uid, claims or {}, datetime.now(timezone.utc) + self._ttl)

    def create_custom_token(self, uid: str, claims: dict | None = None) -> str:
        return self._encode(CUSTOM_TOKEN, uid, claims or {}, datetime.now(timezone.utc) + self._ttl)

    def verify_caller(self, token: str) -> Caller:
        """Decode a bearer token into the calling identity."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                issuer=self._issuer,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise UnauthenticatedError("Token has expired") from None
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected bearer token: %s", exc)
            raise UnauthenticatedError("Invalid token") from None
        if payload.get("typ") not in (ID_TOKEN, CUSTOM_TOKEN):
            raise UnauthenticatedError("Invalid token")
        claims = {k: v for k, v in payload.items() if k not in _RESERVED}
        return Caller(uid=payload["sub"], claims=claims)

    # --- Blob links -----------------------------------------------------------

    def sign_blob_link(self, path: str, expires_at: datetime) -> str:
        return self._encode(BLOB_TOKEN, path, {}, expires_at)

    def verify_blob_link(self, token: str, path: str) -> None:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM], issuer=self._issuer)
        except jwt.InvalidTokenError:
            raise PermissionDeniedError("Invalid or expired link") from None
        if payload.get("typ") != BLOB_TOKEN or payload.get("sub") != path:
            raise PermissionDeniedError("Invalid or expired link")

    # --- Internal helpers -----------------------------------------------------

    def _encode(self, typ: str, subject: str, claims: dict, expires_at: datetime) -> str:
        payload = {
            **claims,
            "iss": self._issuer,
            "sub": subject,
            "typ": typ,
            "iat": datetime.now(timezone.utc),
            "exp": expires_at,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)
