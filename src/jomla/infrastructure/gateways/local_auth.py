"""Identity accounts kept in the JSON document store.

Passwords are stored as PBKDF2-SHA256 hashes. Tokens are minted by the
JwtTokenService, and an account's custom claims are folded into every ID
token it is issued.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import uuid

from jomla.domain.exceptions import AlreadyExistsError, EntityNotFoundError, UnauthenticatedError
from jomla.domain.gateway.auth_gateway import AuthAccount, AuthGateway
from jomla.infrastructure.gateways.tokens import JwtTokenService
from jomla.infrastructure.persistence.json_store import JsonDocumentStore

logger = logging.getLogger(__name__)

COLLECTION = "auth_accounts"
PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, salt: str | None = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def password_matches(password: str, stored: str | None) -> bool:
    if not stored or "$" not in stored:
        return False
    salt, _ = stored.split("$", 1)
    return hmac.compare_digest(hash_password(password, salt), stored)


class LocalAuthGateway(AuthGateway):

    def __init__(self, store: JsonDocumentStore, tokens: JwtTokenService) -> None:
        self._store = store
        self._tokens = tokens

    # --- Lookups --------------------------------------------------------------

    def get_by_uid(self, uid: str) -> AuthAccount | None:
        raw = self._store.document(COLLECTION, uid)
        return self._to_account(uid, raw) if raw is not None else None

    def get_by_phone(self, phone_number: str) -> AuthAccount | None:
        return self._find("phone_number", phone_number)

    def get_by_email(self, email: str) -> AuthAccount | None:
        return self._find("email", email.lower())

    # --- Mutations ------------------------------------------------------------

    def create_account(
        self,
        email: str,
        password: str,
        email_verified: bool = False,
        uid: str | None = None,
    ) -> AuthAccount:
        uid = uid or uuid.uuid4().hex[:28]
        with self._store.transaction() as data:
            accounts = data.setdefault(COLLECTION, {})
            if any(raw.get("email") == email.lower() for raw in accounts.values()):
                raise AlreadyExistsError("An account with this email already exists")
            if uid in accounts:
                raise AlreadyExistsError(f"Account {uid} already exists")
            accounts[uid] = {
                "email": email.lower(),
                "phone_number": None,
                "email_verified": email_verified,
                "disabled": False,
                "password_hash": hash_password(password),
                "custom_claims": {},
            }
            raw = accounts[uid]
        logger.info("Created auth account %s", uid)
        return self._to_account(uid, raw)

    def update_password(self, uid: str, password: str) -> None:
        with self._store.transaction() as data:
            raw = self._require(data, uid)
            raw["password_hash"] = hash_password(password)

    def set_custom_claims(self, uid: str, claims: dict) -> None:
        with self._store.transaction() as data:
            raw = self._require(data, uid)
            raw["custom_claims"] = dict(claims)

    def create_custom_token(self, uid: str, claims: dict) -> str:
        # Signing in with a phone custom token creates or links the account.
        phone = claims.get("phoneNumber")
        with self._store.transaction() as data:
            accounts = data.setdefault(COLLECTION, {})
            raw = accounts.setdefault(
                uid,
                {
                    "email": None,
                    "phone_number": None,
                    "email_verified": False,
                    "disabled": False,
                    "password_hash": None,
                    "custom_claims": {},
                },
            )
            if phone:
                raw["phone_number"] = phone
        return self._tokens.create_custom_token(uid, claims)

    # --- Sign-in --------------------------------------------------------------

    def sign_in(self, identifier: str, password: str) -> str:
        """Exchange an email or phone number and password for an ID token."""
        account = self.get_by_email(identifier) if "@" in identifier else self.get_by_phone(identifier)
        raw = self._store.document(COLLECTION, account.uid) if account else None
        if raw is None or raw.get("disabled") or not password_matches(password, raw.get("password_hash")):
            raise UnauthenticatedError("Invalid credentials")
        return self._tokens.issue_id_token(account.uid, raw.get("custom_claims", {}))

    # --- Internal helpers -----------------------------------------------------

    def _find(self, field: str, value: str) -> AuthAccount | None:
        for uid, raw in self._store.collection(COLLECTION).items():
            if raw.get(field) == value:
                return self._to_account(uid, raw)
        return None

    @staticmethod
    def _require(data: dict, uid: str) -> dict:
        raw = data.get(COLLECTION, {}).get(uid)
        if raw is None:
            raise EntityNotFoundError(f"Auth account {uid} not found")
        return raw

    @staticmethod
    def _to_account(uid: str, raw: dict) -> AuthAccount:
        return AuthAccount(
            uid=uid,
            email=raw.get("email"),
            phone_number=raw.get("phone_number"),
            email_verified=bool(raw.get("email_verified", False)),
            disabled=bool(raw.get("disabled", False)),
            custom_claims=dict(raw.get("custom_claims", {})),
        )
