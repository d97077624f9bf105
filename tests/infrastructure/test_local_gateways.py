"""Tests for JWT tokens, the local identity store and local blob storage."""

from datetime import timedelta, timezone, datetime

import pytest

from jomla.domain.exceptions import (
    AlreadyExistsError,
    EntityNotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
    ValidationError,
)
from jomla.infrastructure.gateways.local_auth import LocalAuthGateway, hash_password, password_matches
from jomla.infrastructure.gateways.local_storage import LocalBlobStorage
from jomla.infrastructure.gateways.tokens import JwtTokenService
from jomla.infrastructure.persistence.json_store import JsonDocumentStore


@pytest.fixture
def tokens():
    return JwtTokenService("test-secret", issuer="jomla-test")


def _future(**kwargs):
    return datetime.now(timezone.utc) + timedelta(**kwargs)


class TestJwtTokenService:

    def test_id_token_carries_claims(self, tokens):
        caller = tokens.verify_caller(tokens.issue_id_token("uid-1", {"admin": True, "role": "admin"}))
        assert caller.uid == "uid-1"
        assert caller.claims == {"admin": True, "role": "admin"}
        assert caller.is_admin

    def test_custom_token_is_accepted(self, tokens):
        caller = tokens.verify_caller(tokens.create_custom_token("uid-2", {"phoneVerified": True}))
        assert caller.claims == {"phoneVerified": True}

    def test_expired_token(self):
        service = JwtTokenService("test-secret", ttl_seconds=-10)
        with pytest.raises(UnauthenticatedError, match="expired"):
            service.verify_caller(service.issue_id_token("uid-1"))

    def test_wrong_secret(self, tokens):
        other = JwtTokenService("other-secret", issuer="jomla-test")
        with pytest.raises(UnauthenticatedError, match="Invalid token"):
            tokens.verify_caller(other.issue_id_token("uid-1"))

    def test_blob_link_cannot_authenticate(self, tokens):
        with pytest.raises(UnauthenticatedError):
            tokens.verify_caller(tokens.sign_blob_link("invoices/a.pdf", _future(hours=1)))

    def test_blob_link_bound_to_path(self, tokens):
        link = tokens.sign_blob_link("invoices/a.pdf", _future(hours=1))
        tokens.verify_blob_link(link, "invoices/a.pdf")
        with pytest.raises(PermissionDeniedError):
            tokens.verify_blob_link(link, "invoices/b.pdf")


class TestLocalAuthGateway:

    def _setup(self, tmp_path, tokens):
        return LocalAuthGateway(JsonDocumentStore(tmp_path / "jomla.json"), tokens)

    def test_password_hashing(self):
        stored = hash_password("long-enough")
        assert password_matches("long-enough", stored)
        assert not password_matches("wrong-pass", stored)
        assert not password_matches("long-enough", None)

    def test_create_and_sign_in(self, tmp_path, tokens):
        auth = self._setup(tmp_path, tokens)
        account = auth.create_account("Ops@Example.com", "long-enough", email_verified=True)
        auth.set_custom_claims(account.uid, {"admin": True, "role": "super_admin"})

        caller = tokens.verify_caller(auth.sign_in("ops@example.com", "long-enough"))

        assert caller.uid == account.uid
        assert caller.claims["role"] == "super_admin"
        assert auth.get_by_email("OPS@example.com").email_verified

    def test_bad_credentials(self, tmp_path, tokens):
        auth = self._setup(tmp_path, tokens)
        auth.create_account("ops@example.com", "long-enough")
        with pytest.raises(UnauthenticatedError, match="Invalid credentials"):
            auth.sign_in("ops@example.com", "nope-nope")
        with pytest.raises(UnauthenticatedError):
            auth.sign_in("nobody@example.com", "long-enough")

    def test_duplicate_email(self, tmp_path, tokens):
        auth = self._setup(tmp_path, tokens)
        auth.create_account("ops@example.com", "long-enough")
        with pytest.raises(AlreadyExistsError):
            auth.create_account("OPS@example.com", "long-enough")

    def test_custom_token_links_phone(self, tmp_path, tokens):
        auth = self._setup(tmp_path, tokens)
        auth.create_custom_token("user-1", {"phoneNumber": "+12025550100", "phoneVerified": True})

        assert auth.get_by_phone("+12025550100").uid == "user-1"
        auth.update_password("user-1", "long-enough")
        assert tokens.verify_caller(auth.sign_in("+12025550100", "long-enough")).uid == "user-1"

    def test_update_unknown_account(self, tmp_path, tokens):
        with pytest.raises(EntityNotFoundError):
            self._setup(tmp_path, tokens).update_password("ghost", "long-enough")


class TestLocalBlobStorage:

    def _setup(self, tmp_path, tokens):
        return LocalBlobStorage(tmp_path / "blobs", "http://localhost:8000/files/", tokens)

    def test_save_and_open_signed_link(self, tmp_path, tokens):
        storage = self._setup(tmp_path, tokens)
        storage.save("invoices/o1/ORD-1.pdf", b"%PDF-1.4", "application/pdf", {"orderId": "o1"})

        url = storage.signed_url("invoices/o1/ORD-1.pdf", _future(days=1))
        assert url.startswith("http://localhost:8000/files/invoices/o1/ORD-1.pdf?token=")

        blob = storage.open("invoices/o1/ORD-1.pdf", url.split("token=", 1)[1])
        assert blob.path.read_bytes() == b"%PDF-1.4"
        assert blob.content_type == "application/pdf"
        assert blob.metadata == {"orderId": "o1"}

    def test_expired_link(self, tmp_path, tokens):
        storage = self._setup(tmp_path, tokens)
        storage.save("a.pdf", b"x", "application/pdf", {})
        token = tokens.sign_blob_link("a.pdf", _future(seconds=-5))
        with pytest.raises(PermissionDeniedError):
            storage.open("a.pdf", token)

    def test_missing_file(self, tmp_path, tokens):
        storage = self._setup(tmp_path, tokens)
        token = tokens.sign_blob_link("missing.pdf", _future(hours=1))
        with pytest.raises(EntityNotFoundError):
            storage.open("missing.pdf", token)

    @pytest.mark.parametrize("path", ["../escape.pdf", "/etc/passwd", ""])
    def test_rejects_unsafe_paths(self, tmp_path, tokens, path):
        with pytest.raises(ValidationError):
            self._setup(tmp_path, tokens).save(path, b"x", "text/plain", {})
