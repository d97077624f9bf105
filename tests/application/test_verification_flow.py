"""Tests for the SMS verification and password reset use cases."""

import pytest

from jomla.application.reset_password import ResetPasswordHandler
from jomla.application.send_verification_code import SendVerificationCodeHandler
from jomla.application.verify_code import VerifyCodeHandler
from jomla.domain.exceptions import (
    DeadlineExceededError,
    EntityNotFoundError,
    FailedPreconditionError,
    PermissionDeniedError,
    UnavailableError,
    ValidationError,
)
from jomla.domain.service.verification import code_matches
from tests.builders import NOW, later, make_user
from tests.fakes import FakeAuthGateway, FakeSmsGateway, FakeUserRepository

PHONE = "+12025550100"


class _Clock:

    def __init__(self):
        self.now = NOW

    def __call__(self):
        return self.now


def _setup(users=None):
    clock = _Clock()
    user_repo = FakeUserRepository(users or [])
    sms = FakeSmsGateway()
    auth = FakeAuthGateway()
    send = SendVerificationCodeHandler(user_repo, sms, clock=clock)
    verify = VerifyCodeHandler(user_repo, auth, clock=clock)
    reset = ResetPasswordHandler(user_repo, auth, clock=clock)
    return send, verify, reset, user_repo, sms, auth, clock


class TestSendVerificationCode:

    def test_creates_placeholder_user_for_registration(self):
        send, _, _, users, sms, _, _ = _setup()

        result = send.handle(PHONE, "registration")

        assert result.success
        assert result.expires_at == later(minutes=30)
        assert result.attempts_remaining == 2
        user = users.get_by_phone(PHONE)
        assert user is not None
        assert user.verification_code_hash
        assert sms.sent[0][0] == PHONE
        assert sms.sent[0][1].startswith("Your verification code is: ")

    def test_code_is_stored_hashed(self):
        send, _, _, users, sms, _, _ = _setup()
        send.handle(PHONE, "registration")
        stored = users.get_by_phone(PHONE).verification_code_hash
        assert stored != sms.last_code
        assert code_matches(sms.last_code, stored)

    def test_fourth_request_in_an_hour_rejected(self):
        send, _, _, _, sms, _, clock = _setup()
        for minutes in (0, 10, 20):
            clock.now = later(minutes=minutes)
            send.handle(PHONE, "registration")

        clock.now = later(minutes=30)
        with pytest.raises(FailedPreconditionError, match="Too many verification attempts"):
            send.handle(PHONE, "registration")
        assert len(sms.sent) == 3

    def test_password_reset_for_unknown_number(self):
        send, *_ = _setup()
        with pytest.raises(EntityNotFoundError, match="No account found"):
            send.handle(PHONE, "password_reset")

    def test_password_reset_template(self):
        send, _, _, _, sms, _, _ = _setup([make_user()])
        send.handle(PHONE, "password_reset")
        assert sms.sent[0][1].startswith("Your password reset code is: ")

    def test_sms_failure_is_unavailable(self):
        send, _, _, _, sms, _, _ = _setup()
        sms.fail = True
        with pytest.raises(UnavailableError, match="Failed to send verification code"):
            send.handle(PHONE, "registration")

    @pytest.mark.parametrize("phone, kind", [("12345", "registration"), (PHONE, "login")])
    def test_bad_input(self, phone, kind):
        send, *_ = _setup()
        with pytest.raises(ValidationError):
            send.handle(phone, kind)


class TestVerifyCode:

    def test_registration_issues_sign_in_token(self):
        send, verify, _, users, sms, auth, _ = _setup()
        send.handle(PHONE, "registration")
        user_id = users.get_by_phone(PHONE).id

        result = verify.handle(PHONE, sms.last_code, "registration")

        assert result.custom_token == f"custom-token-{user_id}"
        assert auth.custom_tokens == [(user_id, {"phoneNumber": PHONE, "phoneVerified": True})]
        user = users.get_by_phone(PHONE)
        assert user.is_phone_verified
        assert user.verification_code_hash is None
        assert user.verification_attempts == 0

    def test_password_reset_issues_reset_token(self):
        send, verify, _, users, sms, _, _ = _setup([make_user()])
        send.handle(PHONE, "password_reset")

        result = verify.handle(PHONE, sms.last_code, "password_reset")

        assert result.reset_token
        assert users.get_by_phone(PHONE).reset_token_expiry == later(minutes=5)

    def test_wrong_code(self):
        send, verify, _, _, sms, _, _ = _setup()
        send.handle(PHONE, "registration")
        wrong = "111111" if sms.last_code != "111111" else "222222"
        with pytest.raises(PermissionDeniedError, match="Invalid verification code"):
            verify.handle(PHONE, wrong, "registration")

    def test_expired_code_is_cleared(self):
        send, verify, _, users, sms, _, clock = _setup()
        send.handle(PHONE, "registration")
        clock.now = later(minutes=31)

        with pytest.raises(DeadlineExceededError):
            verify.handle(PHONE, sms.last_code, "registration")
        assert users.get_by_phone(PHONE).verification_code_hash is None

    def test_no_pending_code(self):
        _, verify, *_ = _setup([make_user()])
        with pytest.raises(EntityNotFoundError, match="No pending verification"):
            verify.handle(PHONE, "123456", "registration")

    def test_code_format(self):
        _, verify, *_ = _setup()
        with pytest.raises(ValidationError, match="6-digit"):
            verify.handle(PHONE, "12ab56", "registration")


class TestResetPassword:

    def _verified(self):
        parts = _setup([make_user()])
        send, verify, _, _, sms, auth, _ = parts
        auth.add_account("auth-1", phone_number=PHONE)
        send.handle(PHONE, "password_reset")
        token = verify.handle(PHONE, sms.last_code, "password_reset").reset_token
        return parts, token

    def test_updates_password_and_clears_token(self):
        (_, _, reset, users, _, auth, _), token = self._verified()

        assert reset.handle(PHONE, "new-secret-1", token) is True
        assert auth.passwords["auth-1"] == "new-secret-1"
        assert users.get_by_phone(PHONE).reset_token is None

    def test_token_is_single_use(self):
        (_, _, reset, _, _, _, _), token = self._verified()
        reset.handle(PHONE, "new-secret-1", token)
        with pytest.raises(PermissionDeniedError):
            reset.handle(PHONE, "new-secret-2", token)

    def test_wrong_token(self):
        (_, _, reset, _, _, _, _), _ = self._verified()
        with pytest.raises(PermissionDeniedError, match="Invalid verification token"):
            reset.handle(PHONE, "new-secret-1", "not-the-token")

    def test_expired_token(self):
        (_, _, reset, _, _, _, clock), token = self._verified()
        clock.now = later(minutes=6)
        with pytest.raises(DeadlineExceededError):
            reset.handle(PHONE, "new-secret-1", token)

    def test_short_password(self):
        (_, _, reset, _, _, _, _), token = self._verified()
        with pytest.raises(ValidationError, match="at least 8 characters"):
            reset.handle(PHONE, "short", token)

    def test_falls_back_to_email_account(self):
        send, verify, reset, _, sms, auth, _ = _setup([make_user(email="ada@example.com")])
        auth.add_account("auth-2", email="ada@example.com")
        send.handle(PHONE, "password_reset")
        token = verify.handle(PHONE, sms.last_code, "password_reset").reset_token

        reset.handle(PHONE, "new-secret-1", token)
        assert auth.passwords["auth-2"] == "new-secret-1"

    def test_missing_auth_record(self):
        send, verify, reset, _, sms, _, _ = _setup([make_user()])
        send.handle(PHONE, "password_reset")
        token = verify.handle(PHONE, sms.last_code, "password_reset").reset_token
        with pytest.raises(EntityNotFoundError, match="authentication record"):
            reset.handle(PHONE, "new-secret-1", token)
