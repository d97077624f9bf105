"""Application service: Verify Code use case."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from jomla.application.boundary import callable_boundary
from jomla.application.dto import VerifyCodeResult
from jomla.domain.exceptions import (
    DeadlineExceededError,
    EntityNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from jomla.domain.gateway.auth_gateway import AuthGateway
from jomla.domain.repository.user_repository import UserRepository
from jomla.domain.service.verification import (
    CODE_PATTERN,
    RESET_TOKEN_LIFETIME,
    VerificationType,
    code_matches,
    generate_reset_token,
    require_e164,
)

logger = logging.getLogger(__name__)


class VerifyCodeHandler:

    def __init__(
        self,
        user_repo: UserRepository,
        auth: AuthGateway,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._user_repo = user_repo
        self._auth = auth
        self._clock = clock

    @callable_boundary("phone_number", "verification_type")
    def handle(
        self,
        phone_number: str | None,
        code: str | None,
        verification_type: str | None,
    ) -> VerifyCodeResult:
        """Check a texted code.

        Registration marks the phone verified and returns a sign-in token;
        password reset returns a short-lived reset token instead.
        """
        phone_number = require_e164(phone_number)
        if not code or not CODE_PATTERN.fullmatch(code):
            raise ValidationError("Verification code must be a 6-digit number")
        kind = VerificationType.parse(verification_type)
        now = self._clock()

        user = self._user_repo.get_by_phone(phone_number)
        if user is None or not user.verification_code_hash:
            raise EntityNotFoundError(
                "No pending verification found. Please request a new code."
            )

        expiry = user.verification_code_expiry
        if expiry is None or expiry < now:
            user.clear_verification_code(now)
            self._user_repo.save(user)
            raise DeadlineExceededError(
                "Verification code has expired. Please request a new code."
            )

        if not code_matches(code, user.verification_code_hash):
            raise PermissionDeniedError(
                "Invalid verification code. Please check and try again."
            )

        user.clear_verification_code(now)
        user.verification_attempts = 0

        if kind == VerificationType.REGISTRATION:
            user.is_phone_verified = True
            self._user_repo.save(user)
            token = self._auth.create_custom_token(
                user.id,
                {"phoneNumber": phone_number, "phoneVerified": True},
            )
            logger.info("Phone verified for user %s", user.id)
            return VerifyCodeResult(success=True, custom_token=token)

        user.reset_token = generate_reset_token()
        user.reset_token_expiry = now + RESET_TOKEN_LIFETIME
        self._user_repo.save(user)
        logger.info("Password reset code verified for user %s", user.id)
        return VerifyCodeResult(success=True, reset_token=user.reset_token)
