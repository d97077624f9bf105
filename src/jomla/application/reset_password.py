"""Application service: Reset Password use case."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from jomla.application.boundary import callable_boundary
from jomla.domain.exceptions import (
    DeadlineExceededError,
    EntityNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from jomla.domain.gateway.auth_gateway import AuthGateway
from jomla.domain.repository.user_repository import UserRepository
from jomla.domain.service.verification import require_e164, tokens_match

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def require_password(password: str | None) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("Password must be at least 8 characters long")
    return password


class ResetPasswordHandler:

    def __init__(
        self,
        user_repo: UserRepository,
        auth: AuthGateway,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._user_repo = user_repo
        self._auth = auth
        self._clock = clock

    @callable_boundary("phone_number")
    def handle(
        self,
        phone_number: str | None,
        new_password: str | None,
        verification_token: str | None,
    ) -> bool:
        phone_number = require_e164(phone_number)
        new_password = require_password(new_password)
        if not verification_token:
            raise ValidationError("Verification token is required")
        now = self._clock()

        user = self._user_repo.get_by_phone(phone_number)
        if user is None:
            raise EntityNotFoundError("User not found")
        if not user.reset_token:
            raise PermissionDeniedError("Invalid or expired verification token")

        expiry = user.reset_token_expiry
        if expiry is None or expiry < now:
            user.clear_reset_token(now)
            self._user_repo.save(user)
            raise DeadlineExceededError(
                "Verification token has expired. Please request a new verification code."
            )

        if not tokens_match(verification_token, user.reset_token):
            raise PermissionDeniedError("Invalid verification token")

        account = self._auth.get_by_phone(phone_number)
        if account is None and user.email:
            account = self._auth.get_by_email(user.email)
        if account is None:
            raise EntityNotFoundError("User authentication record not found")

        self._auth.update_password(account.uid, new_password)
        user.clear_reset_token(now)
        self._user_repo.save(user)
        logger.info("Password reset for user %s", user.id)
        return True
