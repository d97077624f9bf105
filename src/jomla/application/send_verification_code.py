"""Application service: Send Verification Code use case.

Texts a 6-digit code for phone registration or password reset. Requests
are limited per phone number (see ``register_request``); the code itself
is never stored or logged, only its salted hash.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from jomla.application.boundary import callable_boundary
from jomla.application.dto import SendCodeResult
from jomla.domain.exceptions import EntityNotFoundError, UnavailableError
from jomla.domain.gateway.sms_gateway import SmsGateway
from jomla.domain.model.user import User
from jomla.domain.repository.user_repository import UserRepository
from jomla.domain.service.verification import (
    CODE_LIFETIME,
    VerificationType,
    generate_code,
    hash_code,
    register_request,
    require_e164,
)

logger = logging.getLogger(__name__)

_SMS_TEMPLATES = {
    VerificationType.REGISTRATION: "Your verification code is: {code}. Valid for 30 minutes.",
    VerificationType.PASSWORD_RESET: "Your password reset code is: {code}. Valid for 30 minutes.",
}


class SendVerificationCodeHandler:

    def __init__(
        self,
        user_repo: UserRepository,
        sms: SmsGateway,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._user_repo = user_repo
        self._sms = sms
        self._clock = clock

    @callable_boundary("phone_number", "verification_type")
    def handle(self, phone_number: str | None, verification_type: str | None) -> SendCodeResult:
        phone_number = require_e164(phone_number)
        kind = VerificationType.parse(verification_type)
        now = self._clock()

        user = self._user_repo.get_by_phone(phone_number)
        if user is None:
            if kind == VerificationType.PASSWORD_RESET:
                raise EntityNotFoundError("No account found with this phone number")
            user = User(
                id=self._user_repo.next_id(),
                phone_number=phone_number,
                created_at=now,
                updated_at=now,
            )
            logger.info("Created placeholder user %s for %s", user.id, phone_number)

        attempts_remaining = register_request(user, now)

        code = generate_code()
        expires_at = now + CODE_LIFETIME
        user.verification_code_hash = hash_code(code)
        user.verification_code_expiry = expires_at
        self._user_repo.save(user)

        try:
            self._sms.send(phone_number, _SMS_TEMPLATES[kind].format(code=code))
        except Exception as exc:
            logger.error("Failed to send SMS to %s: %s", phone_number, exc)
            raise UnavailableError(
                "Failed to send verification code. Please try again later."
            ) from exc

        logger.info("Verification code sent to %s (%s, user %s)", phone_number, kind.value, user.id)
        return SendCodeResult(
            success=True,
            expires_at=expires_at,
            attempts_remaining=attempts_remaining,
        )
