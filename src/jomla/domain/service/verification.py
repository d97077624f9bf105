"""SMS verification codes, password-reset tokens and the request rate limit.

Codes are stored only as ``salt$sha256(salt + code)``; comparisons of
secrets are constant-time.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import secrets
from datetime import datetime, timedelta
from enum import Enum

from jomla.domain.exceptions import FailedPreconditionError, ValidationError
from jomla.domain.model.user import User

CODE_LIFETIME = timedelta(minutes=30)
RESET_TOKEN_LIFETIME = timedelta(minutes=5)
RATE_LIMIT_WINDOW = timedelta(hours=1)
MAX_REQUESTS_PER_WINDOW = 3

E164_PATTERN = re.compile(r"\+[1-9]\d{1,14}", re.ASCII)
CODE_PATTERN = re.compile(r"\d{6}", re.ASCII)


class VerificationType(Enum):
    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"

    @staticmethod
    def parse(value: str | None) -> VerificationType:
        try:
            return VerificationType(value)
        except ValueError:
            raise ValidationError(
                'Type must be either "registration" or "password_reset"'
            ) from None


def require_e164(phone_number: str | None) -> str:
    if not phone_number:
        raise ValidationError("Phone number is required")
    if not E164_PATTERN.fullmatch(phone_number):
        raise ValidationError(
            "Invalid phone number format. Use E.164 format (e.g., +12025551234)"
        )
    return phone_number


def generate_code() -> str:
    return f"{secrets.randbelow(900000) + 100000}"


def hash_code(code: str, salt: str | None = None) -> str:
    salt = salt if salt is not None else secrets.token_hex(8)
    digest = hashlib.sha256((salt + code).encode("utf-8")).hexdigest()
    return f"{salt}${digest}"


def code_matches(code: str, stored_hash: str) -> bool:
    salt, sep, _ = stored_hash.partition("$")
    if not sep:
        return False
    return hmac.compare_digest(hash_code(code, salt), stored_hash)


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def tokens_match(given: str, expected: str) -> bool:
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def register_request(user: User, now: datetime) -> int:
    """Count a new code request against the user's hourly allowance.

    A gap of more than an hour since the last request resets the counter.
    Raises FailedPreconditionError once the allowance is used up; returns
    the number of requests still allowed in the window otherwise.
    """
    last = user.last_verification_request
    if last is not None and now - last > RATE_LIMIT_WINDOW:
        user.verification_attempts = 0
    if user.verification_attempts >= MAX_REQUESTS_PER_WINDOW:
        raise FailedPreconditionError(
            "Too many verification attempts. Please try again in 1 hour."
        )
    user.verification_attempts += 1
    user.last_verification_request = now
    user.updated_at = now
    return max(0, MAX_REQUESTS_PER_WINDOW - user.verification_attempts)
