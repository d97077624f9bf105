"""Scheduled job: clear expired SMS verification codes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from jomla.application.dto import CleanupResult
from jomla.domain.repository.user_repository import UserRepository

logger = logging.getLogger(__name__)

MAX_USERS_PER_RUN = 500


class CleanupVerificationCodesHandler:

    def __init__(
        self,
        user_repo: UserRepository,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._user_repo = user_repo
        self._clock = clock

    def handle(self) -> CleanupResult:
        """Clear up to ``MAX_USERS_PER_RUN`` expired codes.

        Errors are reported in the result instead of raised; the next run
        picks up whatever was left.
        """
        now = self._clock()
        try:
            users = self._user_repo.list_with_expired_codes(now, MAX_USERS_PER_RUN)
            cleaned = 0
            for user in users:
                expiry = user.verification_code_expiry
                if expiry is None or expiry > now:
                    continue
                user.clear_verification_code(now)
                self._user_repo.save(user)
                cleaned += 1
        except Exception as exc:
            logger.exception("Error cleaning up expired verification codes")
            return CleanupResult(success=False, cleaned=0, message=str(exc))

        if cleaned == 0:
            logger.info("No expired verification codes found")
            return CleanupResult(success=True, cleaned=0, message="No expired codes to clean")
        logger.info("Cleaned %d expired verification codes", cleaned)
        return CleanupResult(
            success=True,
            cleaned=cleaned,
            message=f"Cleaned {cleaned} expired verification codes",
        )
