"""Abstract repositories for customer and administrator records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from jomla.domain.model.user import AdminUser, User


class UserRepository(ABC):

    @abstractmethod
    def next_id(self) -> str:
        """Generate a fresh user ID."""

    @abstractmethod
    def get_by_id(self, user_id: str) -> User | None:
        """Return a user by ID, or None."""

    @abstractmethod
    def get_by_phone(self, phone_number: str) -> User | None:
        """Return the first user with this phone number, or None."""

    @abstractmethod
    def list_with_expired_codes(self, now: datetime, limit: int) -> list[User]:
        """Return up to ``limit`` users whose verification code expired at or before ``now``."""

    @abstractmethod
    def save(self, user: User) -> None:
        """Persist a new or updated user."""


class AdminUserRepository(ABC):

    @abstractmethod
    def get_by_uid(self, uid: str) -> AdminUser | None:
        """Return an administrator by auth uid, or None."""

    @abstractmethod
    def save(self, admin: AdminUser) -> None:
        """Persist a new or updated administrator."""
