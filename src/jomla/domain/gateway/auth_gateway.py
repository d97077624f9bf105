"""Identity provider: accounts, passwords, custom tokens and claims."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class AuthAccount:
    uid: str
    email: str | None = None
    phone_number: str | None = None
    email_verified: bool = False
    disabled: bool = False
    custom_claims: dict = field(default_factory=dict)


class AuthGateway(ABC):

    @abstractmethod
    def get_by_phone(self, phone_number: str) -> AuthAccount | None:
        """Return the account registered with this phone number, or None."""

    @abstractmethod
    def get_by_email(self, email: str) -> AuthAccount | None:
        """Return the account registered with this email, or None."""

    @abstractmethod
    def create_account(
        self,
        email: str,
        password: str,
        email_verified: bool = False,
        uid: str | None = None,
    ) -> AuthAccount:
        """Create an account. Raises AlreadyExistsError for a taken email."""

    @abstractmethod
    def update_password(self, uid: str, password: str) -> None:
        """Replace an account's password."""

    @abstractmethod
    def set_custom_claims(self, uid: str, claims: dict) -> None:
        """Attach custom claims that appear in the account's ID tokens."""

    @abstractmethod
    def create_custom_token(self, uid: str, claims: dict) -> str:
        """Mint a sign-in token for ``uid`` carrying ``claims``."""
