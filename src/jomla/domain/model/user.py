"""Customer and administrator records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


@dataclass
class User:
    """A storefront customer, keyed by id and looked up by phone number.

    Also carries the SMS verification and password-reset state.
    """

    id: str
    phone_number: str
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
    is_phone_verified: bool = False
    verification_code_hash: str | None = None
    verification_code_expiry: datetime | None = None
    verification_attempts: int = 0
    last_verification_request: datetime | None = None
    reset_token: str | None = None
    reset_token_expiry: datetime | None = None
    fcm_tokens: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def clear_verification_code(self, now: datetime) -> None:
        self.verification_code_hash = None
        self.verification_code_expiry = None
        self.updated_at = now

    def clear_reset_token(self, now: datetime) -> None:
        self.reset_token = None
        self.reset_token_expiry = None
        self.updated_at = now

    def remove_fcm_token(self, token: str) -> None:
        self.fcm_tokens = [t for t in self.fcm_tokens if t != token]


class AdminRole(Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    VIEWER = "viewer"


@dataclass(frozen=True)
class AdminPermissions:
    manage_products: bool = False
    manage_offers: bool = False
    manage_orders: bool = False
    manage_admins: bool = False

    @staticmethod
    def for_role(role: AdminRole) -> AdminPermissions:
        return _ROLE_PERMISSIONS[role]


_ROLE_PERMISSIONS = {
    AdminRole.SUPER_ADMIN: AdminPermissions(True, True, True, True),
    AdminRole.ADMIN: AdminPermissions(True, True, True, False),
    AdminRole.VIEWER: AdminPermissions(),
}


@dataclass
class AdminUser:
    uid: str
    email: str
    first_name: str
    last_name: str
    role: AdminRole
    permissions: AdminPermissions
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_login_at: datetime | None = None
