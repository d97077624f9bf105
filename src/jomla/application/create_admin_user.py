"""Application service: Create Admin User use case.

Only an existing super admin may create administrators. The new account
gets ``{admin: true, role}`` claims and a stored permission map for its
role.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime, timezone

from jomla.application.boundary import callable_boundary
from jomla.application.dto import Caller, CreateAdminResult, require_caller
from jomla.application.reset_password import require_password
from jomla.domain.exceptions import AlreadyExistsError, PermissionDeniedError, ValidationError
from jomla.domain.gateway.auth_gateway import AuthGateway
from jomla.domain.model.user import AdminPermissions, AdminRole, AdminUser
from jomla.domain.repository.user_repository import AdminUserRepository

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


class CreateAdminUserHandler:

    def __init__(
        self,
        admin_repo: AdminUserRepository,
        auth: AuthGateway,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._admin_repo = admin_repo
        self._auth = auth
        self._clock = clock

    @callable_boundary("caller", "email", message="Failed to create admin user. Please try again.")
    def handle(
        self,
        caller: Caller | None,
        email: str | None,
        password: str | None,
        first_name: str | None,
        last_name: str | None,
        role: str | None,
    ) -> CreateAdminResult:
        caller = require_caller(caller, "User must be authenticated to create admin users")
        self._require_super_admin(caller)

        if not (email and password and first_name and last_name and role):
            raise ValidationError(
                "Missing required fields: email, password, firstName, lastName, role"
            )
        if not EMAIL_PATTERN.fullmatch(email):
            raise ValidationError("Invalid email format")
        require_password(password)
        try:
            admin_role = AdminRole(role)
        except ValueError:
            raise ValidationError(
                "Invalid role. Must be one of: super_admin, admin, viewer"
            ) from None

        if self._auth.get_by_email(email) is not None:
            raise AlreadyExistsError("An account with this email already exists")

        account = self._auth.create_account(email, password, email_verified=True)
        self._auth.set_custom_claims(account.uid, {"admin": True, "role": admin_role.value})
        self._admin_repo.save(
            AdminUser(
                uid=account.uid,
                email=email,
                first_name=first_name,
                last_name=last_name,
                role=admin_role,
                permissions=AdminPermissions.for_role(admin_role),
                created_at=self._clock(),
            )
        )

        logger.info("Admin user created: %s (%s) by %s", account.uid, email, caller.uid)
        return CreateAdminResult(
            success=True,
            admin_id=account.uid,
            message=f"Admin user {email} created successfully with role: {admin_role.value}",
        )

    def _require_super_admin(self, caller: Caller) -> AdminUser:
        admin = self._admin_repo.get_by_uid(caller.uid)
        if admin is None:
            raise PermissionDeniedError("Only admin users can create new admin accounts")
        if admin.role != AdminRole.SUPER_ADMIN:
            raise PermissionDeniedError("Only super admins can create new admin users")
        return admin


class BootstrapSuperAdminHandler:
    """Operator path: create (or promote) the first super admin.

    No caller is required. If the email already has an account, it is
    promoted instead of failing.
    """

    def __init__(
        self,
        admin_repo: AdminUserRepository,
        auth: AuthGateway,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._admin_repo = admin_repo
        self._auth = auth
        self._clock = clock

    def handle(self, email: str, password: str, first_name: str, last_name: str) -> CreateAdminResult:
        if not EMAIL_PATTERN.fullmatch(email or ""):
            raise ValidationError("Invalid email format")
        require_password(password)

        account = self._auth.get_by_email(email)
        if account is None:
            account = self._auth.create_account(email, password, email_verified=True)
            created = True
        else:
            self._auth.update_password(account.uid, password)
            created = False

        role = AdminRole.SUPER_ADMIN
        self._auth.set_custom_claims(account.uid, {"admin": True, "role": role.value})
        existing = self._admin_repo.get_by_uid(account.uid)
        self._admin_repo.save(
            AdminUser(
                uid=account.uid,
                email=email,
                first_name=first_name,
                last_name=last_name,
                role=role,
                permissions=AdminPermissions.for_role(role),
                created_at=existing.created_at if existing else self._clock(),
            )
        )

        verb = "created" if created else "promoted"
        logger.info("Super admin %s %s (%s)", account.uid, verb, email)
        return CreateAdminResult(
            success=True,
            admin_id=account.uid,
            message=f"Super admin {email} {verb}",
        )
