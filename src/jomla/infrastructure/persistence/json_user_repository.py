"""JSON-document implementations of the user, admin and notification stores."""

from __future__ import annotations

from datetime import datetime

from jomla.domain.model.notification import DeliveryStatus, NotificationRecord, NotificationType
from jomla.domain.model.user import AdminPermissions, AdminRole, AdminUser, User
from jomla.domain.repository.notification_repository import NotificationRepository
from jomla.domain.repository.user_repository import AdminUserRepository, UserRepository
from jomla.infrastructure.persistence.json_repository import JsonRepository, dt_from_raw, dt_to_raw


class JsonUserRepository(JsonRepository, UserRepository):
    collection = "users"

    # --- UserRepository interface ---------------------------------------------

    def next_id(self) -> str:
        return self.new_id()

    def get_by_id(self, user_id: str) -> User | None:
        return self._get(user_id, self._to_domain)

    def get_by_phone(self, phone_number: str) -> User | None:
        docs = self._store.collection(self.collection)
        for doc_id, raw in docs.items():
            if raw.get("phone_number") == phone_number:
                return self._decode(doc_id, raw, self._to_domain)
        return None

    def list_with_expired_codes(self, now: datetime, limit: int) -> list[User]:
        expired = [
            u
            for u in self._all(self._to_domain)
            if u.verification_code_expiry is not None and u.verification_code_expiry <= now
        ]
        return expired[:limit]

    def save(self, user: User) -> None:
        self._put(user.id, self._to_raw(user))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(user: User) -> dict:
        return {
            "phone_number": user.phone_number,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "email": user.email,
            "is_phone_verified": user.is_phone_verified,
            "verification_code_hash": user.verification_code_hash,
            "verification_code_expiry": dt_to_raw(user.verification_code_expiry),
            "verification_attempts": user.verification_attempts,
            "last_verification_request": dt_to_raw(user.last_verification_request),
            "reset_token": user.reset_token,
            "reset_token_expiry": dt_to_raw(user.reset_token_expiry),
            "fcm_tokens": list(user.fcm_tokens),
            "created_at": dt_to_raw(user.created_at),
            "updated_at": dt_to_raw(user.updated_at),
        }

    @staticmethod
    def _to_domain(user_id: str, raw: dict) -> User:
        return User(
            id=user_id,
            phone_number=raw["phone_number"],
            first_name=raw.get("first_name", ""),
            last_name=raw.get("last_name", ""),
            email=raw.get("email"),
            is_phone_verified=bool(raw.get("is_phone_verified", False)),
            verification_code_hash=raw.get("verification_code_hash"),
            verification_code_expiry=dt_from_raw(raw.get("verification_code_expiry")),
            verification_attempts=int(raw.get("verification_attempts", 0)),
            last_verification_request=dt_from_raw(raw.get("last_verification_request")),
            reset_token=raw.get("reset_token"),
            reset_token_expiry=dt_from_raw(raw.get("reset_token_expiry")),
            fcm_tokens=list(raw.get("fcm_tokens", [])),
            created_at=dt_from_raw(raw["created_at"]),
            updated_at=dt_from_raw(raw["updated_at"]),
        )


class JsonAdminUserRepository(JsonRepository, AdminUserRepository):
    collection = "admin_users"

    def get_by_uid(self, uid: str) -> AdminUser | None:
        return self._get(uid, self._to_domain)

    def save(self, admin: AdminUser) -> None:
        self._put(admin.uid, self._to_raw(admin))

    @staticmethod
    def _to_raw(admin: AdminUser) -> dict:
        p = admin.permissions
        return {
            "email": admin.email,
            "first_name": admin.first_name,
            "last_name": admin.last_name,
            "role": admin.role.value,
            "permissions": {
                "manage_products": p.manage_products,
                "manage_offers": p.manage_offers,
                "manage_orders": p.manage_orders,
                "manage_admins": p.manage_admins,
            },
            "is_active": admin.is_active,
            "created_at": dt_to_raw(admin.created_at),
            "last_login_at": dt_to_raw(admin.last_login_at),
        }

    @staticmethod
    def _to_domain(uid: str, raw: dict) -> AdminUser:
        return AdminUser(
            uid=uid,
            email=raw["email"],
            first_name=raw.get("first_name", ""),
            last_name=raw.get("last_name", ""),
            role=AdminRole(raw["role"]),
            permissions=AdminPermissions(**raw.get("permissions", {})),
            is_active=bool(raw.get("is_active", True)),
            created_at=dt_from_raw(raw["created_at"]),
            last_login_at=dt_from_raw(raw.get("last_login_at")),
        )


class JsonNotificationRepository(JsonRepository, NotificationRepository):
    collection = "notifications"

    def add(self, record: NotificationRecord) -> str:
        record.id = record.id or self.new_id()
        self._put(record.id, self._to_raw(record))
        return record.id

    def list_all(self) -> list[NotificationRecord]:
        return sorted(self._all(self._to_domain), key=lambda r: r.sent_at)

    @staticmethod
    def _to_raw(record: NotificationRecord) -> dict:
        return {
            "type": record.type.value,
            "title": record.title,
            "body": record.body,
            "target_type": record.target_type,
            "target": record.target,
            "delivery_status": record.delivery_status.value,
            "related_id": record.related_id,
            "related_name": record.related_name,
            "message_ids": list(record.message_ids),
            "failure_count": record.failure_count,
            "error": record.error,
            "metadata": dict(record.metadata),
            "sent_at": dt_to_raw(record.sent_at),
        }

    @staticmethod
    def _to_domain(record_id: str, raw: dict) -> NotificationRecord:
        return NotificationRecord(
            id=record_id,
            type=NotificationType(raw["type"]),
            title=raw["title"],
            body=raw["body"],
            target_type=raw["target_type"],
            target=raw["target"],
            delivery_status=DeliveryStatus(raw["delivery_status"]),
            related_id=raw.get("related_id"),
            related_name=raw.get("related_name"),
            message_ids=list(raw.get("message_ids", [])),
            failure_count=int(raw.get("failure_count", 0)),
            error=raw.get("error"),
            metadata=dict(raw.get("metadata", {})),
            sent_at=dt_from_raw(raw["sent_at"]),
        )
