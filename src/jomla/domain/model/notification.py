"""Log record of a push notification attempt."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class NotificationType(Enum):
    ORDER_STATUS = "order_status"
    NEW_OFFER = "new_offer"


class DeliveryStatus(Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


@dataclass
class NotificationRecord:
    type: NotificationType
    title: str
    body: str
    target_type: str  # "user" or "topic"
    target: str
    delivery_status: DeliveryStatus
    related_id: str | None = None
    related_name: str | None = None
    message_ids: list[str] = field(default_factory=list)
    failure_count: int = 0
    error: str | None = None
    metadata: dict = field(default_factory=dict)
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str | None = None
