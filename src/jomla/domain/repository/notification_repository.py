"""Abstract append-only log of push notification attempts."""

from __future__ import annotations

from abc import ABC, abstractmethod

from jomla.domain.model.notification import NotificationRecord


class NotificationRepository(ABC):

    @abstractmethod
    def add(self, record: NotificationRecord) -> str:
        """Append a record and return its ID."""

    @abstractmethod
    def list_all(self) -> list[NotificationRecord]:
        """Return every logged notification, oldest first."""
