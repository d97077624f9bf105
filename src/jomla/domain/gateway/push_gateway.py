"""Outbound push notification delivery."""

from __future__ import annotations

from abc import ABC, abstractmethod

from jomla.domain.model.notification import PushMessage


class InvalidPushTokenError(Exception):
    """The device token is malformed, expired or no longer registered."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Push token rejected: {token[:10]}...")
        self.token = token


class PushGateway(ABC):

    @abstractmethod
    def send_to_token(self, token: str, message: PushMessage) -> str:
        """Deliver to one device; return the message id.

        Raises InvalidPushTokenError for dead tokens.
        """

    @abstractmethod
    def send_to_topic(self, topic: str, message: PushMessage) -> str:
        """Broadcast to every device subscribed to ``topic``; return the message id."""
