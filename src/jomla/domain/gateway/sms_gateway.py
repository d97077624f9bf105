"""Outbound SMS delivery."""

from __future__ import annotations

from abc import ABC, abstractmethod


class SmsGateway(ABC):

    @abstractmethod
    def send(self, to: str, body: str) -> str:
        """Send ``body`` to the E.164 number ``to``; return the provider message id.

        Raises UnavailableError when the provider cannot deliver.
        """
