"""File blob storage with signed read links."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class BlobStorage(ABC):

    @abstractmethod
    def save(self, path: str, data: bytes, content_type: str, metadata: dict[str, str]) -> None:
        """Store ``data`` at ``path``, replacing any existing blob."""

    @abstractmethod
    def signed_url(self, path: str, expires_at: datetime) -> str:
        """Return a read link for ``path`` that stops working at ``expires_at``."""
