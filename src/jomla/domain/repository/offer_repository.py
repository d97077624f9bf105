"""Abstract repository for the Offer aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from jomla.domain.model.offer import Offer


class OfferRepository(ABC):

    @abstractmethod
    def next_id(self) -> str:
        """Generate a fresh offer ID."""

    @abstractmethod
    def get_by_id(self, offer_id: str) -> Offer | None:
        """Return an offer by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Offer]:
        """Return every offer, whatever its status."""

    @abstractmethod
    def save(self, offer: Offer) -> None:
        """Persist a new or updated offer."""

    @abstractmethod
    def delete(self, offer_id: str) -> None:
        """Remove an offer. Deleting a missing offer is a no-op."""
