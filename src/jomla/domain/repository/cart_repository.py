"""Abstract repository for the Cart aggregate (one cart per user)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from jomla.domain.model.cart import Cart


class CartRepository(ABC):

    @abstractmethod
    def get(self, user_id: str) -> Cart | None:
        """Return the user's cart, or None if it was never created."""

    @abstractmethod
    def list_all(self) -> list[Cart]:
        """Return every cart (full collection scan)."""

    @abstractmethod
    def save(self, cart: Cart) -> None:
        """Persist a new or updated cart."""

    @abstractmethod
    def save_batch(self, carts: list[Cart]) -> None:
        """Persist several carts atomically: all writes land or none do."""
