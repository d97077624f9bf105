"""Storage port for catalog products.

Products are keyed by ID and never hard-deleted; deactivation is a
status change saved through ``save``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from jomla.domain.model.product import Product


class ProductRepository(ABC):

    @abstractmethod
    def next_id(self) -> str:
        """Generate a fresh product ID."""

    @abstractmethod
    def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    def save(self, product: Product) -> None:
        """Persist a new or updated product."""
