"""Invoice document rendering."""

from __future__ import annotations

from abc import ABC, abstractmethod

from jomla.domain.model.order import Order


class InvoiceRenderer(ABC):

    @abstractmethod
    def render(self, order: Order) -> bytes:
        """Render the order snapshot as a PDF document."""
