"""Abstract repository for the Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from jomla.domain.model.cart import Cart
from jomla.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: str) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def list_by_user(self, user_id: str) -> list[Order]:
        """Return a customer's orders, newest first."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist an updated order (status, invoice link)."""

    @abstractmethod
    def place(self, order: Order, cleared_cart: Cart) -> str:
        """Create ``order`` and write ``cleared_cart`` in one transaction.

        Assigns and returns the new order id. If either write fails,
        neither is applied.
        """
