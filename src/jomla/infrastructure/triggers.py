"""Document triggers: run background handlers after offer and order writes.

The observed repositories wrap the real ones, read the stored state
before each write and publish a change event once the write has
committed. Handlers run synchronously through the dispatcher, which
retries them and logs what still fails. A handler failure never reaches
the code that made the write.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

from jomla.domain.model.cart import Cart
from jomla.domain.model.events import OfferChange, OrderChange
from jomla.domain.model.offer import Offer
from jomla.domain.model.order import Order
from jomla.domain.repository.offer_repository import OfferRepository
from jomla.domain.repository.order_repository import OrderRepository
from jomla.infrastructure.resilience import retry_with_backoff

logger = logging.getLogger(__name__)

E = TypeVar("E")


class TriggerDispatcher(Generic[E]):

    def __init__(
        self,
        name: str,
        max_attempts: int = 3,
        initial_delay: float = 0.5,
        max_delay: float = 5.0,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.name = name
        self._handlers: list[tuple[str, Callable[[E], object]]] = []
        self._max_attempts = max_attempts
        self._initial_delay = initial_delay
        self._max_delay = max_delay
        self._sleep = sleep

    def subscribe(self, label: str, handler: Callable[[E], object]) -> None:
        self._handlers.append((label, handler))

    def publish(self, event: E) -> None:
        for label, handler in self._handlers:
            kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
            try:
                retry_with_backoff(
                    lambda: handler(event),
                    max_attempts=self._max_attempts,
                    initial_delay=self._initial_delay,
                    max_delay=self._max_delay,
                    is_retryable=lambda exc: True,
                    **kwargs,
                )
            except Exception:
                logger.exception("%s trigger %s failed for %r", self.name, label, event_id(event))


def event_id(event: object) -> str | None:
    return getattr(event, "offer_id", None) or getattr(event, "order_id", None)


# --- Observed repositories ------------------------------------------------------


class ObservedOfferRepository(OfferRepository):

    def __init__(self, inner: OfferRepository, dispatcher: TriggerDispatcher[OfferChange]) -> None:
        self._inner = inner
        self._dispatcher = dispatcher

    def next_id(self) -> str:
        return self._inner.next_id()

    def get_by_id(self, offer_id: str) -> Offer | None:
        return self._inner.get_by_id(offer_id)

    def list_all(self) -> list[Offer]:
        return self._inner.list_all()

    def save(self, offer: Offer) -> None:
        previous = self._inner.get_by_id(offer.id)
        self._inner.save(offer)
        self._dispatcher.publish(OfferChange(offer.id, previous, self._inner.get_by_id(offer.id)))

    def delete(self, offer_id: str) -> None:
        previous = self._inner.get_by_id(offer_id)
        self._inner.delete(offer_id)
        if previous is not None:
            self._dispatcher.publish(OfferChange(offer_id, previous, None))


class ObservedOrderRepository(OrderRepository):

    def __init__(self, inner: OrderRepository, dispatcher: TriggerDispatcher[OrderChange]) -> None:
        self._inner = inner
        self._dispatcher = dispatcher

    def get_by_id(self, order_id: str) -> Order | None:
        return self._inner.get_by_id(order_id)

    def list_by_user(self, user_id: str) -> list[Order]:
        return self._inner.list_by_user(user_id)

    def save(self, order: Order) -> None:
        previous = self._inner.get_by_id(order.id) if order.id else None
        self._inner.save(order)
        self._dispatcher.publish(OrderChange(order.id, previous, self._inner.get_by_id(order.id)))

    def place(self, order: Order, cleared_cart: Cart) -> str:
        order_id = self._inner.place(order, cleared_cart)
        self._dispatcher.publish(OrderChange(order_id, None, self._inner.get_by_id(order_id)))
        return order_id
