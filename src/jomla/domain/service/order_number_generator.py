"""Domain service: daily-sequential order numbers.

The date is captured once at entry. A call that straddles midnight still
numbers the order under the day it started on.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from jomla.domain.model.order_number import counter_id, date_key, format_order_number
from jomla.domain.repository.counter_repository import CounterRepository

logger = logging.getLogger(__name__)


class OrderNumberGenerator:

    def __init__(
        self,
        counter_repo: CounterRepository,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._counter_repo = counter_repo
        self._today = today

    def generate(self) -> str:
        """Reserve the next sequence number for today and format it.

        The counter increment is its own transaction: a number is consumed
        even if the order that asked for it is never written.
        """
        day = date_key(self._today())
        sequence = self._counter_repo.increment(counter_id(day), day)
        order_number = format_order_number(day, sequence)
        logger.debug("Generated order number %s", order_number)
        return order_number
