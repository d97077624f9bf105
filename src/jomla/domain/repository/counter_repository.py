"""Abstract store for the daily order-number counters."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CounterRepository(ABC):

    @abstractmethod
    def increment(self, counter_id: str, day_key: str) -> int:
        """Atomically read, increment and write a counter; return the new count.

        A missing counter starts at 0. Concurrent callers never observe
        the same value.
        """
