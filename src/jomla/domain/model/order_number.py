"""Human-readable order numbers: ``ORD-YYYYMMDD-####``.

Fixed width, ASCII, case-sensitive, and lexically sortable by date then
daily sequence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from jomla.domain.exceptions import FailedPreconditionError

ORDER_NUMBER_PATTERN = re.compile(r"ORD-(\d{8})-(\d{4})", re.ASCII)
MAX_DAILY_SEQUENCE = 9999


@dataclass(frozen=True)
class ParsedOrderNumber:
    date: str  # YYYYMMDD
    sequence: int


def date_key(day: date) -> str:
    return day.strftime("%Y%m%d")


def counter_id(day_key: str) -> str:
    """Id of the counter document for a YYYYMMDD day key."""
    return f"orders-{day_key}"


def format_order_number(day: date | str, sequence: int) -> str:
    day_str = day if isinstance(day, str) else date_key(day)
    if not 1 <= sequence <= MAX_DAILY_SEQUENCE:
        raise FailedPreconditionError(
            f"Daily order sequence {sequence} is outside 1..{MAX_DAILY_SEQUENCE}"
        )
    return f"ORD-{day_str}-{sequence:04d}"


def parse_order_number(order_number: str) -> ParsedOrderNumber | None:
    match = ORDER_NUMBER_PATTERN.fullmatch(order_number)
    if not match:
        return None
    return ParsedOrderNumber(date=match.group(1), sequence=int(match.group(2)))


def is_valid_order_number(order_number: str) -> bool:
    return ORDER_NUMBER_PATTERN.fullmatch(order_number) is not None
