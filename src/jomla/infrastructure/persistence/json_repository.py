"""Shared plumbing for the JSON-document repositories.

Every document passes through the entity constructors on read, so a
stored document that breaks an entity invariant is rejected with
``CorruptDocumentError`` instead of leaking into the domain.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

from jomla.domain.exceptions import DomainException
from jomla.domain.model.offer import OfferLineItem
from jomla.domain.model.value_objects import Money, QuantityLimits
from jomla.infrastructure.persistence.json_store import CorruptDocumentError, JsonDocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class JsonRepository:
    collection: str = ""

    def __init__(self, store: JsonDocumentStore) -> None:
        self._store = store

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex[:20]

    # --- Decoding -------------------------------------------------------------

    def _decode(self, doc_id: str, raw: dict, to_domain: Callable[[str, dict], T]) -> T:
        try:
            return to_domain(doc_id, raw)
        except (KeyError, TypeError, ValueError, DomainException) as exc:
            logger.error("Stored %s/%s is invalid: %s", self.collection, doc_id, exc)
            raise CorruptDocumentError(self.collection, doc_id, str(exc)) from exc

    def _get(self, doc_id: str, to_domain: Callable[[str, dict], T]) -> T | None:
        raw = self._store.document(self.collection, doc_id)
        if raw is None:
            return None
        return self._decode(doc_id, raw, to_domain)

    def _all(self, to_domain: Callable[[str, dict], T]) -> list[T]:
        docs = self._store.collection(self.collection)
        return [self._decode(doc_id, raw, to_domain) for doc_id, raw in docs.items()]

    def _put(self, doc_id: str, raw: dict) -> None:
        with self._store.transaction() as data:
            data.setdefault(self.collection, {})[doc_id] = raw


# --- Field codecs -------------------------------------------------------------


def dt_to_raw(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def dt_from_raw(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:  # naive times are UTC
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def money_from_raw(value: Any) -> Money:
    return Money(value)


def limits_to_raw(limits: QuantityLimits) -> dict:
    return {"min_quantity": limits.minimum, "max_quantity": limits.maximum}


def limits_from_raw(raw: dict) -> QuantityLimits:
    return QuantityLimits(raw.get("min_quantity", 1), raw.get("max_quantity", 999))


def line_items_to_raw(items: tuple[OfferLineItem, ...]) -> list[dict]:
    return [
        {
            "product_id": i.product_id,
            "product_name": i.product_name,
            "base_price": i.base_price.cents,
            "discounted_price": i.discounted_price.cents,
        }
        for i in items
    ]


def line_items_from_raw(raw: list[dict]) -> tuple[OfferLineItem, ...]:
    return tuple(
        OfferLineItem(
            product_id=i["product_id"],
            product_name=i["product_name"],
            base_price=money_from_raw(i["base_price"]),
            discounted_price=money_from_raw(i["discounted_price"]),
        )
        for i in raw
    )
