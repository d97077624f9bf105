"""JSON-document implementations of ProductRepository and OfferRepository."""

from __future__ import annotations

from jomla.domain.model.offer import Offer, OfferStatus
from jomla.domain.model.product import Product, ProductStatus
from jomla.domain.model.value_objects import Money
from jomla.domain.repository.offer_repository import OfferRepository
from jomla.domain.repository.product_repository import ProductRepository
from jomla.infrastructure.persistence.json_repository import (
    JsonRepository,
    dt_from_raw,
    dt_to_raw,
    limits_from_raw,
    limits_to_raw,
    line_items_from_raw,
    line_items_to_raw,
    money_from_raw,
)


class JsonProductRepository(JsonRepository, ProductRepository):
    collection = "products"

    # --- ProductRepository interface ------------------------------------------

    def next_id(self) -> str:
        return self.new_id()

    def get_by_id(self, product_id: str) -> Product | None:
        return self._get(product_id, self._to_domain)

    def list_all(self) -> list[Product]:
        return sorted(self._all(self._to_domain), key=lambda p: p.name.lower())

    def save(self, product: Product) -> None:
        self._put(product.id, self._to_raw(product))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "name": product.name,
            "description": product.description,
            "base_price": product.base_price.cents,
            "category": product.category,
            "tags": sorted(product.tags),
            "in_stock": product.in_stock,
            **limits_to_raw(product.limits),
            "status": product.status.value,
            "image_url": product.image_url,
            "created_at": dt_to_raw(product.created_at),
            "updated_at": dt_to_raw(product.updated_at),
        }

    @staticmethod
    def _to_domain(product_id: str, raw: dict) -> Product:
        return Product(
            id=product_id,
            name=raw["name"],
            base_price=money_from_raw(raw["base_price"]),
            category=raw.get("category", ""),
            description=raw.get("description", ""),
            tags=frozenset(raw.get("tags", [])),
            in_stock=bool(raw.get("in_stock", True)),
            limits=limits_from_raw(raw),
            status=ProductStatus(raw.get("status", ProductStatus.ACTIVE.value)),
            image_url=raw.get("image_url"),
            created_at=dt_from_raw(raw["created_at"]),
            updated_at=dt_from_raw(raw["updated_at"]),
        )


class JsonOfferRepository(JsonRepository, OfferRepository):
    collection = "offers"

    # --- OfferRepository interface --------------------------------------------

    def next_id(self) -> str:
        return self.new_id()

    def get_by_id(self, offer_id: str) -> Offer | None:
        return self._get(offer_id, self._to_domain)

    def list_all(self) -> list[Offer]:
        return sorted(self._all(self._to_domain), key=lambda o: o.created_at)

    def save(self, offer: Offer) -> None:
        self._put(offer.id, self._to_raw(offer))

    def delete(self, offer_id: str) -> None:
        with self._store.transaction() as data:
            data.get(self.collection, {}).pop(offer_id, None)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(offer: Offer) -> dict:
        return {
            "name": offer.name,
            "description": offer.description,
            "products": line_items_to_raw(offer.items),
            "original_total": offer.original_total.cents,
            "discounted_total": offer.discounted_total.cents,
            **limits_to_raw(offer.limits),
            "valid_from": dt_to_raw(offer.valid_from),
            "valid_until": dt_to_raw(offer.valid_until),
            "status": offer.status.value,
            "created_by": offer.created_by,
            "image_url": offer.image_url,
            "created_at": dt_to_raw(offer.created_at),
            "updated_at": dt_to_raw(offer.updated_at),
            "published_at": dt_to_raw(offer.published_at),
        }

    @staticmethod
    def _to_domain(offer_id: str, raw: dict) -> Offer:
        # Stored totals are checked against the line items by Offer itself.
        return Offer(
            id=offer_id,
            name=raw["name"],
            items=line_items_from_raw(raw["products"]),
            original_total=Money(raw["original_total"]),
            discounted_total=Money(raw["discounted_total"]),
            description=raw.get("description", ""),
            limits=limits_from_raw(raw),
            valid_from=dt_from_raw(raw.get("valid_from")),
            valid_until=dt_from_raw(raw.get("valid_until")),
            status=OfferStatus(raw["status"]),
            created_by=raw.get("created_by", ""),
            image_url=raw.get("image_url"),
            created_at=dt_from_raw(raw["created_at"]),
            updated_at=dt_from_raw(raw["updated_at"]),
            published_at=dt_from_raw(raw.get("published_at")),
        )
