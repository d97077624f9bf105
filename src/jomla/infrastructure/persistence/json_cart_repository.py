"""JSON-document implementation of CartRepository (doc id = user id)."""

from __future__ import annotations

from jomla.domain.model.cart import Cart, CartOfferLine, CartProductLine
from jomla.domain.model.value_objects import Money
from jomla.domain.repository.cart_repository import CartRepository
from jomla.infrastructure.persistence.json_repository import (
    JsonRepository,
    dt_from_raw,
    dt_to_raw,
    line_items_from_raw,
    line_items_to_raw,
)


class JsonCartRepository(JsonRepository, CartRepository):
    collection = "carts"

    # --- CartRepository interface ---------------------------------------------

    def get(self, user_id: str) -> Cart | None:
        return self._get(user_id, self.to_domain)

    def list_all(self) -> list[Cart]:
        return self._all(self.to_domain)

    def save(self, cart: Cart) -> None:
        self._put(cart.user_id, self.to_raw(cart))

    def save_batch(self, carts: list[Cart]) -> None:
        with self._store.transaction() as data:
            docs = data.setdefault(self.collection, {})
            for cart in carts:
                docs[cart.user_id] = self.to_raw(cart)

    # --- Serialization (shared with the order repository) ---------------------

    @staticmethod
    def to_raw(cart: Cart) -> dict:
        return {
            "user_id": cart.user_id,
            "offers": [
                {
                    "offer_id": line.offer_id,
                    "offer_name": line.offer_name,
                    "quantity": line.quantity,
                    "discounted_total": line.discounted_total.cents,
                    "original_total": line.original_total.cents,
                    "products": line_items_to_raw(line.products),
                    "version": line.version,
                }
                for line in cart.offers
            ],
            "products": [
                {
                    "product_id": line.product_id,
                    "product_name": line.product_name,
                    "quantity": line.quantity,
                    "price_per_unit": line.price_per_unit.cents,
                    "total_price": line.total_price.cents,
                    "image_url": line.image_url,
                }
                for line in cart.products
            ],
            "subtotal": cart.subtotal.cents,
            "total_savings": cart.total_savings.cents,
            "total": cart.total.cents,
            "has_invalid_items": cart.has_invalid_items,
            "invalid_offer_ids": list(cart.invalid_offer_ids),
            "updated_at": dt_to_raw(cart.updated_at),
        }

    @staticmethod
    def to_domain(user_id: str, raw: dict) -> Cart:
        # Stored aggregates are kept as written, not recomputed.
        return Cart(
            user_id=user_id,
            offers=[
                CartOfferLine(
                    offer_id=o["offer_id"],
                    offer_name=o["offer_name"],
                    quantity=o["quantity"],
                    discounted_total=Money(o["discounted_total"]),
                    original_total=Money(o["original_total"]),
                    products=line_items_from_raw(o.get("products", [])),
                    version=o.get("version", 1),
                )
                for o in raw.get("offers", [])
            ],
            products=[
                CartProductLine(
                    product_id=p["product_id"],
                    product_name=p["product_name"],
                    quantity=p["quantity"],
                    price_per_unit=Money(p["price_per_unit"]),
                    image_url=p.get("image_url"),
                )
                for p in raw.get("products", [])
            ],
            subtotal=Money(raw.get("subtotal", 0)),
            total_savings=Money(raw.get("total_savings", 0)),
            total=Money(raw.get("total", 0)),
            has_invalid_items=bool(raw.get("has_invalid_items", False)),
            invalid_offer_ids=list(raw.get("invalid_offer_ids", [])),
            updated_at=dt_from_raw(raw["updated_at"]),
        )
