"""Cart aggregate: a user's mutable selection prior to checkout.

One cart per user; the cart id is the user id. Lines carry snapshots of
the prices seen when they were added. Aggregates are recomputed from the
lines after every mutation and re-validated authoritatively at checkout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from jomla.domain.exceptions import ValidationError
from jomla.domain.model.offer import Offer, OfferLineItem
from jomla.domain.model.product import Product
from jomla.domain.model.value_objects import Money, Quantity


@dataclass
class CartOfferLine:
    offer_id: str
    offer_name: str
    quantity: int
    discounted_total: Money  # offer price x quantity
    original_total: Money
    products: tuple[OfferLineItem, ...] = ()
    version: int = 1

    def __post_init__(self) -> None:
        Quantity(self.quantity)
        self.products = tuple(self.products)

    @property
    def savings(self) -> Money:
        return self.original_total - self.discounted_total

    def set_quantity(self, quantity: int) -> None:
        """Rescale the snapshotted totals to a new quantity."""
        unit_discounted = self.discounted_total.cents // self.quantity
        unit_original = self.original_total.cents // self.quantity
        self.quantity = Quantity(quantity).value
        self.discounted_total = Money(unit_discounted * quantity)
        self.original_total = Money(unit_original * quantity)


@dataclass
class CartProductLine:
    product_id: str
    product_name: str
    quantity: int
    price_per_unit: Money
    image_url: str | None = None

    def __post_init__(self) -> None:
        Quantity(self.quantity)

    @property
    def total_price(self) -> Money:
        return self.price_per_unit * self.quantity


@dataclass
class Cart:
    """Aggregate root for a user's cart."""

    user_id: str
    offers: list[CartOfferLine] = field(default_factory=list)
    products: list[CartProductLine] = field(default_factory=list)
    subtotal: Money = field(default_factory=Money.zero)
    total_savings: Money = field(default_factory=Money.zero)
    total: Money = field(default_factory=Money.zero)
    has_invalid_items: bool = False
    invalid_offer_ids: list[str] = field(default_factory=list)
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def id(self) -> str:
        return self.user_id

    @property
    def is_empty(self) -> bool:
        return not self.offers and not self.products

    def references_offer(self, offer_id: str) -> bool:
        return any(line.offer_id == offer_id for line in self.offers)

    # --- Mutations ------------------------------------------------------------

    def add_offer(self, offer: Offer, quantity: int) -> None:
        """Add ``quantity`` units of ``offer``, merging into an existing line."""
        Quantity(quantity)
        existing = self._find_offer(offer.id)
        if existing is not None:
            existing.quantity += quantity
            existing.discounted_total = existing.discounted_total + offer.discounted_total * quantity
            existing.original_total = existing.original_total + offer.original_total * quantity
        else:
            self.offers.append(
                CartOfferLine(
                    offer_id=offer.id,
                    offer_name=offer.name,
                    quantity=quantity,
                    discounted_total=offer.discounted_total * quantity,
                    original_total=offer.original_total * quantity,
                    products=offer.items,
                )
            )
        self._recalculate()

    def add_product(self, product: Product, quantity: int) -> None:
        Quantity(quantity)
        existing = self._find_product(product.id)
        if existing is not None:
            existing.quantity += quantity
        else:
            self.products.append(
                CartProductLine(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    price_per_unit=product.base_price,
                    image_url=product.image_url,
                )
            )
        self._recalculate()

    def update_offer_quantity(self, offer_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        line = self._find_offer(offer_id)
        if line is None:
            raise ValidationError(f"Offer '{offer_id}' is not in the cart")
        if quantity <= 0:
            self.remove_offer(offer_id)
            return
        line.set_quantity(quantity)
        self._recalculate()

    def update_product_quantity(self, product_id: str, quantity: int) -> None:
        line = self._find_product(product_id)
        if line is None:
            raise ValidationError(f"Product '{product_id}' is not in the cart")
        if quantity <= 0:
            self.remove_product(product_id)
            return
        line.quantity = Quantity(quantity).value
        self._recalculate()

    def remove_offer(self, offer_id: str) -> None:
        self.offers = [line for line in self.offers if line.offer_id != offer_id]
        self.invalid_offer_ids = [i for i in self.invalid_offer_ids if i != offer_id]
        if not self.invalid_offer_ids:
            self.has_invalid_items = False
        self._recalculate()

    def remove_product(self, product_id: str) -> None:
        self.products = [line for line in self.products if line.product_id != product_id]
        self._recalculate()

    def clear(self) -> None:
        """Empty the cart in place; the document itself is kept."""
        self.offers = []
        self.products = []
        self.has_invalid_items = False
        self.invalid_offer_ids = []
        self._recalculate()

    def mark_offer_invalid(self, offer_id: str) -> None:
        """Flag ``offer_id`` as stale. Idempotent: ids are never duplicated."""
        if offer_id not in self.invalid_offer_ids:
            self.invalid_offer_ids.append(offer_id)
        self.has_invalid_items = True
        self.touch()

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    # --- Internal helpers -----------------------------------------------------

    def _recalculate(self) -> None:
        offer_total = sum((line.discounted_total for line in self.offers), Money.zero())
        product_total = sum((line.total_price for line in self.products), Money.zero())
        self.subtotal = offer_total + product_total
        self.total_savings = sum((line.savings for line in self.offers), Money.zero())
        self.total = self.subtotal
        self.touch()

    def _find_offer(self, offer_id: str) -> CartOfferLine | None:
        for line in self.offers:
            if line.offer_id == offer_id:
                return line
        return None

    def _find_product(self, product_id: str) -> CartProductLine | None:
        for line in self.products:
            if line.product_id == product_id:
                return line
        return None
