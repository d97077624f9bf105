"""Application services: catalog administration.

Products are never deleted, only toggled inactive. Offer writes go
through the offer repository the triggers observe, so every save, status
change or delete here may flag carts or broadcast a push notification.
"""

from __future__ import annotations

import logging
from datetime import datetime

from jomla.application.dto import OfferItemSpec
from jomla.domain.exceptions import EntityNotFoundError, ValidationError
from jomla.domain.model.offer import Offer, OfferLineItem, OfferStatus
from jomla.domain.model.product import Product, ProductStatus
from jomla.domain.model.value_objects import Money, QuantityLimits
from jomla.domain.repository.offer_repository import OfferRepository
from jomla.domain.repository.product_repository import ProductRepository

logger = logging.getLogger(__name__)


def _parse_status(enum_type, raw: str):
    try:
        return enum_type(raw)
    except ValueError:
        allowed = ", ".join(s.value for s in enum_type)
        raise ValidationError(f"Invalid status '{raw}'. Must be one of: {allowed}") from None


# --- Products -----------------------------------------------------------------


class SaveProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        name: str,
        price: str,
        product_id: str | None = None,
        category: str = "",
        description: str = "",
        tags: tuple[str, ...] = (),
        in_stock: bool = True,
        min_quantity: int = 1,
        max_quantity: int = 999,
        image_url: str | None = None,
    ) -> Product:
        """Create a product, or replace the editable fields of an existing one."""
        base_price = Money.of(price)
        if base_price.cents <= 0:
            raise ValidationError("Product price must be greater than zero")
        limits = QuantityLimits(min_quantity, max_quantity)

        existing = self._product_repo.get_by_id(product_id) if product_id else None
        if existing is None:
            product = Product(
                id=product_id or self._product_repo.next_id(),
                name=(name or "").strip(),
                base_price=base_price,
                category=category,
                description=description,
                tags=frozenset(tags),
                in_stock=in_stock,
                limits=limits,
                image_url=image_url,
            )
        else:
            product = existing
            if not name or not name.strip():
                raise ValidationError("Product name is required")
            product.name = name.strip()
            product.update_price(base_price)
            product.category = category
            product.description = description
            product.tags = frozenset(tags)
            product.in_stock = in_stock
            product.limits = limits
            product.image_url = image_url
            product.touch()

        self._product_repo.save(product)
        return product


class SetProductStatusHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(self, product_id: str, status: str) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise EntityNotFoundError(f"Product with ID '{product_id}' not found")
        product.set_status(_parse_status(ProductStatus, status))
        self._product_repo.save(product)
        return product


# --- Offers -------------------------------------------------------------------


class SaveOfferHandler:

    def __init__(self, offer_repo: OfferRepository, product_repo: ProductRepository) -> None:
        self._offer_repo = offer_repo
        self._product_repo = product_repo

    def handle(
        self,
        name: str,
        items: list[OfferItemSpec],
        offer_id: str | None = None,
        description: str = "",
        min_quantity: int = 1,
        max_quantity: int = 999,
        valid_from: datetime | None = None,
        valid_until: datetime | None = None,
        image_url: str | None = None,
        created_by: str = "",
    ) -> Offer:
        """Create or replace an offer.

        Line items take their names and base prices from the live
        products; the aggregate totals are derived from the line items.
        Status, publication time and creation audit survive a replace.
        """
        line_items = [self._line_item(spec) for spec in items]
        existing = self._offer_repo.get_by_id(offer_id) if offer_id else None

        kwargs = dict(
            description=description,
            limits=QuantityLimits(min_quantity, max_quantity),
            valid_from=valid_from,
            valid_until=valid_until,
            image_url=image_url,
            created_by=created_by,
        )
        if existing is not None:
            kwargs.update(
                status=existing.status,
                published_at=existing.published_at,
                created_at=existing.created_at,
                created_by=existing.created_by or created_by,
            )

        offer = Offer.create(
            id=offer_id or self._offer_repo.next_id(),
            name=(name or "").strip(),
            items=line_items,
            **kwargs,
        )
        self._offer_repo.save(offer)
        logger.info("Saved offer %s (%s)", offer.id, offer.status.value)
        return offer

    def _line_item(self, spec: OfferItemSpec) -> OfferLineItem:
        product = self._product_repo.get_by_id(spec.product_id)
        if product is None:
            raise EntityNotFoundError(f"Product not found: '{spec.product_id}'")
        return OfferLineItem(
            product_id=product.id,
            product_name=product.name,
            base_price=product.base_price,
            discounted_price=Money.of(spec.discounted_price),
        )


class _OfferCommand:

    def __init__(self, offer_repo: OfferRepository) -> None:
        self._offer_repo = offer_repo

    def _load(self, offer_id: str) -> Offer:
        offer = self._offer_repo.get_by_id(offer_id)
        if offer is None:
            raise EntityNotFoundError(f"Offer with ID '{offer_id}' not found")
        return offer


class PublishOfferHandler(_OfferCommand):

    def handle(self, offer_id: str) -> Offer:
        offer = self._load(offer_id)
        offer.publish()
        self._offer_repo.save(offer)
        logger.info("Published offer %s", offer_id)
        return offer


class SetOfferStatusHandler(_OfferCommand):

    def handle(self, offer_id: str, status: str) -> Offer:
        offer = self._load(offer_id)
        offer.set_status(_parse_status(OfferStatus, status))
        self._offer_repo.save(offer)
        logger.info("Offer %s set to %s", offer_id, offer.status.value)
        return offer


class DeleteOfferHandler(_OfferCommand):

    def handle(self, offer_id: str) -> None:
        self._load(offer_id)
        self._offer_repo.delete(offer_id)
        logger.info("Deleted offer %s", offer_id)
