"""Offer aggregate: a bundle of products sold at an aggregate discount.

The aggregate totals are stored, not derived lazily, so they must equal
the sum of the line items at the time of every write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from jomla.domain.exceptions import ValidationError
from jomla.domain.model.value_objects import Money, QuantityLimits


class OfferStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"


def _percentage(part: Money, whole: Money) -> int:
    if whole.cents == 0:
        return 0
    ratio = Decimal(part.cents) * 100 / Decimal(whole.cents)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class OfferLineItem:
    """One product inside an offer, with its bundle price."""

    product_id: str
    product_name: str
    base_price: Money
    discounted_price: Money

    def __post_init__(self) -> None:
        if self.discounted_price > self.base_price:
            raise ValidationError(
                f"Discounted price of {self.product_name} exceeds its base price"
            )

    @property
    def discount_amount(self) -> Money:
        return self.base_price - self.discounted_price

    @property
    def discount_percentage(self) -> int:
        return _percentage(self.discount_amount, self.base_price)


@dataclass
class Offer:
    """Aggregate root for bundled offers.

    Use ``Offer.create()`` to build a new offer from line items; the
    ``__init__`` accepts explicit totals (as read back from storage) and
    rejects them if they disagree with the line items.
    """

    id: str
    name: str
    items: tuple[OfferLineItem, ...]
    original_total: Money
    discounted_total: Money
    description: str = ""
    limits: QuantityLimits = field(default_factory=QuantityLimits)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    status: OfferStatus = OfferStatus.DRAFT
    created_by: str = ""
    image_url: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    published_at: datetime | None = None

    def __post_init__(self) -> None:
        self.items = tuple(self.items)
        if not self.id:
            raise ValidationError("Offer id is required")
        if not self.name or not self.name.strip():
            raise ValidationError("Offer name is required")
        if not self.items:
            raise ValidationError("Offer must contain at least one product")
        expected_original = sum((i.base_price for i in self.items), Money.zero())
        expected_discounted = sum((i.discounted_price for i in self.items), Money.zero())
        if self.original_total != expected_original:
            raise ValidationError(
                f"Offer original total {self.original_total} does not match "
                f"line items ({expected_original})"
            )
        if self.discounted_total != expected_discounted:
            raise ValidationError(
                f"Offer discounted total {self.discounted_total} does not match "
                f"line items ({expected_discounted})"
            )
        if self.valid_from and self.valid_until and self.valid_until < self.valid_from:
            raise ValidationError("Offer validity window ends before it starts")

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def create(
        id: str,
        name: str,
        items: list[OfferLineItem],
        **kwargs,
    ) -> Offer:
        """Create an offer whose totals are computed from ``items``."""
        return Offer(
            id=id,
            name=name,
            items=tuple(items),
            original_total=sum((i.base_price for i in items), Money.zero()),
            discounted_total=sum((i.discounted_price for i in items), Money.zero()),
            **kwargs,
        )

    # --- Derived pricing ------------------------------------------------------

    @property
    def total_savings(self) -> Money:
        return self.original_total - self.discounted_total

    @property
    def savings_percentage(self) -> int:
        return _percentage(self.total_savings, self.original_total)

    # --- State ----------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.status == OfferStatus.ACTIVE

    def publish(self, now: datetime | None = None) -> None:
        now = now or datetime.now(timezone.utc)
        self.status = OfferStatus.ACTIVE
        self.published_at = now
        self.updated_at = now

    def set_status(self, status: OfferStatus, now: datetime | None = None) -> None:
        if status == OfferStatus.ACTIVE:
            self.publish(now)
            return
        self.status = status
        self.updated_at = now or datetime.now(timezone.utc)

    def not_yet_valid(self, now: datetime) -> bool:
        return self.valid_from is not None and now < self.valid_from

    def expired(self, now: datetime) -> bool:
        return self.valid_until is not None and now > self.valid_until
