"""Document-change events delivered to background handlers.

Each event carries the state before and after a write; either side may be
absent (create / delete).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from jomla.domain.exceptions import ValidationError
from jomla.domain.model.offer import Offer, OfferStatus
from jomla.domain.model.order import Order


class ChangeType(Enum):
    CREATED = "created"
    DELETED = "deleted"
    DEACTIVATED = "deactivated"
    SIGNIFICANT_UPDATE = "updated"
    MINOR_UPDATE = "updated_minor"

    @property
    def invalidates_carts(self) -> bool:
        return self in (
            ChangeType.DELETED,
            ChangeType.DEACTIVATED,
            ChangeType.SIGNIFICANT_UPDATE,
        )


@dataclass(frozen=True)
class OfferChange:
    offer_id: str
    previous: Offer | None
    current: Offer | None

    def __post_init__(self) -> None:
        if self.previous is None and self.current is None:
            raise ValidationError("An offer change needs a previous or current state")

    @property
    def offer_name(self) -> str:
        for offer in (self.current, self.previous):
            if offer is not None and offer.name:
                return offer.name
        return "Unknown Offer"


@dataclass(frozen=True)
class OrderChange:
    order_id: str
    previous: Order | None
    current: Order | None

    @property
    def status_changed(self) -> bool:
        return (
            self.previous is not None
            and self.current is not None
            and self.previous.status != self.current.status
        )


def _pricing_fingerprint(offer: Offer) -> tuple:
    return (
        offer.items,
        offer.discounted_total,
        offer.original_total,
        offer.limits.minimum,
        offer.limits.maximum,
    )


def classify_offer_change(change: OfferChange) -> ChangeType:
    """Classify an offer write; the first matching rule wins.

    Only a still-active offer whose line items, totals or quantity limits
    changed counts as a significant update.
    """
    before, after = change.previous, change.current
    if before is None:
        return ChangeType.CREATED
    if after is None:
        return ChangeType.DELETED
    if before.status == OfferStatus.ACTIVE and after.status != OfferStatus.ACTIVE:
        return ChangeType.DEACTIVATED
    if (
        before.status == OfferStatus.ACTIVE
        and after.status == OfferStatus.ACTIVE
        and _pricing_fingerprint(before) != _pricing_fingerprint(after)
    ):
        return ChangeType.SIGNIFICANT_UPDATE
    return ChangeType.MINOR_UPDATE
