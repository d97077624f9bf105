"""Background handler: flag carts holding an offer that changed.

Runs after every offer write. Deletions, deactivations and significant
pricing updates flag each cart referencing the offer; other changes are
ignored. Checkout re-validates every cart anyway, so a failure here is
logged and swallowed rather than raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from jomla.domain.model.cart import Cart
from jomla.domain.model.events import ChangeType, OfferChange, classify_offer_change
from jomla.domain.repository.cart_repository import CartRepository

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 500


@dataclass(frozen=True)
class InvalidationSummary:
    offer_id: str
    offer_name: str
    change_type: ChangeType
    carts_checked: int = 0
    affected_carts: int = 0
    batches: int = 0


class InvalidateCartsOnOfferChangeHandler:

    def __init__(self, cart_repo: CartRepository, batch_size: int = MAX_BATCH_SIZE) -> None:
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be within 1..{MAX_BATCH_SIZE}")
        self._cart_repo = cart_repo
        self._batch_size = batch_size

    def handle(self, change: OfferChange) -> InvalidationSummary | None:
        offer_id = change.offer_id
        offer_name = change.offer_name
        try:
            change_type = classify_offer_change(change)
            if not change_type.invalidates_carts:
                logger.info(
                    "No cart invalidation needed for offer %s (%s)",
                    offer_id,
                    change_type.value,
                )
                return InvalidationSummary(offer_id, offer_name, change_type)

            logger.warning(
                "Offer %s %r changed (%s); flagging carts",
                offer_id,
                offer_name,
                change_type.value,
            )
            return self._flag_carts(offer_id, offer_name, change_type)
        except Exception:
            logger.exception(
                "Failed to invalidate carts for offer %s",
                offer_id,
                extra={"offer_id": offer_id},
            )
            return None

    def _flag_carts(self, offer_id: str, offer_name: str, change_type: ChangeType) -> InvalidationSummary:
        carts = self._cart_repo.list_all()
        pending: list[Cart] = []
        affected = 0
        batches = 0

        for cart in carts:
            if not cart.references_offer(offer_id):
                continue
            cart.mark_offer_invalid(offer_id)
            pending.append(cart)
            affected += 1
            if len(pending) >= self._batch_size:
                self._commit(pending)
                batches += 1
                pending = []

        if pending:
            self._commit(pending)
            batches += 1

        logger.info(
            "Cart invalidation complete for offer %s: %d of %d carts flagged in %d batch(es)",
            offer_id,
            affected,
            len(carts),
            batches,
        )
        return InvalidationSummary(
            offer_id=offer_id,
            offer_name=offer_name,
            change_type=change_type,
            carts_checked=len(carts),
            affected_carts=affected,
            batches=batches,
        )

    def _commit(self, carts: list[Cart]) -> None:
        self._cart_repo.save_batch(carts)
        logger.info("Committed batch of %d cart updates", len(carts))
