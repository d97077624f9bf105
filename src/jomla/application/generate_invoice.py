"""Background handler: render and store a PDF invoice for an order.

Fires on order writes. An invoice is produced when an order is created
(``pending``) or first becomes ``confirmed``, and only if the order has no
invoice link yet. Failures are recorded on the order and re-raised so the
dispatcher retries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from jomla.domain.model.events import OrderChange
from jomla.domain.model.order import Order, OrderStatus
from jomla.domain.gateway.blob_storage import BlobStorage
from jomla.domain.gateway.invoice_renderer import InvoiceRenderer
from jomla.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)

LINK_LIFETIME_YEARS = 10


def invoice_path(order_id: str, order_number: str) -> str:
    return f"invoices/{order_id}/{order_number}.pdf"


def should_generate(change: OrderChange) -> bool:
    after = change.current
    if after is None or after.invoice_url:
        return False
    before = change.previous
    if before is None:
        return after.status == OrderStatus.PENDING
    return before.status != OrderStatus.CONFIRMED and after.status == OrderStatus.CONFIRMED


class GenerateInvoiceHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        renderer: InvoiceRenderer,
        storage: BlobStorage,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._order_repo = order_repo
        self._renderer = renderer
        self._storage = storage
        self._clock = clock

    def handle(self, change: OrderChange) -> str | None:
        """Return the invoice link, or None when no invoice was needed."""
        if not should_generate(change):
            return None

        snapshot = change.current
        order_id = change.order_id
        logger.info("Generating invoice for order %s", order_id)
        try:
            path = invoice_path(order_id, snapshot.order_number)
            now = self._clock()
            self._storage.save(
                path,
                self._renderer.render(snapshot),
                content_type="application/pdf",
                metadata={
                    "orderId": order_id,
                    "orderNumber": snapshot.order_number,
                    "generatedAt": now.isoformat(),
                },
            )
            url = self._storage.signed_url(path, _years_later(now, LINK_LIFETIME_YEARS))

            order = self._latest(order_id, snapshot)
            order.attach_invoice(url)
            self._order_repo.save(order)
        except Exception as exc:
            logger.exception("Error generating invoice for order %s", order_id)
            order = self._latest(order_id, snapshot)
            order.mark_invoice_failed(str(exc) or type(exc).__name__)
            self._order_repo.save(order)
            raise

        logger.info("Invoice stored at %s for order %s", path, order_id)
        return url

    def _latest(self, order_id: str, fallback: Order) -> Order:
        return self._order_repo.get_by_id(order_id) or fallback


def _years_later(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:  # 29 February
        return moment.replace(year=moment.year + years, day=28)
