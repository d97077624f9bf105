"""Application service: Update Order Status use case.

Moves an order along its fulfilment lifecycle. Saving through the
observed order repository fires the status notification, and the invoice
on first confirmation.
"""

from __future__ import annotations

import logging

from jomla.application.dto import OrderDTO
from jomla.application.mapping import order_to_dto
from jomla.domain.exceptions import EntityNotFoundError, ValidationError
from jomla.domain.model.order import OrderStatus
from jomla.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class UpdateOrderStatusHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: str, new_status: str, updated_by: str | None = None) -> OrderDTO:
        try:
            status = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown order status '{new_status}'") from None

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order '{order_id}' not found")

        previous = order.status
        order.transition_to(status, updated_by=updated_by)
        self._order_repo.save(order)
        logger.info(
            "Order %s moved from %s to %s by %s",
            order.order_number,
            previous.value,
            status.value,
            updated_by or "system",
        )
        return order_to_dto(order)


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: str) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order '{order_id}' not found")
        return order_to_dto(order)
