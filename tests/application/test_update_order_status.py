"""Tests for moving orders through fulfilment and showing them."""

import pytest

from jomla.application.update_order_status import ShowOrderHandler, UpdateOrderStatusHandler
from jomla.domain.exceptions import EntityNotFoundError, FailedPreconditionError, ValidationError
from jomla.domain.model.order import OrderStatus
from tests.builders import make_order
from tests.fakes import FakeOrderRepository


def _setup():
    orders = FakeOrderRepository()
    orders.save(make_order())
    return UpdateOrderStatusHandler(orders), orders


class TestUpdateOrderStatus:

    def test_confirm(self):
        handler, orders = _setup()
        dto = handler.handle("order-1", "confirmed", updated_by="admin-1")

        assert dto.status == "confirmed"
        saved = orders.get_by_id("order-1")
        assert saved.status == OrderStatus.CONFIRMED
        assert saved.status_history[-1].updated_by == "admin-1"

    def test_illegal_transition(self):
        handler, _ = _setup()
        with pytest.raises(FailedPreconditionError):
            handler.handle("order-1", "completed")

    def test_unknown_status(self):
        handler, _ = _setup()
        with pytest.raises(ValidationError, match="Unknown order status"):
            handler.handle("order-1", "shipped")

    def test_unknown_order(self):
        handler, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            handler.handle("order-9", "confirmed")


class TestShowOrder:

    def test_formats_amounts(self):
        _, orders = _setup()
        dto = ShowOrderHandler(orders).handle("order-1")
        assert dto.order_number == "ORD-20250314-0001"
        assert dto.delivery_fee == "$5.99"
        assert dto.total == "$9.89"
        assert dto.lines[0].name == "Milk"
        assert dto.created_at == "2025-03-14 12:00 UTC"
