"""Integration tests for the CreateOrder use case.

Uses in-memory fake repositories, with no file I/O.
"""

from datetime import datetime

import pytest

from jomla.application.create_order import CreateOrderHandler
from jomla.application.dto import (
    Caller,
    CreateOrderRequest,
    DeliveryDetailsInput,
    PickupDetailsInput,
)
from jomla.domain.exceptions import (
    EntityNotFoundError,
    FailedPreconditionError,
    InternalError,
    UnauthenticatedError,
    ValidationError,
)
from jomla.domain.model.order import OrderStatus
from jomla.domain.model.offer import OfferStatus
from jomla.domain.model.value_objects import Money
from jomla.domain.service.cart_validator import CartValidator
from jomla.domain.service.order_number_generator import OrderNumberGenerator
from tests.builders import NOW, later, make_cart, make_offer, make_product, make_user
from tests.fakes import (
    FakeCartRepository,
    FakeCounterRepository,
    FakeOfferRepository,
    FakeOrderRepository,
    FakeProductRepository,
    FakeUserRepository,
)

ADDRESS = DeliveryDetailsInput(address="1 Main St", city="Springfield", postal_code="12345")


def _setup(cart=None, offers=None, products=None, users=None):
    """Build the handler around a stocked catalog and a two-line cart."""
    offer = make_offer()
    product = make_product(price=250)
    if cart is None:
        cart = make_cart(offers=[(offer, 2)], products=[(product, 2)])
    carts = FakeCartRepository([cart] if cart else [])
    orders = FakeOrderRepository(carts)
    offer_repo = FakeOfferRepository([offer] if offers is None else offers)
    product_repo = FakeProductRepository([product] if products is None else products)
    user_repo = FakeUserRepository([make_user()] if users is None else users)
    handler = CreateOrderHandler(
        carts,
        orders,
        user_repo,
        CartValidator(offer_repo, product_repo),
        OrderNumberGenerator(FakeCounterRepository(), today=lambda: NOW.date()),
        clock=lambda: NOW,
    )
    return handler, carts, orders, offer_repo


def _delivery(cart_id="u1"):
    return CreateOrderRequest(cart_id=cart_id, fulfillment_method="delivery", delivery_details=ADDRESS)


CALLER = Caller(uid="u1")


class TestCreateOrderHappyPath:

    def test_delivery_order_totals(self):
        handler, _, orders, _ = _setup()
        result = handler.handle(CALLER, _delivery())

        # subtotal 1000 + 500, fee 599, tax 10% of 2099
        assert result.total == 1500 + 599 + 210
        assert result.order_number == "ORD-20250314-0001"
        assert result.estimated_delivery == later(hours=2)

        order = orders.get_by_id(result.order_id)
        assert order.status == OrderStatus.PENDING
        assert order.totals.subtotal == Money(1500)
        assert order.totals.total_savings == Money(400)
        assert order.customer.name == "Ada Lovelace"
        assert order.delivery_details.city == "Springfield"

    def test_pickup_order_has_no_fee_or_estimate(self):
        handler, _, orders, _ = _setup()
        request = CreateOrderRequest(
            cart_id="u1",
            fulfillment_method="pickup",
            pickup_details=PickupDetailsInput(pickup_time=later(hours=4)),
        )
        result = handler.handle(CALLER, request)

        assert result.total == 1500 + 150
        assert result.estimated_delivery is None
        order = orders.get_by_id(result.order_id)
        assert order.pickup_details.pickup_location == "Main Store Location"

    def test_cart_is_cleared(self):
        handler, carts, _, _ = _setup()
        handler.handle(CALLER, _delivery())
        cart = carts.get("u1")
        assert cart is not None
        assert cart.is_empty
        assert cart.subtotal == Money.zero()

    def test_order_numbers_increase(self):
        handler, carts, _, _ = _setup()
        first = handler.handle(CALLER, _delivery())
        carts.save(make_cart(offers=[(make_offer(), 1)]))
        second = handler.handle(CALLER, _delivery())
        assert first.order_number < second.order_number

    def test_line_snapshots_copied(self):
        handler, _, orders, _ = _setup()
        order = orders.get_by_id(handler.handle(CALLER, _delivery()).order_id)
        assert [line.quantity for line in order.offers] == [2]
        assert len(order.offers[0].products) == 2
        assert order.products[0].total_price == Money(500)


class TestCreateOrderRejections:

    def test_requires_caller(self):
        handler, *_ = _setup()
        with pytest.raises(UnauthenticatedError):
            handler.handle(None, _delivery())

    def test_cart_must_belong_to_caller(self):
        handler, *_ = _setup()
        with pytest.raises(ValidationError, match="Invalid cart ID"):
            handler.handle(CALLER, _delivery(cart_id="someone-else"))

    def test_unknown_method(self):
        handler, *_ = _setup()
        with pytest.raises(ValidationError, match="fulfillment method"):
            handler.handle(CALLER, CreateOrderRequest(cart_id="u1", fulfillment_method="drone"))

    def test_delivery_needs_address(self):
        handler, *_ = _setup()
        request = CreateOrderRequest(
            cart_id="u1",
            fulfillment_method="delivery",
            delivery_details=DeliveryDetailsInput(address="1 Main St"),
        )
        with pytest.raises(ValidationError, match="Delivery details"):
            handler.handle(CALLER, request)

    def test_pickup_in_the_past(self):
        handler, *_ = _setup()
        request = CreateOrderRequest(
            cart_id="u1",
            fulfillment_method="pickup",
            pickup_details=PickupDetailsInput(pickup_time=later(hours=-1)),
        )
        with pytest.raises(ValidationError, match="in the future"):
            handler.handle(CALLER, request)

    def test_naive_pickup_time_is_utc(self):
        handler, *_ = _setup()
        naive = datetime(2025, 3, 14, 11, 0)
        request = CreateOrderRequest(
            cart_id="u1",
            fulfillment_method="pickup",
            pickup_details=PickupDetailsInput(pickup_time=naive),
        )
        with pytest.raises(ValidationError, match="in the future"):
            handler.handle(CALLER, request)

    def test_missing_cart(self):
        handler, *_ = _setup(cart=False)
        with pytest.raises(EntityNotFoundError, match="Cart not found"):
            handler.handle(CALLER, _delivery())

    def test_empty_cart(self):
        handler, *_ = _setup(cart=make_cart())
        with pytest.raises(FailedPreconditionError, match="Cart is empty."):
            handler.handle(CALLER, _delivery())

    def test_invalid_cart_left_untouched(self):
        handler, carts, _, _ = _setup(offers=[make_offer(status=OfferStatus.INACTIVE)])
        before = carts.get("u1")

        with pytest.raises(FailedPreconditionError, match="Cart validation failed"):
            handler.handle(CALLER, _delivery())

        after = carts.get("u1")
        assert after.subtotal == before.subtotal
        assert len(after.offers) == 1

    def test_missing_user(self):
        handler, *_ = _setup(users=[])
        with pytest.raises(EntityNotFoundError, match="User not found"):
            handler.handle(CALLER, _delivery())

    def test_failed_write_leaves_cart_and_raises_internal(self):
        handler, carts, orders, _ = _setup()
        orders.fail_on_place = True

        with pytest.raises(InternalError, match="Failed to create order"):
            handler.handle(CALLER, _delivery())

        assert not carts.get("u1").is_empty
