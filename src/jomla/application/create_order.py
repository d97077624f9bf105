"""Application service: Create Order use case.

Turns the caller's cart into a priced, immutable order. The cart is
re-validated against the live catalog first; the order and the cleared
cart are then written together so either both land or neither does.

Steps, each a possible point of failure:
1. Authenticated caller, ordering from their own cart.
2. Fulfilment method and its details.
3. Cart exists and is not empty.
4. Every cart line passes validation.
5. Customer record exists.
6. Totals: cart aggregates + delivery fee + tax.
7. Order number.
8. Atomic write of the order and the cleared cart.
9. Result, with an estimated delivery time for delivery orders.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jomla.application.boundary import callable_boundary
from jomla.application.dto import (
    Caller,
    CreateOrderRequest,
    CreateOrderResult,
    DeliveryDetailsInput,
    PickupDetailsInput,
    require_caller,
)
from jomla.domain.exceptions import EntityNotFoundError, FailedPreconditionError, ValidationError
from jomla.domain.model.cart import Cart
from jomla.domain.model.order import (
    Customer,
    DeliveryDetails,
    FulfillmentMethod,
    Order,
    OrderOfferLine,
    OrderProductLine,
    PickupDetails,
)
from jomla.domain.repository.cart_repository import CartRepository
from jomla.domain.repository.order_repository import OrderRepository
from jomla.domain.repository.user_repository import UserRepository
from jomla.domain.service.cart_validator import CartValidator
from jomla.domain.service.order_number_generator import OrderNumberGenerator
from jomla.domain.service.pricing import compute_totals

logger = logging.getLogger(__name__)

ESTIMATED_DELIVERY_WINDOW = timedelta(hours=2)
DEFAULT_PICKUP_LOCATION = "Main Store Location"


class CreateOrderHandler:

    def __init__(
        self,
        cart_repo: CartRepository,
        order_repo: OrderRepository,
        user_repo: UserRepository,
        validator: CartValidator,
        order_numbers: OrderNumberGenerator,
        pickup_location: str = DEFAULT_PICKUP_LOCATION,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._cart_repo = cart_repo
        self._order_repo = order_repo
        self._user_repo = user_repo
        self._validator = validator
        self._order_numbers = order_numbers
        self._pickup_location = pickup_location
        self._clock = clock

    @callable_boundary("caller", message="Failed to create order. Please try again.")
    def handle(self, caller: Caller | None, request: CreateOrderRequest) -> CreateOrderResult:
        now = self._clock()

        # 1. Authentication and ownership
        caller = require_caller(caller, "User must be logged in to place an order.")
        user_id = caller.uid
        if not request.cart_id or request.cart_id != user_id:
            raise ValidationError("Invalid cart ID.")

        # 2. Fulfilment details
        method = self._parse_method(request.fulfillment_method)
        delivery = pickup = None
        if method == FulfillmentMethod.DELIVERY:
            delivery = self._delivery_details(request.delivery_details)
        else:
            pickup = self._pickup_details(request.pickup_details, now)

        # 3. Cart
        cart = self._cart_repo.get(user_id)
        if cart is None:
            raise EntityNotFoundError("Cart not found.")
        if cart.is_empty:
            raise FailedPreconditionError("Cart is empty.")

        # 4. Authoritative re-validation
        validation = self._validator.validate_cart(cart, now)
        if not validation.is_valid:
            logger.info(
                "Rejected checkout for user %s: %d invalid line(s)",
                user_id,
                len(validation.errors),
            )
            raise FailedPreconditionError(f"Cart validation failed: {validation.summary}")

        # 5. Customer
        user = self._user_repo.get_by_id(user_id)
        if user is None:
            raise EntityNotFoundError("User not found.")

        # 6. Totals, trusting the just-validated cart aggregates
        totals = compute_totals(cart.subtotal, cart.total_savings, method)

        # 7. Order number (consumed even if step 8 fails)
        order_number = self._order_numbers.generate()

        # 8. Order + cleared cart, all-or-nothing
        order = Order.place(
            order_number=order_number,
            customer=Customer(
                user_id=user_id,
                name=user.full_name,
                email=user.email,
                phone=user.phone_number,
            ),
            offers=self._offer_lines(cart),
            products=self._product_lines(cart),
            totals=totals,
            fulfillment_method=method,
            delivery_details=delivery,
            pickup_details=pickup,
            now=now,
        )
        cleared = copy.deepcopy(cart)
        cleared.clear()
        order_id = self._order_repo.place(order, cleared)
        logger.info(
            "Created order %s (%s) for user %s, total %s",
            order_id,
            order_number,
            user_id,
            order.total,
        )

        # 9. Result
        return CreateOrderResult(
            order_id=order_id,
            order_number=order_number,
            total=order.total.cents,
            estimated_delivery=(
                now + ESTIMATED_DELIVERY_WINDOW
                if method == FulfillmentMethod.DELIVERY
                else None
            ),
        )

    # --- Request parsing ------------------------------------------------------

    @staticmethod
    def _parse_method(raw: str | None) -> FulfillmentMethod:
        try:
            return FulfillmentMethod(raw)
        except ValueError:
            raise ValidationError("Invalid fulfillment method.") from None

    @staticmethod
    def _delivery_details(details: DeliveryDetailsInput | None) -> DeliveryDetails:
        if details is None:
            raise ValidationError("Delivery details are required for delivery orders.")
        return DeliveryDetails(
            address=details.address or "",
            city=details.city or "",
            postal_code=details.postal_code or "",
            notes=details.notes or "",
        )

    def _pickup_details(self, details: PickupDetailsInput | None, now: datetime) -> PickupDetails:
        if details is None or details.pickup_time is None:
            raise ValidationError("Pickup time is required for pickup orders.")
        pickup_time = details.pickup_time
        if pickup_time.tzinfo is None:  # naive times are UTC
            pickup_time = pickup_time.replace(tzinfo=timezone.utc)
        if pickup_time <= now:
            raise ValidationError("Pickup time must be in the future.")
        return PickupDetails(
            pickup_time=pickup_time,
            pickup_location=self._pickup_location,
        )

    # --- Snapshot -------------------------------------------------------------

    @staticmethod
    def _offer_lines(cart: Cart) -> list[OrderOfferLine]:
        return [
            OrderOfferLine(
                offer_id=line.offer_id,
                offer_name=line.offer_name,
                quantity=line.quantity,
                discounted_total=line.discounted_total,
                original_total=line.original_total,
                products=line.products,
            )
            for line in cart.offers
        ]

    @staticmethod
    def _product_lines(cart: Cart) -> list[OrderProductLine]:
        return [
            OrderProductLine(
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                price_per_unit=line.price_per_unit,
                total_price=line.total_price,
            )
            for line in cart.products
        ]
