"""Small factories for the entities most tests need."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jomla.domain.model.cart import Cart
from jomla.domain.model.offer import Offer, OfferLineItem, OfferStatus
from jomla.domain.model.order import (
    Customer,
    DeliveryDetails,
    FulfillmentMethod,
    Order,
    OrderProductLine,
    OrderTotals,
    PickupDetails,
)
from jomla.domain.model.product import Product
from jomla.domain.model.user import User
from jomla.domain.model.value_objects import Money, QuantityLimits

NOW = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


def make_product(
    product_id: str = "p1",
    name: str = "Milk",
    price: int = 300,
    max_quantity: int = 999,
    **kwargs,
) -> Product:
    return Product(
        id=product_id,
        name=name,
        base_price=Money(price),
        limits=QuantityLimits(1, max_quantity),
        **kwargs,
    )


def make_offer(
    offer_id: str = "o1",
    name: str = "Breakfast Bundle",
    prices: tuple[tuple[int, int], ...] = ((300, 200), (400, 300)),
    status: OfferStatus = OfferStatus.ACTIVE,
    max_quantity: int = 10,
    **kwargs,
) -> Offer:
    """Offer whose line items are ``(base, discounted)`` cent pairs."""
    items = [
        OfferLineItem(
            product_id=f"{offer_id}-p{i}",
            product_name=f"Item {i}",
            base_price=Money(base),
            discounted_price=Money(discounted),
        )
        for i, (base, discounted) in enumerate(prices, start=1)
    ]
    return Offer.create(
        id=offer_id,
        name=name,
        items=items,
        status=status,
        limits=QuantityLimits(1, max_quantity),
        **kwargs,
    )


def make_cart(user_id: str = "u1", offers: list[tuple[Offer, int]] = (), products: list[tuple[Product, int]] = ()) -> Cart:
    cart = Cart(user_id=user_id)
    for offer, qty in offers:
        cart.add_offer(offer, qty)
    for product, qty in products:
        cart.add_product(product, qty)
    return cart


def make_user(user_id: str = "u1", phone: str = "+12025550100", **kwargs) -> User:
    kwargs.setdefault("first_name", "Ada")
    kwargs.setdefault("last_name", "Lovelace")
    return User(id=user_id, phone_number=phone, **kwargs)


def later(minutes: int = 0, hours: int = 0, days: int = 0) -> datetime:
    return NOW + timedelta(minutes=minutes, hours=hours, days=days)


def make_order(order_id: str = "order-1", method: FulfillmentMethod = FulfillmentMethod.DELIVERY) -> Order:
    """A placed one-line order: $3.00 milk, $5.99 fee, $0.90 tax."""
    order = Order.place(
        order_number="ORD-20250314-0001",
        customer=Customer("u1", "Ada Lovelace", None, "+12025550100"),
        offers=[],
        products=[OrderProductLine("p1", "Milk", 1, Money(300), Money(300))],
        totals=OrderTotals(Money(300), Money.zero(), Money(599), Money(90)),
        fulfillment_method=method,
        delivery_details=DeliveryDetails("1 Main St", "Springfield", "12345"),
        pickup_details=PickupDetails(later(hours=3), "Main Store Location"),
        now=NOW,
    )
    order.id = order_id
    return order
