"""Order aggregate: an immutable, priced snapshot taken at checkout.

Item snapshots and totals are fixed when the order is placed; only the
fulfilment status (and the invoice link) change afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from jomla.domain.exceptions import FailedPreconditionError, ValidationError
from jomla.domain.model.offer import OfferLineItem
from jomla.domain.model.value_objects import Money


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    READY_FOR_PICKUP = "ready_for_pickup"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FulfillmentMethod(Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset(
        {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.READY_FOR_PICKUP, OrderStatus.CANCELLED}
    ),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.READY_FOR_PICKUP: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class OrderOfferLine:
    offer_id: str
    offer_name: str
    quantity: int
    discounted_total: Money
    original_total: Money
    products: tuple[OfferLineItem, ...] = ()  # full breakdown for the invoice


@dataclass(frozen=True)
class OrderProductLine:
    product_id: str
    product_name: str
    quantity: int
    price_per_unit: Money
    total_price: Money


@dataclass(frozen=True)
class DeliveryDetails:
    address: str
    city: str
    postal_code: str
    notes: str = ""

    def __post_init__(self) -> None:
        if not (self.address or "").strip() or not (self.city or "").strip() \
                or not (self.postal_code or "").strip():
            raise ValidationError("Delivery details are required for delivery orders.")


@dataclass(frozen=True)
class PickupDetails:
    pickup_time: datetime
    pickup_location: str


@dataclass(frozen=True)
class StatusHistoryEntry:
    status: OrderStatus
    timestamp: datetime
    updated_by: str | None = None


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Money
    total_savings: Money
    delivery_fee: Money
    tax: Money

    @property
    def total(self) -> Money:
        return self.subtotal + self.delivery_fee + self.tax


@dataclass(frozen=True)
class Customer:
    user_id: str
    name: str
    email: str | None
    phone: str | None


@dataclass
class Order:
    """Aggregate root for placed orders.

    Use ``Order.place()`` for new orders; ``__init__`` is kept simple so
    the repository can reconstitute persisted orders.
    """

    id: str | None
    order_number: str
    customer: Customer
    offers: tuple[OrderOfferLine, ...]
    products: tuple[OrderProductLine, ...]
    totals: OrderTotals
    fulfillment_method: FulfillmentMethod
    delivery_details: DeliveryDetails | None = None
    pickup_details: PickupDetails | None = None
    status: OrderStatus = OrderStatus.PENDING
    status_history: list[StatusHistoryEntry] = field(default_factory=list)
    invoice_url: str | None = None
    invoice_generation_failed: bool = False
    invoice_generation_error: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def place(
        order_number: str,
        customer: Customer,
        offers: list[OrderOfferLine],
        products: list[OrderProductLine],
        totals: OrderTotals,
        fulfillment_method: FulfillmentMethod,
        delivery_details: DeliveryDetails | None = None,
        pickup_details: PickupDetails | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Create a new ``pending`` order with a one-entry status history."""
        if not offers and not products:
            raise FailedPreconditionError("Cart is empty.")
        if fulfillment_method == FulfillmentMethod.DELIVERY and delivery_details is None:
            raise ValidationError("Delivery details are required for delivery orders.")
        if fulfillment_method == FulfillmentMethod.PICKUP and pickup_details is None:
            raise ValidationError("Pickup time is required for pickup orders.")

        now = now or datetime.now(timezone.utc)
        return Order(
            id=None,
            order_number=order_number,
            customer=customer,
            offers=tuple(offers),
            products=tuple(products),
            totals=totals,
            fulfillment_method=fulfillment_method,
            delivery_details=delivery_details,
            pickup_details=pickup_details,
            status=OrderStatus.PENDING,
            status_history=[StatusHistoryEntry(OrderStatus.PENDING, now)],
            created_at=now,
            updated_at=now,
        )

    # --- State transitions ----------------------------------------------------

    def transition_to(
        self,
        new_status: OrderStatus,
        updated_by: str | None = None,
        now: datetime | None = None,
    ) -> None:
        if new_status not in _TRANSITIONS[self.status]:
            raise FailedPreconditionError(
                f"Cannot move order {self.order_number} from "
                f"{self.status.value} to {new_status.value}"
            )
        if new_status == OrderStatus.OUT_FOR_DELIVERY \
                and self.fulfillment_method != FulfillmentMethod.DELIVERY:
            raise FailedPreconditionError("Only delivery orders can go out for delivery")
        if new_status == OrderStatus.READY_FOR_PICKUP \
                and self.fulfillment_method != FulfillmentMethod.PICKUP:
            raise FailedPreconditionError("Only pickup orders can be ready for pickup")

        now = now or datetime.now(timezone.utc)
        self.status = new_status
        self.status_history.append(StatusHistoryEntry(new_status, now, updated_by))
        if new_status == OrderStatus.COMPLETED:
            self.completed_at = now
        self.updated_at = now

    def attach_invoice(self, url: str) -> None:
        self.invoice_url = url
        self.invoice_generation_failed = False
        self.invoice_generation_error = None
        self.updated_at = datetime.now(timezone.utc)

    def mark_invoice_failed(self, message: str) -> None:
        self.invoice_generation_failed = True
        self.invoice_generation_error = message
        self.updated_at = datetime.now(timezone.utc)

    # --- Computed properties --------------------------------------------------

    @property
    def total(self) -> Money:
        return self.totals.total
