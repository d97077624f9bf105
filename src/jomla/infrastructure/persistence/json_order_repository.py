"""JSON-document implementations of OrderRepository and CounterRepository."""

from __future__ import annotations

from datetime import datetime, timezone

from jomla.domain.model.cart import Cart
from jomla.domain.model.order import (
    Customer,
    DeliveryDetails,
    FulfillmentMethod,
    Order,
    OrderOfferLine,
    OrderProductLine,
    OrderStatus,
    OrderTotals,
    PickupDetails,
    StatusHistoryEntry,
)
from jomla.domain.model.value_objects import Money
from jomla.domain.repository.counter_repository import CounterRepository
from jomla.domain.repository.order_repository import OrderRepository
from jomla.infrastructure.persistence.json_cart_repository import JsonCartRepository
from jomla.infrastructure.persistence.json_repository import (
    JsonRepository,
    dt_from_raw,
    dt_to_raw,
    line_items_from_raw,
    line_items_to_raw,
)


class JsonOrderRepository(JsonRepository, OrderRepository):
    collection = "orders"

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: str) -> Order | None:
        return self._get(order_id, self._to_domain)

    def list_by_user(self, user_id: str) -> list[Order]:
        orders = [o for o in self._all(self._to_domain) if o.customer.user_id == user_id]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def save(self, order: Order) -> None:
        if order.id is None:
            order.id = self.new_id()
        self._put(order.id, self._to_raw(order))

    def place(self, order: Order, cleared_cart: Cart) -> str:
        order_id = order.id or self.new_id()
        with self._store.transaction() as data:
            data.setdefault(self.collection, {})[order_id] = self._to_raw(order)
            data.setdefault(JsonCartRepository.collection, {})[cleared_cart.user_id] = (
                JsonCartRepository.to_raw(cleared_cart)
            )
        order.id = order_id
        return order_id

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        delivery = order.delivery_details
        pickup = order.pickup_details
        return {
            "order_number": order.order_number,
            "user_id": order.customer.user_id,
            "customer_name": order.customer.name,
            "customer_email": order.customer.email,
            "customer_phone": order.customer.phone,
            "offers": [
                {
                    "offer_id": line.offer_id,
                    "offer_name": line.offer_name,
                    "quantity": line.quantity,
                    "discounted_total": line.discounted_total.cents,
                    "original_total": line.original_total.cents,
                    "products": line_items_to_raw(line.products),
                }
                for line in order.offers
            ],
            "products": [
                {
                    "product_id": line.product_id,
                    "product_name": line.product_name,
                    "quantity": line.quantity,
                    "price_per_unit": line.price_per_unit.cents,
                    "total_price": line.total_price.cents,
                }
                for line in order.products
            ],
            "subtotal": order.totals.subtotal.cents,
            "total_savings": order.totals.total_savings.cents,
            "delivery_fee": order.totals.delivery_fee.cents,
            "tax": order.totals.tax.cents,
            "total": order.total.cents,
            "fulfillment_method": order.fulfillment_method.value,
            "delivery_details": (
                {
                    "address": delivery.address,
                    "city": delivery.city,
                    "postal_code": delivery.postal_code,
                    "notes": delivery.notes,
                }
                if delivery
                else None
            ),
            "pickup_details": (
                {
                    "pickup_time": dt_to_raw(pickup.pickup_time),
                    "pickup_location": pickup.pickup_location,
                }
                if pickup
                else None
            ),
            "status": order.status.value,
            "status_history": [
                {
                    "status": entry.status.value,
                    "timestamp": dt_to_raw(entry.timestamp),
                    "updated_by": entry.updated_by,
                }
                for entry in order.status_history
            ],
            "invoice_url": order.invoice_url,
            "invoice_generation_failed": order.invoice_generation_failed,
            "invoice_generation_error": order.invoice_generation_error,
            "created_at": dt_to_raw(order.created_at),
            "updated_at": dt_to_raw(order.updated_at),
            "completed_at": dt_to_raw(order.completed_at),
        }

    @staticmethod
    def _to_domain(order_id: str, raw: dict) -> Order:
        totals = OrderTotals(
            subtotal=Money(raw["subtotal"]),
            total_savings=Money(raw["total_savings"]),
            delivery_fee=Money(raw["delivery_fee"]),
            tax=Money(raw["tax"]),
        )
        if totals.total.cents != raw["total"]:
            raise ValueError(f"total {raw['total']} != subtotal + delivery fee + tax")

        delivery = raw.get("delivery_details")
        pickup = raw.get("pickup_details")
        return Order(
            id=order_id,
            order_number=raw["order_number"],
            customer=Customer(
                user_id=raw["user_id"],
                name=raw.get("customer_name", ""),
                email=raw.get("customer_email"),
                phone=raw.get("customer_phone"),
            ),
            offers=tuple(
                OrderOfferLine(
                    offer_id=o["offer_id"],
                    offer_name=o["offer_name"],
                    quantity=o["quantity"],
                    discounted_total=Money(o["discounted_total"]),
                    original_total=Money(o["original_total"]),
                    products=line_items_from_raw(o.get("products", [])),
                )
                for o in raw.get("offers", [])
            ),
            products=tuple(
                OrderProductLine(
                    product_id=p["product_id"],
                    product_name=p["product_name"],
                    quantity=p["quantity"],
                    price_per_unit=Money(p["price_per_unit"]),
                    total_price=Money(p["total_price"]),
                )
                for p in raw.get("products", [])
            ),
            totals=totals,
            fulfillment_method=FulfillmentMethod(raw["fulfillment_method"]),
            delivery_details=DeliveryDetails(**delivery) if delivery else None,
            pickup_details=(
                PickupDetails(
                    pickup_time=dt_from_raw(pickup["pickup_time"]),
                    pickup_location=pickup["pickup_location"],
                )
                if pickup
                else None
            ),
            status=OrderStatus(raw["status"]),
            status_history=[
                StatusHistoryEntry(
                    status=OrderStatus(e["status"]),
                    timestamp=dt_from_raw(e["timestamp"]),
                    updated_by=e.get("updated_by"),
                )
                for e in raw.get("status_history", [])
            ],
            invoice_url=raw.get("invoice_url"),
            invoice_generation_failed=bool(raw.get("invoice_generation_failed", False)),
            invoice_generation_error=raw.get("invoice_generation_error"),
            created_at=dt_from_raw(raw["created_at"]),
            updated_at=dt_from_raw(raw["updated_at"]),
            completed_at=dt_from_raw(raw.get("completed_at")),
        )


class JsonCounterRepository(JsonRepository, CounterRepository):
    collection = "counters"

    def increment(self, counter_id: str, day_key: str) -> int:
        with self._store.transaction() as data:
            counters = data.setdefault(self.collection, {})
            count = counters.get(counter_id, {}).get("count", 0) + 1
            counters[counter_id] = {
                "count": count,
                "date": day_key,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }
        return count
