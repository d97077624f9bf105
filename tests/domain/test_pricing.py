"""Unit tests for delivery fee and tax rules."""

from jomla.domain.model.order import FulfillmentMethod
from jomla.domain.model.value_objects import Money
from jomla.domain.service.order_number_generator import OrderNumberGenerator
from jomla.domain.service.pricing import compute_totals, delivery_fee
from tests.builders import NOW
from tests.fakes import FakeCounterRepository


class TestDeliveryFee:

    def test_below_threshold(self):
        assert delivery_fee(Money(4999), FulfillmentMethod.DELIVERY) == Money(599)

    def test_at_threshold_is_free(self):
        assert delivery_fee(Money(5000), FulfillmentMethod.DELIVERY) == Money.zero()

    def test_pickup_is_free(self):
        assert delivery_fee(Money(100), FulfillmentMethod.PICKUP) == Money.zero()


class TestComputeTotals:

    def test_delivery_order(self):
        totals = compute_totals(Money(3000), Money(400), FulfillmentMethod.DELIVERY)
        assert totals.delivery_fee == Money(599)
        assert totals.tax == Money(360)  # 10% of 35.99, half-up
        assert totals.total == Money(3959)

    def test_pickup_order(self):
        totals = compute_totals(Money(1234), Money.zero(), FulfillmentMethod.PICKUP)
        assert totals.tax == Money(123)
        assert totals.total == Money(1357)

    def test_tax_rounds_half_up(self):
        totals = compute_totals(Money(1005), Money.zero(), FulfillmentMethod.PICKUP)
        assert totals.tax == Money(101)  # 100.5 rounds up
        assert totals.total == Money(1106)

    def test_savings_carried_through(self):
        totals = compute_totals(Money(6000), Money(900), FulfillmentMethod.DELIVERY)
        assert totals.total_savings == Money(900)
        assert totals.total == Money(6600)


class TestOrderNumberGenerator:

    def test_sequences_per_day(self):
        counters = FakeCounterRepository()
        today = NOW.date()
        generator = OrderNumberGenerator(counters, today=lambda: today)

        assert generator.generate() == "ORD-20250314-0001"
        assert generator.generate() == "ORD-20250314-0002"
        assert counters.counters == {"orders-20250314": 2}
