"""Unit tests for the Offer aggregate."""

import pytest

from jomla.domain.exceptions import ValidationError
from jomla.domain.model.offer import Offer, OfferLineItem, OfferStatus
from jomla.domain.model.value_objects import Money
from tests.builders import NOW, later, make_offer


class TestOfferTotals:

    def test_create_derives_totals(self):
        offer = make_offer(prices=((300, 200), (400, 300)))
        assert offer.original_total == Money(700)
        assert offer.discounted_total == Money(500)
        assert offer.total_savings == Money(200)

    def test_savings_percentage_rounds(self):
        offer = make_offer(prices=((300, 200),))
        assert offer.savings_percentage == 33

    def test_mismatched_totals_rejected(self):
        item = OfferLineItem("p1", "Milk", Money(300), Money(200))
        with pytest.raises(ValidationError, match="does not match"):
            Offer(
                id="o1",
                name="Bundle",
                items=(item,),
                original_total=Money(300),
                discounted_total=Money(150),
            )

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError, match="at least one product"):
            Offer.create(id="o1", name="Empty", items=[])

    def test_discount_above_base_rejected(self):
        with pytest.raises(ValidationError, match="exceeds its base price"):
            OfferLineItem("p1", "Milk", Money(300), Money(400))

    def test_window_must_not_be_inverted(self):
        with pytest.raises(ValidationError, match="ends before it starts"):
            make_offer(valid_from=later(days=2), valid_until=later(days=1))


class TestOfferState:

    def test_publish_activates(self):
        offer = make_offer(status=OfferStatus.DRAFT)
        offer.publish(NOW)
        assert offer.is_active
        assert offer.published_at == NOW

    def test_set_status_active_publishes(self):
        offer = make_offer(status=OfferStatus.INACTIVE)
        offer.set_status(OfferStatus.ACTIVE, NOW)
        assert offer.published_at == NOW

    def test_set_status_inactive(self):
        offer = make_offer()
        offer.set_status(OfferStatus.INACTIVE, NOW)
        assert not offer.is_active

    def test_validity_window(self):
        offer = make_offer(valid_from=later(days=1), valid_until=later(days=3))
        assert offer.not_yet_valid(NOW)
        assert not offer.expired(later(days=2))
        assert offer.expired(later(days=4))
