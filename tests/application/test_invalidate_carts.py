"""Tests for flagging carts when an offer they hold changes."""

import copy

import pytest

from jomla.application.invalidate_carts import InvalidateCartsOnOfferChangeHandler
from jomla.domain.model.events import ChangeType, OfferChange
from jomla.domain.model.offer import OfferStatus
from tests.builders import make_cart, make_offer, make_product
from tests.fakes import FakeCartRepository


def _setup(carts, batch_size=500):
    cart_repo = FakeCartRepository(carts)
    return InvalidateCartsOnOfferChangeHandler(cart_repo, batch_size=batch_size), cart_repo


def _deactivation():
    return OfferChange("o1", make_offer(), make_offer(status=OfferStatus.INACTIVE))


class TestInvalidateCarts:

    def test_flags_only_carts_holding_the_offer(self):
        handler, carts = _setup([
            make_cart("u1", offers=[(make_offer(), 1)]),
            make_cart("u2", offers=[(make_offer("o2"), 1)]),
            make_cart("u3", products=[(make_product(), 1)]),
        ])

        summary = handler.handle(_deactivation())

        assert summary.change_type == ChangeType.DEACTIVATED
        assert summary.carts_checked == 3
        assert summary.affected_carts == 1
        assert carts.get("u1").invalid_offer_ids == ["o1"]
        assert not carts.get("u2").has_invalid_items
        assert not carts.get("u3").has_invalid_items

    def test_running_twice_does_not_duplicate_ids(self):
        handler, carts = _setup([make_cart("u1", offers=[(make_offer(), 1)])])
        handler.handle(_deactivation())
        handler.handle(_deactivation())
        assert carts.get("u1").invalid_offer_ids == ["o1"]

    def test_deletion_flags_carts(self):
        handler, carts = _setup([make_cart("u1", offers=[(make_offer(), 1)])])
        summary = handler.handle(OfferChange("o1", make_offer(), None))
        assert summary.change_type == ChangeType.DELETED
        assert carts.get("u1").has_invalid_items

    def test_description_edit_leaves_carts_alone(self):
        handler, carts = _setup([make_cart("u1", offers=[(make_offer(), 1)])])
        before = make_offer()
        after = copy.deepcopy(before)
        after.description = "New copy"

        summary = handler.handle(OfferChange("o1", before, after))

        assert summary.change_type == ChangeType.MINOR_UPDATE
        assert summary.affected_carts == 0
        assert carts.batch_sizes == []
        assert not carts.get("u1").has_invalid_items

    def test_writes_in_bounded_batches(self):
        handler, carts = _setup(
            [make_cart(f"u{i}", offers=[(make_offer(), 1)]) for i in range(7)],
            batch_size=3,
        )
        summary = handler.handle(_deactivation())
        assert carts.batch_sizes == [3, 3, 1]
        assert summary.batches == 3
        assert summary.affected_carts == 7

    def test_store_failure_is_swallowed(self, monkeypatch):
        handler, carts = _setup([make_cart("u1", offers=[(make_offer(), 1)])])

        def boom(_):
            raise RuntimeError("store offline")

        monkeypatch.setattr(carts, "save_batch", boom)
        assert handler.handle(_deactivation()) is None

    @pytest.mark.parametrize("size", [0, 501])
    def test_batch_size_bounds(self, size):
        with pytest.raises(ValueError):
            InvalidateCartsOnOfferChangeHandler(FakeCartRepository(), batch_size=size)
