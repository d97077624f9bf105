"""Tests for the JSON document store and its repositories."""

import json
import threading
from datetime import timezone

import pytest

from jomla.domain.model.notification import DeliveryStatus, NotificationRecord, NotificationType
from jomla.domain.model.offer import OfferStatus
from jomla.domain.model.order import OrderStatus
from jomla.domain.model.user import AdminPermissions, AdminRole, AdminUser
from jomla.domain.model.value_objects import Money
from jomla.domain.service.cart_validator import CartValidator, OfferLineCheck
from jomla.infrastructure.persistence.json_cart_repository import JsonCartRepository
from jomla.infrastructure.persistence.json_catalog_repository import (
    JsonOfferRepository,
    JsonProductRepository,
)
from jomla.infrastructure.persistence.json_order_repository import (
    JsonCounterRepository,
    JsonOrderRepository,
)
from jomla.infrastructure.persistence.json_store import CorruptDocumentError, JsonDocumentStore
from jomla.infrastructure.persistence.json_user_repository import (
    JsonAdminUserRepository,
    JsonNotificationRepository,
    JsonUserRepository,
)
from tests.builders import NOW, later, make_cart, make_offer, make_order, make_product, make_user


@pytest.fixture
def store(tmp_path):
    return JsonDocumentStore(tmp_path / "jomla.json")


# --- Store ----------------------------------------------------------------------


class TestJsonDocumentStore:

    def test_missing_file_reads_empty(self, store):
        assert store.collection("products") == {}
        assert store.document("products", "p1") is None

    def test_write_is_persisted(self, store, tmp_path):
        with store.transaction() as data:
            data.setdefault("products", {})["p1"] = {"name": "Milk"}

        on_disk = json.loads((tmp_path / "jomla.json").read_text())
        assert on_disk == {"products": {"p1": {"name": "Milk"}}}
        assert JsonDocumentStore(tmp_path / "jomla.json").document("products", "p1") == {"name": "Milk"}

    def test_exception_discards_writes(self, store):
        with store.transaction() as data:
            data["products"] = {"p1": {"name": "Milk"}}

        with pytest.raises(RuntimeError):
            with store.transaction() as data:
                data["products"]["p2"] = {"name": "Bread"}
                raise RuntimeError("abort")

        assert set(store.collection("products")) == {"p1"}

    def test_nested_transactions_commit_once(self, store):
        with store.transaction() as outer:
            outer["a"] = {"x": {"v": 1}}
            with store.transaction() as inner:
                assert inner is outer
                inner["b"] = {"y": {"v": 2}}
        assert store.document("b", "y") == {"v": 2}

    def test_reads_return_copies(self, store):
        with store.transaction() as data:
            data["products"] = {"p1": {"name": "Milk"}}
        store.document("products", "p1")["name"] = "Changed"
        assert store.document("products", "p1") == {"name": "Milk"}


class TestCounters:

    def test_sequential(self, store):
        counters = JsonCounterRepository(store)
        assert [counters.increment("orders-20250314", "20250314") for _ in range(3)] == [1, 2, 3]
        assert counters.increment("orders-20250315", "20250315") == 1

    def test_concurrent_increments_are_unique_without_gaps(self, tmp_path):
        path = tmp_path / "jomla.json"
        results: list[int] = []
        lock = threading.Lock()

        def worker():
            # each thread opens its own store, like separate processes would
            counters = JsonCounterRepository(JsonDocumentStore(path))
            for _ in range(10):
                value = counters.increment("orders-20250314", "20250314")
                with lock:
                    results.append(value)

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == list(range(1, 51))


# --- Repositories -----------------------------------------------------------------


class TestCatalogRepositories:

    def test_product_round_trip(self, store):
        repo = JsonProductRepository(store)
        repo.save(make_product(tags=frozenset({"dairy"}), in_stock=False, max_quantity=4))

        loaded = repo.get_by_id("p1")
        assert loaded.base_price == Money(300)
        assert loaded.tags == frozenset({"dairy"})
        assert not loaded.in_stock
        assert loaded.limits.maximum == 4

    def test_offer_round_trip_and_delete(self, store):
        repo = JsonOfferRepository(store)
        repo.save(make_offer(valid_until=later(days=3)))

        loaded = repo.get_by_id("o1")
        assert loaded.status == OfferStatus.ACTIVE
        assert loaded.discounted_total == Money(500)
        assert loaded.valid_until == later(days=3)
        assert len(loaded.items) == 2

        repo.delete("o1")
        assert repo.get_by_id("o1") is None

    def test_generated_ids_are_unique(self, store):
        repo = JsonProductRepository(store)
        assert repo.next_id() != repo.next_id()

    def test_corrupt_document_is_rejected(self, store):
        with store.transaction() as data:
            data["offers"] = {"o1": {"name": "Broken", "items": []}}
        with pytest.raises(CorruptDocumentError) as excinfo:
            JsonOfferRepository(store).get_by_id("o1")
        assert excinfo.value.details["doc_id"] == "o1"
        assert "Broken" not in excinfo.value.message
        assert "offers/o1" not in excinfo.value.message

    def test_timestamps_without_offset_are_read_as_utc(self, store):
        offers = JsonOfferRepository(store)
        offers.save(make_offer(valid_until=later(days=3)))
        with store.transaction() as data:
            data["offers"]["o1"]["valid_until"] = "2099-01-01T00:00:00"

        loaded = offers.get_by_id("o1")
        assert loaded.valid_until.tzinfo == timezone.utc

        validator = CartValidator(offers, JsonProductRepository(store))
        assert validator.validate([OfferLineCheck("o1", 1)], [], NOW).is_valid


class TestCartAndOrderRepositories:

    def test_cart_round_trip_keeps_flags(self, store):
        repo = JsonCartRepository(store)
        cart = make_cart(offers=[(make_offer(), 2)], products=[(make_product(), 1)])
        cart.mark_offer_invalid("o1")
        repo.save(cart)

        loaded = repo.get("u1")
        assert loaded.subtotal == Money(1300)
        assert loaded.invalid_offer_ids == ["o1"]
        assert loaded.offers[0].products[0].discounted_price == Money(200)

    def test_save_batch(self, store):
        repo = JsonCartRepository(store)
        repo.save_batch([make_cart("u1"), make_cart("u2")])
        assert {c.user_id for c in repo.list_all()} == {"u1", "u2"}

    def test_place_writes_order_and_cart_together(self, store):
        carts = JsonCartRepository(store)
        carts.save(make_cart(offers=[(make_offer(), 1)]))
        orders = JsonOrderRepository(store)
        order = make_order(order_id=None)

        order_id = orders.place(order, make_cart())

        assert order.id == order_id
        assert orders.get_by_id(order_id).order_number == "ORD-20250314-0001"
        assert carts.get("u1").is_empty

    def test_order_round_trip(self, store):
        orders = JsonOrderRepository(store)
        order = make_order()
        order.transition_to(OrderStatus.CONFIRMED, updated_by="admin-1", now=NOW)
        order.attach_invoice("https://files.test/invoice.pdf")
        orders.save(order)

        loaded = orders.get_by_id("order-1")
        assert loaded.status == OrderStatus.CONFIRMED
        assert loaded.status_history[-1].updated_by == "admin-1"
        assert loaded.total == Money(989)
        assert loaded.delivery_details.postal_code == "12345"
        assert loaded.invoice_url == "https://files.test/invoice.pdf"
        assert orders.list_by_user("u1")[0].id == "order-1"


class TestUserRepositories:

    def test_user_lookup_by_phone_and_expired_codes(self, store):
        repo = JsonUserRepository(store)
        repo.save(make_user("u1", "+12025550101", verification_code_expiry=later(minutes=-1),
                            verification_code_hash="s$h"))
        repo.save(make_user("u2", "+12025550102", fcm_tokens=["tok"]))

        assert repo.get_by_phone("+12025550102").fcm_tokens == ["tok"]
        assert [u.id for u in repo.list_with_expired_codes(NOW, 10)] == ["u1"]

    def test_admin_round_trip(self, store):
        repo = JsonAdminUserRepository(store)
        repo.save(AdminUser(
            uid="a1",
            email="a@example.com",
            first_name="Grace",
            last_name="Hopper",
            role=AdminRole.ADMIN,
            permissions=AdminPermissions.for_role(AdminRole.ADMIN),
        ))
        loaded = repo.get_by_uid("a1")
        assert loaded.role == AdminRole.ADMIN
        assert not loaded.permissions.manage_admins

    def test_notification_log(self, store):
        repo = JsonNotificationRepository(store)
        record_id = repo.add(NotificationRecord(
            type=NotificationType.NEW_OFFER,
            title="New Offer Available!",
            body="Bundle - Save 29%",
            target_type="topic",
            target="all-users",
            delivery_status=DeliveryStatus.SENT,
            message_ids=["m1"],
        ))
        [record] = repo.list_all()
        assert record.id == record_id
        assert record.delivery_status == DeliveryStatus.SENT
