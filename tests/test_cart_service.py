import threading

import pytest

from aurora.core.config import settings
from aurora.core.exceptions import NotFoundError, SoftFailure
from aurora.db.catalog import CatalogStore
from aurora.models.product import Product
from aurora.services.cart import CartService, coerce_quantity, parse_int


def assert_total_matches(view, session):
    assert view.total == pytest.approx(sum(line.price * line.quantity for line in session.cart))
    assert view.count == sum(line.quantity for line in session.cart)


class TestQuantityParsing:
    @pytest.mark.parametrize("value,expected", [
        (3, 3),
        ("4", 4),
        (" 2 pcs", 2),
        (2.9, 2),
        ("-3", -3),
        ("+5", 5),
    ])
    def test_parse_int(self, value, expected):
        assert parse_int(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", [], {}, True, float("nan")])
    def test_parse_int_rejects(self, value):
        assert parse_int(value) is None

    @pytest.mark.parametrize("value", [None, "abc", 0, -2, "0"])
    def test_bad_quantities_default_to_one(self, value):
        assert coerce_quantity(value) == 1


class TestAddItem:
    def test_worked_example(self, cart_service, session):
        view = cart_service.add_item(session, "AUR-001", "Black", "M", 2)
        assert view.total == pytest.approx(79.98)
        assert view.count == 2

        view = cart_service.update_quantity(session, "AUR-001", "Black", "M", -2)
        assert session.cart == []
        assert view.total == 0
        assert view.count == 0

    def test_identical_keys_merge(self, cart_service, session):
        for quantity in (1, 2, 3):
            cart_service.add_item(session, "AUR-001", "Black", "M", quantity)
        assert len(session.cart) == 1
        assert session.cart[0].quantity == 6

    def test_variants_are_distinct_lines(self, cart_service, session):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        cart_service.add_item(session, "AUR-001", "Black", "L", 1)
        cart_service.add_item(session, "AUR-001", "White", "M", 1)
        cart_service.add_item(session, "AUR-001", None, None, 1)
        assert len(session.cart) == 4
        assert len({line.key for line in session.cart}) == 4

    def test_line_denormalises_product(self, cart_service, session):
        cart_service.add_item(session, "AUR-002", "Black", "28")
        line = session.cart[0]
        assert line.product_name == "High-Waisted Slim Fit Jeans"
        assert line.product_category == "Denim"
        assert line.brand == "Aurora Apparel"
        assert line.price == 89.99
        assert line.quantity == 1

    def test_unknown_product(self, cart_service, session):
        with pytest.raises(NotFoundError):
            cart_service.add_item(session, "NOPE-1", "Black", "M", 1)
        assert session.cart == []

    def test_malformed_quantity_adds_one(self, cart_service, session):
        cart_service.add_item(session, "AUR-001", "Black", "M", "lots")
        cart_service.add_item(session, "AUR-001", "Black", "M", -5)
        assert session.cart[0].quantity == 2

    def test_total_tracks_every_mutation(self, cart_service, session):
        assert_total_matches(cart_service.add_item(session, "AUR-001", "Black", "M", 3), session)
        assert_total_matches(cart_service.add_item(session, "AUR-033", "Black", "S", 1), session)
        assert_total_matches(cart_service.update_quantity(session, "AUR-001", "Black", "M", -1), session)
        assert_total_matches(cart_service.remove_item(session, "AUR-033", "Black", "S"), session)
        assert cart_service.get_cart(session).total == pytest.approx(79.98)


class TestUpdateQuantity:
    def test_increment(self, cart_service, session):
        cart_service.add_item(session, "AUR-003", "Cream", "S", 1)
        view = cart_service.update_quantity(session, "AUR-003", "Cream", "S", 4)
        assert session.cart[0].quantity == 5
        assert view.total == pytest.approx(69.99 * 5)

    def test_overshoot_removes_line(self, cart_service, session):
        cart_service.add_item(session, "AUR-003", "Cream", "S", 2)
        cart_service.add_item(session, "AUR-004", "Burgundy", "M", 1)
        view = cart_service.update_quantity(session, "AUR-003", "Cream", "S", -10)
        assert [line.product_id for line in session.cart] == ["AUR-004"]
        assert view.total == pytest.approx(119.99)

    def test_missing_line_is_soft_failure(self, cart_service, session):
        cart_service.add_item(session, "AUR-003", "Cream", "S", 1)
        with pytest.raises(SoftFailure):
            cart_service.update_quantity(session, "AUR-003", "Cream", "XL", 1)
        assert session.cart[0].quantity == 1


class TestRemoveItem:
    def test_remove_is_idempotent(self, cart_service, session):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        cart_service.add_item(session, "AUR-002", "Black", "30", 1)
        once = cart_service.remove_item(session, "AUR-001", "Black", "M").as_payload()
        twice = cart_service.remove_item(session, "AUR-001", "Black", "M").as_payload()
        assert once == twice
        assert [line.product_id for line in session.cart] == ["AUR-002"]

    def test_remove_only_matching_variant(self, cart_service, session):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        cart_service.add_item(session, "AUR-001", "Black", "L", 1)
        cart_service.remove_item(session, "AUR-001", "Black", "L")
        assert [line.key for line in session.cart] == [("AUR-001", "Black", "M")]


class TestGetCart:
    def test_enriches_with_catalog_image(self, cart_service, catalog, session):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        payload = cart_service.get_cart(session).as_payload()[0]
        assert payload["image"] == catalog.get("AUR-001").image
        assert payload["name"] == "Premium Cotton Crew Neck Tee"

    def test_placeholder_for_retired_product(self, cart_service, catalog, session):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        shrunk = CartService(CatalogStore([
            Product(**catalog.get("AUR-002").model_dump())
        ]))
        payload = shrunk.get_cart(session).as_payload()[0]
        assert payload["image"] == settings.PLACEHOLDER_IMAGE
        assert payload["name"] == "Premium Cotton Crew Neck Tee"

    def test_read_does_not_mutate(self, cart_service, session):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        before = [line.model_dump() for line in session.cart]
        cart_service.get_cart(session)
        assert [line.model_dump() for line in session.cart] == before


class TestSync:
    def test_restores_empty_cart(self, cart_service, session):
        view = cart_service.sync(session, [
            {"product_id": "AUR-001", "color": "Black", "size": "M", "quantity": 2},
            {"product_id": "AUR-001", "color": "Black", "size": "M", "quantity": 1},
            {"product_id": "NOPE-1", "color": None, "size": None, "quantity": 1},
            {"product_id": "AUR-002", "color": None, "size": None, "quantity": 0},
        ])
        assert len(session.cart) == 1
        assert session.cart[0].quantity == 3
        assert view.count == 3

    def test_server_cart_wins(self, cart_service, session):
        cart_service.add_item(session, "AUR-005", "Camel", "S", 1)
        cart_service.sync(session, [{"product_id": "AUR-001", "color": None, "size": None, "quantity": 4}])
        assert [line.product_id for line in session.cart] == ["AUR-005"]

    def test_clear(self, cart_service, session):
        cart_service.add_item(session, "AUR-005", "Camel", "S", 1)
        cart_service.clear(session)
        assert cart_service.get_cart(session).count == 0


class TestCartSnapshots:
    def test_view_is_not_changed_by_later_adds(self, cart_service, session):
        view = cart_service.add_item(session, "AUR-001", "Black", "M", 2)
        cart_service.add_item(session, "AUR-001", "Black", "M", 3)
        assert view.as_payload()[0]["quantity"] == view.count == 2
        assert view.total == pytest.approx(79.98)

    def test_view_is_not_changed_by_removal(self, cart_service, session):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        view = cart_service.get_cart(session)
        cart_service.remove_item(session, "AUR-001", "Black", "M")
        assert [line["productId"] for line in view.as_payload()] == ["AUR-001"]

    def test_concurrent_adds_are_serialised(self, cart_service, session):
        workers = 8
        barrier = threading.Barrier(workers)
        views = []

        def add_one():
            barrier.wait()
            views.append(cart_service.add_item(session, "AUR-001", "Black", "M", 1))

        threads = [threading.Thread(target=add_one) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(session.cart) == 1
        assert session.cart[0].quantity == workers
        assert sorted(view.count for view in views) == list(range(1, workers + 1))
        for view in views:
            assert view.as_payload()[0]["quantity"] == view.count
            assert view.total == pytest.approx(39.99 * view.count)
