import re

import pytest
from pydantic import ValidationError

from aurora.core.exceptions import NotFoundError, SoftFailure
from aurora.models.order import BuyerDetails


@pytest.fixture
def buyer():
    return BuyerDetails(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        address="12 Analytical Way",
        city="London",
        state="LDN",
        zip="N1"
    )


class TestCheckout:
    def test_empty_cart_is_soft_failure(self, checkout_service, session, buyer):
        with pytest.raises(SoftFailure) as exc:
            checkout_service.checkout(session, buyer)
        assert exc.value.message == "Cart is empty"
        assert session.cart == []
        assert session.last_order is None

    def test_empty_cart_keeps_previous_order(self, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        first = checkout_service.checkout(session, buyer)
        with pytest.raises(SoftFailure):
            checkout_service.checkout(session, buyer)
        assert session.last_order is first

    def test_order_snapshots_cart(self, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 2)
        cart_service.add_item(session, "AUR-004", "Burgundy", "S", 1)
        before = cart_service.get_cart(session)

        order = checkout_service.checkout(session, buyer)

        assert re.match(r"^ORD-\d+-[0-9A-F]{9}$", order.id)
        assert order.revenue == before.total
        assert [(item.product_id, item.color, item.size, item.quantity, item.price) for item in order.items] == [
            (view.line.product_id, view.line.color, view.line.size, view.line.quantity, view.line.price)
            for view in before.lines
        ]
        assert order.items[0].name == "Premium Cotton Crew Neck Tee"
        assert order.session_id == session.session_id
        assert session.cart == []
        assert session.last_order is order

    def test_later_cart_activity_does_not_touch_order(self, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 2)
        order = checkout_service.checkout(session, buyer)
        cart_service.add_item(session, "AUR-001", "Black", "M", 5)
        assert order.items[0].quantity == 2
        assert order.revenue == pytest.approx(79.98)

    def test_created_at_is_utc_with_z_suffix(self, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        payload = checkout_service.checkout(session, buyer).as_payload()
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", payload["createdAt"])

    def test_order_is_frozen(self, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        order = checkout_service.checkout(session, buyer)
        with pytest.raises(ValidationError):
            order.revenue = 0
        with pytest.raises(ValidationError):
            order.items[0].quantity = 10

    def test_country_defaults(self, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        order = checkout_service.checkout(session, buyer)
        assert order.buyer.country == "USA"
        assert order.buyer.first_name == "Ada"

    def test_country_kept_when_given(self, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        order = checkout_service.checkout(session, buyer.model_copy(update={"country": "UK"}))
        assert order.buyer.country == "UK"

    def test_order_ids_are_unique(self, cart_service, checkout_service, session, buyer):
        ids = set()
        for _ in range(5):
            cart_service.add_item(session, "AUR-001", "Black", "M", 1)
            ids.add(checkout_service.checkout(session, buyer).id)
        assert len(ids) == 5


class TestGetOrder:
    def test_lookup_by_last_order_id(self, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        order = checkout_service.checkout(session, buyer)
        assert checkout_service.get_order(session, order.id) is order

    def test_other_ids_not_found(self, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        order = checkout_service.checkout(session, buyer)
        with pytest.raises(NotFoundError):
            checkout_service.get_order(session, order.id + "X")

    def test_newer_checkout_replaces_order(self, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        first = checkout_service.checkout(session, buyer)
        cart_service.add_item(session, "AUR-002", "Black", "28", 1)
        second = checkout_service.checkout(session, buyer)
        with pytest.raises(NotFoundError):
            checkout_service.get_order(session, first.id)
        assert checkout_service.get_order(session, second.id) is second

    def test_orders_not_visible_across_sessions(self, store, cart_service, checkout_service, session, buyer):
        cart_service.add_item(session, "AUR-001", "Black", "M", 1)
        order = checkout_service.checkout(session, buyer)
        _, other = store.resolve(None)
        with pytest.raises(NotFoundError):
            checkout_service.get_order(other, order.id)

    def test_no_order_yet(self, checkout_service, session):
        with pytest.raises(NotFoundError):
            checkout_service.get_order(session, "ORD-1-ABC")
