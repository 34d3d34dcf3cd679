"""Tests for the Cart aggregate and its items."""

import pytest
from protean.exceptions import ValidationError

from storefront.cart.cart import Cart
from storefront.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartItemUpdated


@pytest.fixture
def cart():
    return Cart.create("user-1")


class TestCartCreation:
    def test_create_for_user(self, cart):
        assert str(cart.user_id) == "user-1"
        assert len(cart.items) == 0
        assert cart.total == 0

    def test_create_sets_timestamps(self, cart):
        assert cart.created_at is not None
        assert cart.updated_at is not None


class TestAddItem:
    def test_add_new_line(self, cart):
        cart.add_item("9", 2, 1000.0, product_name="Mug")
        assert len(cart.items) == 1
        assert cart.quantity_of("9") == 2
        assert cart.total == 2000.0

    def test_add_same_product_merges(self, cart):
        cart.add_item("9", 2, 1000.0)
        cart.add_item("9", 1, 900.0)
        assert len(cart.items) == 1
        line = cart.line_for("9")
        assert line.quantity == 3
        assert line.price == 900.0

    def test_add_raises_event(self, cart):
        cart.add_item("9", 2, 1000.0)
        assert any(isinstance(e, CartItemAdded) for e in cart._events)

    def test_quantity_must_be_positive(self, cart):
        with pytest.raises(ValidationError):
            cart.add_item("9", 0, 1000.0)

    def test_ordered_items_keep_insertion_order(self, cart):
        cart.add_item("9", 1, 1000.0)
        cart.add_item("10", 1, 500.0)
        cart.add_item("9", 1, 1000.0)
        assert [str(i.product_id) for i in cart.ordered_items()] == ["9", "10"]


class TestUpdateAndRemove:
    def test_update_quantity_and_price(self, cart):
        cart.add_item("9", 2, 1000.0)
        cart.update_item_quantity("9", 5, 800.0)
        line = cart.line_for("9")
        assert line.quantity == 5
        assert line.subtotal == 4000.0
        assert any(isinstance(e, CartItemUpdated) for e in cart._events)

    def test_update_missing_product(self, cart):
        with pytest.raises(ValidationError):
            cart.update_item_quantity("9", 1, 1000.0)

    def test_remove_item(self, cart):
        cart.add_item("9", 2, 1000.0)
        cart.add_item("10", 1, 500.0)
        cart.remove_item("9")
        assert cart.line_for("9") is None
        assert cart.total == 500.0
        assert any(isinstance(e, CartItemRemoved) for e in cart._events)

    def test_remove_missing_product(self, cart):
        with pytest.raises(ValidationError):
            cart.remove_item("9")

    def test_clear(self, cart):
        cart.add_item("9", 2, 1000.0)
        cart.add_item("10", 1, 500.0)
        cart.clear()
        assert len(cart.items) == 0
        event = next(e for e in cart._events if isinstance(e, CartCleared))
        assert event.items_removed == 2
