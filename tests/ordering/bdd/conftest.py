"""Shared BDD fixtures and step definitions for checkout and cancellation."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then, when

from storefront.cart.items import AddToCart
from storefront.inventory.product import Product
from storefront.ordering.order import Order
from storefront.principal import Principal


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def state():
    """What the scenario has produced so far: order id, gateway token, captured error."""
    return {"order_id": None, "token": None, "exc": None}


def load_order(state) -> Order:
    return current_domain.repository_for(Order).get(state["order_id"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a registered customer "{user_id}" with email "{email}"'), target_fixture="customer")
def registered_customer(register_customer, user_id, email):
    register_customer(user_id, email, name="Ana Buyer")
    return Principal(user_id=user_id)


@given(parsers.cfparse('product "{product_id}" priced at {price:d} with {stock:d} units in stock'))
def product_in_stock(make_product, product_id, price, stock):
    make_product(product_id, price=float(price), stock=stock)


@given(parsers.cfparse('product "{product_id}" is down to {stock:d} unit in stock'))
def product_stock_drops(product_id, stock):
    products = current_domain.repository_for(Product)
    product = products.get(product_id)
    product.stock = stock
    products.add(product)


@given(parsers.cfparse('the customer has {quantity:d} units of product "{product_id}" in the cart'))
def cart_with(customer, product_id, quantity):
    current_domain.process(
        AddToCart(user_id=customer.user_id, product_id=product_id, quantity=quantity),
        asynchronous=False,
    )


@given("the customer has checked out")
def checked_out(lifecycle, customer, address, state):
    session = lifecycle.checkout(customer, address)
    state["order_id"] = str(session.order.id)
    state["token"] = session.token


@given("the customer has placed the order")
def placed_order(lifecycle, customer, address, state):
    order = lifecycle.place_order(customer, address)
    state["order_id"] = str(order.id)


@given(parsers.cfparse('the gateway reports "{status}" for the transaction'))
@when(parsers.cfparse('the gateway reports "{status}" for the transaction'))
def gateway_reports(lifecycle, gateway, state, status):
    gateway.configure(commit_status=status)
    lifecycle.confirm_payment(state["token"])


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('product "{product_id}" has {stock:d} units in stock'))
def product_has_stock(stock_of, product_id, stock):
    assert stock_of(product_id) == stock


@then(parsers.cfparse('the order is "{status}" with payment "{payment_status}"'))
def order_in_state(state, status, payment_status):
    order = load_order(state)
    assert order.status == status
    assert order.payment_status == payment_status


@then(parsers.cfparse('{count:d} email was sent to "{recipient}"'))
def emails_sent(mailbox, count, recipient):
    assert len(mailbox.sent_to(recipient)) == count
