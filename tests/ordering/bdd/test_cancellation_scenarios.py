"""BDD tests for order cancellation."""

from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when

from storefront.cart.snapshot import CartLine
from storefront.ordering.order import Order, ShippingAddress
from storefront.principal import Principal

scenarios("features/cancellation.feature")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a pending order of {quantity:d} units of product "{product_id}" paid through gateway token "{token}"')
)
def pending_paid_order(customer, address, state, quantity, product_id, token):
    order = Order.place(
        user_id=customer.user_id,
        shipping_address=ShippingAddress(**address),
        lines=[CartLine(product_id=product_id, product_name="Mug", quantity=quantity, price=1000.0)],
    )
    order.gateway_token = token
    order.payment_status = "paid"
    current_domain.repository_for(Order).add(order)
    state["order_id"] = str(order.id)
    state["token"] = token


@given("the customer has cancelled the order")
def cancelled_order(lifecycle, customer, state):
    lifecycle.cancel_order(customer, state["order_id"])


@given(parsers.cfparse('an administrator moved the order to "{status}"'))
def admin_moved_order(lifecycle, state, status):
    lifecycle.update_status(Principal(user_id="admin-1", role="admin"), state["order_id"], status)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the customer cancels the order")
def cancel_order(lifecycle, customer, state):
    lifecycle.cancel_order(customer, state["order_id"])


@when("the customer tries to cancel the order")
def try_cancel_order(lifecycle, customer, state):
    try:
        lifecycle.cancel_order(customer, state["order_id"])
    except ValidationError as exc:
        state["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the gateway refunded {amount:d} on token "{token}" exactly once'))
def refunded_once(gateway, amount, token):
    assert gateway.calls_to("refund") == [{"method": "refund", "token": token, "amount": amount}]


@then(parsers.cfparse('the cancellation is refused with "{message}"'))
def cancellation_refused(state, message):
    assert state["exc"] is not None
    assert state["exc"].messages == {"status": [message]}


@then("the gateway refunded nothing")
def no_refund(gateway):
    assert gateway.calls_to("refund") == []
