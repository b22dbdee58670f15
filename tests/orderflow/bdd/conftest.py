"""Shared BDD fixtures and step definitions for order fulfillment."""

import pytest
from orderflow.errors import FulfillmentRuleViolation
from orderflow.order.events import (
    ItemQuantityAmended,
    OrderReadyForDispatch,
    OrderRejected,
    OrderStatusChanged,
    WalletDecisionRecorded,
)
from orderflow.order.order import Order
from orderflow.order.state_machine import OrderFulfillmentStateMachine
from orderflow.roles import Actor
from pytest_bdd import given, parsers, then, when

_ORDER_EVENT_CLASSES = {
    "OrderStatusChanged": OrderStatusChanged,
    "OrderReadyForDispatch": OrderReadyForDispatch,
    "OrderRejected": OrderRejected,
    "WalletDecisionRecorded": WalletDecisionRecorded,
    "ItemQuantityAmended": ItemQuantityAmended,
}


def _make_order(payment_method="cash", quantities=(1,)):
    return Order.register(
        order_number="PED-BDD-001",
        payment_method=payment_method,
        items_data=[
            {"product_code": f"SKU-{i:03d}", "description": f"Producto {i}", "quantity": qty}
            for i, qty in enumerate(quantities, start=1)
        ],
    )


def _advance(order, *statuses):
    machine = OrderFulfillmentStateMachine()
    for status in statuses:
        machine.request_transition(order, status, Actor(identity="admin-1", role="admin"))
    return order


@pytest.fixture()
def error():
    """Container for captured business rule violations."""
    return {"exc": None}


@pytest.fixture()
def session():
    """No packaging session unless a scenario opens one."""
    return None


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a "{payment_method}" order in cartera review'), target_fixture="order")
def order_in_review(payment_method):
    order = _advance(_make_order(payment_method=payment_method), "revision_cartera")
    order._events.clear()
    return order


def _quantities(text):
    return tuple(int(part) for part in text.split(","))


@given(parsers.cfparse('an order in logistics with quantities "{quantities}"'), target_fixture="order")
def order_in_logistics(quantities):
    order = _advance(_make_order(quantities=_quantities(quantities)), "revision_cartera", "logistica")
    order._events.clear()
    return order


@given(parsers.cfparse('an order in packaging with quantities "{quantities}"'), target_fixture="order")
def order_in_packaging(quantities):
    order = _advance(
        _make_order(quantities=_quantities(quantities)),
        "revision_cartera",
        "logistica",
        "pendiente_empaque",
        "empaque",
    )
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('"{status}" is requested by "{role}"'), target_fixture="order")
def request_status(order, session, status, role, error):
    try:
        OrderFulfillmentStateMachine().request_transition(
            order, status, Actor(identity=f"{role}-1", role=role), packaging=session
        )
    except FulfillmentRuleViolation as exc:
        error["exc"] = exc
    return order


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then(parsers.cfparse('the action fails with "{error_name}"'))
def action_fails_with(error, error_name):
    assert error["exc"] is not None, "Expected a business rule violation but none was raised"
    assert type(error["exc"]).__name__ == error_name


@then(parsers.cfparse("a {event_type} event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"
