"""Shared BDD fixtures and step definitions for the dining context."""

import json
from datetime import UTC, datetime

import pytest
from protean.exceptions import ValidationError
from protean.testing import given as given_
from pytest_bdd import given, parsers, then

from dining.errors import InvalidTransition
from dining.order.events import (
    OrderCancelled,
    OrderCompleted,
    OrderConfirmed,
    OrderPlaced,
    OrderPreparationStarted,
    OrderReady,
    PaymentStatusUpdated,
)
from dining.order.order import Order

_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderConfirmed": OrderConfirmed,
    "OrderPreparationStarted": OrderPreparationStarted,
    "OrderReady": OrderReady,
    "OrderCompleted": OrderCompleted,
    "OrderCancelled": OrderCancelled,
    "PaymentStatusUpdated": PaymentStatusUpdated,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def order_id():
    return "ord-001"


# ---------------------------------------------------------------------------
# Event fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def order_placed(order_id):
    return OrderPlaced(
        order_id=order_id,
        customer_name="Jordan",
        items=json.dumps(
            [
                {
                    "id": "line-1",
                    "menu_item_id": "item-001",
                    "name": "Grilled Salmon",
                    "unit_price": 18.99,
                    "quantity": 2,
                }
            ]
        ),
        item_count=2,
        fulfillment_type="dine-in",
        table_number="5",
        payment_method="card",
        subtotal=37.98,
        tax_total=3.04,
        grand_total=41.02,
        tax_rate=0.08,
        currency="USD",
        placed_at=datetime.now(UTC),
    )


def _status_event(event_cls, order_id, previous_status, **extra):
    return event_cls(
        order_id=order_id,
        previous_status=previous_status,
        changed_by="Kitchen Staff",
        changed_at=datetime.now(UTC),
        **extra,
    )


@pytest.fixture()
def order_confirmed(order_id):
    return _status_event(OrderConfirmed, order_id, "pending")


@pytest.fixture()
def order_preparing(order_id):
    return _status_event(OrderPreparationStarted, order_id, "confirmed")


@pytest.fixture()
def order_ready(order_id):
    return _status_event(OrderReady, order_id, "preparing")


@pytest.fixture()
def order_completed(order_id):
    return _status_event(OrderCompleted, order_id, "ready")


@pytest.fixture()
def order_cancelled(order_id):
    return _status_event(OrderCancelled, order_id, "pending", reason="Kitchen closed")


# ---------------------------------------------------------------------------
# Given steps - Order (event sourcing via protean.testing)
# ---------------------------------------------------------------------------
@given("an order was placed", target_fixture="order")
def _(order_placed):
    return given_(Order, order_placed)


@given("the order was confirmed", target_fixture="order")
def _(order, order_confirmed):
    return order.after(order_confirmed)


@given("the order is being prepared", target_fixture="order")
def _(order, order_preparing):
    return order.after(order_preparing)


@given("the order is ready", target_fixture="order")
def _(order, order_ready):
    return order.after(order_ready)


@given("the order was completed", target_fixture="order")
def _(order, order_completed):
    return order.after(order_completed)


@given("the order was cancelled", target_fixture="order")
def _(order, order_cancelled):
    return order.after(order_cancelled)


# ---------------------------------------------------------------------------
# Then steps - Order
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert order.status == status


@then(parsers.cfparse('the payment status is "{payment_status}"'))
def _(order, payment_status):
    assert order.payment_status == payment_status


@then("the order action fails with a validation error")
def _(order):
    assert order.rejected
    assert isinstance(order.rejection, ValidationError)


@then(parsers.cfparse('the transition is rejected because the order is "{current}"'))
def _(order, current):
    assert order.rejected
    assert isinstance(order.rejection, InvalidTransition)
    assert order.rejection.current_status == current


@then(parsers.cfparse("an {event_type} order event is raised"))
def _(order, event_type):
    assert _ORDER_EVENT_CLASSES[event_type] in order.events


@then(parsers.cfparse("a {event_type} order event is raised"))
def _(order, event_type):
    assert _ORDER_EVENT_CLASSES[event_type] in order.events
