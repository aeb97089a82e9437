"""BDD tests for the order status lifecycle."""

from pytest_bdd import parsers, scenarios, when

from dining.order.lifecycle import CancelOrder, UpdateOrderStatus
from dining.order.payment import UpdatePaymentStatus

scenarios("features/order_state_machine.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the status is changed to "{status}"'), target_fixture="order")
def _(order, order_id, status):
    return order.process(UpdateOrderStatus(order_id=order_id, status=status, changed_by="Kitchen Staff"))


@when("the order is cancelled", target_fixture="order")
def _(order, order_id):
    return order.process(CancelOrder(order_id=order_id, reason="Out of salmon", cancelled_by="Kitchen Staff"))


@when(parsers.cfparse('the payment is marked "{payment_status}"'), target_fixture="order")
def _(order, order_id, payment_status):
    return order.process(UpdatePaymentStatus(order_id=order_id, payment_status=payment_status))
