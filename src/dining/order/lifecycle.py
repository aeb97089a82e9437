"""Order lifecycle: staff-driven status changes.

Every transition is checked against the order as it is loaded from the
event store while the command is handled, never against the status a
client last saw. A request built from a stale board fails with
``InvalidTransition`` carrying the current status.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dining.domain import dining
from dining.errors import store_guard
from dining.order.order import Order

logger = structlog.get_logger(__name__)


@dining.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    changed_by = String(max_length=255)


@dining.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_by = String(max_length=255)


@dining.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        with store_guard("Loading order"):
            order = repo.get(command.order_id)
        previous = order.status
        order.transition_to(command.status, changed_by=command.changed_by)
        with store_guard("Updating order status"):
            repo.add(order)
        logger.info(
            "Order status changed",
            order_id=str(order.id),
            previous_status=previous,
            status=order.status,
            changed_by=command.changed_by,
        )
        return order.status

    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        with store_guard("Loading order"):
            order = repo.get(command.order_id)
        order.cancel(reason=command.reason, cancelled_by=command.cancelled_by)
        with store_guard("Cancelling order"):
            repo.add(order)
        logger.info("Order cancelled", order_id=str(order.id), cancelled_by=command.cancelled_by)
        return order.status
