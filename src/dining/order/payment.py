"""Payment status: recorded on the order, independent of its lifecycle status.

No payment is captured or settled here.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dining.domain import dining
from dining.order.order import Order


@dining.command(part_of="Order")
class UpdatePaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, max_length=20)
    changed_by = String(max_length=255)


@dining.command_handler(part_of=Order)
class UpdatePaymentStatusHandler:
    @handle(UpdatePaymentStatus)
    def update_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_status(command.payment_status, changed_by=command.changed_by)
        repo.add(order)
        return order.payment_status
