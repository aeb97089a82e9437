"""Kitchen ticket: one row per order, backing the staff board and order lists.

After every row update the projector stages an ``OrderChange`` on the
order feed; it is published once the command that caused it has been processed.
"""

import json

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from dining.board.feed import OrderChange, order_feed
from dining.domain import dining
from dining.order.events import (
    OrderCancelled,
    OrderCompleted,
    OrderConfirmed,
    OrderPlaced,
    OrderPreparationStarted,
    OrderReady,
    PaymentStatusUpdated,
)
from dining.order.order import Order, OrderStatus, PaymentStatus


@dining.projection
class KitchenTicket:
    order_id = Identifier(identifier=True, required=True)
    customer_id = Identifier()
    customer_name = String(required=True)
    status = String(required=True)
    payment_status = String()
    payment_method = String()
    fulfillment_type = String()
    table_number = String()
    item_summary = Text()
    item_count = Integer(default=0)
    special_instructions = Text()
    grand_total = Float()
    currency = String(max_length=3)
    created_at = DateTime()
    updated_at = DateTime()


def _summary(items_json):
    lines = json.loads(items_json) if items_json else []
    return ", ".join(f"{line['quantity']}x {line['name']}" for line in lines)


@dining.projector(projector_for=KitchenTicket, aggregates=[Order])
class KitchenTicketProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(KitchenTicket).add(
            KitchenTicket(
                order_id=event.order_id,
                customer_id=event.customer_id,
                customer_name=event.customer_name,
                status=OrderStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                payment_method=event.payment_method,
                fulfillment_type=event.fulfillment_type,
                table_number=event.table_number,
                item_summary=_summary(event.items),
                item_count=event.item_count,
                special_instructions=event.special_instructions,
                grand_total=event.grand_total,
                currency=event.currency,
                created_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )
        order_feed.stage(OrderChange(str(event.order_id), "OrderPlaced", OrderStatus.PENDING.value))

    def _update_status(self, event, status):
        repo = current_domain.repository_for(KitchenTicket)
        ticket = repo.get(event.order_id)
        ticket.status = status
        ticket.updated_at = event.changed_at
        repo.add(ticket)
        order_feed.stage(OrderChange(str(event.order_id), event.__class__.__name__, status))

    @on(OrderConfirmed)
    def on_order_confirmed(self, event):
        self._update_status(event, OrderStatus.CONFIRMED.value)

    @on(OrderPreparationStarted)
    def on_order_preparation_started(self, event):
        self._update_status(event, OrderStatus.PREPARING.value)

    @on(OrderReady)
    def on_order_ready(self, event):
        self._update_status(event, OrderStatus.READY.value)

    @on(OrderCompleted)
    def on_order_completed(self, event):
        self._update_status(event, OrderStatus.COMPLETED.value)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        self._update_status(event, OrderStatus.CANCELLED.value)

    @on(PaymentStatusUpdated)
    def on_payment_status_updated(self, event):
        repo = current_domain.repository_for(KitchenTicket)
        ticket = repo.get(event.order_id)
        ticket.payment_status = event.payment_status
        ticket.updated_at = event.changed_at
        repo.add(ticket)
        order_feed.stage(OrderChange(str(event.order_id), "PaymentStatusUpdated", ticket.status))
