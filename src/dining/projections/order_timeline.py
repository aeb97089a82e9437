"""Order timeline: append-only history of everything that happened to an order."""

import uuid

from protean.core.projector import on
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

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
from dining.order.order import Order


@dining.projection
class OrderTimeline:
    entry_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    event_type = String(required=True)
    description = String(required=True)
    actor = String()
    occurred_at = DateTime(required=True)


def _add_entry(order_id, event_type, description, occurred_at, actor=None):
    current_domain.repository_for(OrderTimeline).add(
        OrderTimeline(
            entry_id=str(uuid.uuid4()),
            order_id=order_id,
            event_type=event_type,
            description=description,
            actor=actor,
            occurred_at=occurred_at,
        )
    )


def timeline_for(order_id):
    """Entries for one order, oldest first."""
    entries = current_domain.repository_for(OrderTimeline)._dao.query.filter(order_id=str(order_id)).all().items
    return sorted(entries, key=lambda entry: entry.occurred_at)


@dining.projector(projector_for=OrderTimeline, aggregates=[Order])
class OrderTimelineProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        _add_entry(
            event.order_id,
            "OrderPlaced",
            f"Order placed for {event.fulfillment_type} ({event.item_count} items)",
            event.placed_at,
            actor=event.customer_name,
        )

    @on(OrderConfirmed)
    def on_order_confirmed(self, event):
        _add_entry(event.order_id, "OrderConfirmed", "Order confirmed", event.changed_at, event.changed_by)

    @on(OrderPreparationStarted)
    def on_order_preparation_started(self, event):
        _add_entry(event.order_id, "OrderPreparationStarted", "Preparation started", event.changed_at, event.changed_by)

    @on(OrderReady)
    def on_order_ready(self, event):
        _add_entry(event.order_id, "OrderReady", "Order ready", event.changed_at, event.changed_by)

    @on(OrderCompleted)
    def on_order_completed(self, event):
        _add_entry(event.order_id, "OrderCompleted", "Order completed", event.changed_at, event.changed_by)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        description = f"Cancelled: {event.reason}" if event.reason else "Cancelled"
        _add_entry(event.order_id, "OrderCancelled", description, event.changed_at, event.changed_by)

    @on(PaymentStatusUpdated)
    def on_payment_status_updated(self, event):
        _add_entry(
            event.order_id,
            "PaymentStatusUpdated",
            f"Payment {event.previous_payment_status} → {event.payment_status}",
            event.changed_at,
            event.changed_by,
        )
