"""Domain events for the Order aggregate.

Orders are event sourced: these events are the only record of an order, and
the aggregate is rebuilt by replaying them. Projectors consume the same
events to maintain the staff board, the order history and the timeline.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from dining.domain import dining


@dining.event(part_of="Order")
class OrderPlaced:
    """A priced cart was turned into an order at checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier()  # absent for guests
    customer_name = String(required=True)
    customer_email = String()
    items = Text(required=True)  # JSON: list of line snapshots
    item_count = Integer(required=True)
    fulfillment_type = String(required=True)
    table_number = String()
    delivery_address = Text()
    payment_method = String(required=True)
    special_instructions = Text()
    subtotal = Float(required=True)
    tax_total = Float(required=True)
    grand_total = Float(required=True)
    tax_rate = Float(required=True)
    currency = String(default="USD")
    checkout_token = String()
    placed_at = DateTime(required=True)


@dining.event(part_of="Order")
class OrderConfirmed:
    """The restaurant accepted the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)


@dining.event(part_of="Order")
class OrderPreparationStarted:
    """The kitchen started preparing the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)


@dining.event(part_of="Order")
class OrderReady:
    """The order is ready to be served, collected or sent out."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)


@dining.event(part_of="Order")
class OrderCompleted:
    """The order was handed over. No further changes are possible."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)


@dining.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before completion."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    changed_by = String()
    changed_at = DateTime(required=True)


@dining.event(part_of="Order")
class PaymentStatusUpdated:
    """The payment status moved, independently of the lifecycle status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_payment_status = String(required=True)
    payment_status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)
