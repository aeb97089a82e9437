"""Order aggregate (Event Sourced): the order lifecycle.

An order is created once, at checkout, from a priced cart. After that only
two things change: its lifecycle status, which moves along the table below,
and its payment status, which is tracked independently.

State Machine:
    pending → confirmed → preparing → ready → completed
    cancelled is reachable from every non-terminal state.
    completed and cancelled are terminal.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import apply
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from dining.domain import dining
from dining.errors import EmptyCartError, InvalidTransition
from dining.order.events import (
    OrderCancelled,
    OrderCompleted,
    OrderConfirmed,
    OrderPlaced,
    OrderPreparationStarted,
    OrderReady,
    PaymentStatusUpdated,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class FulfillmentType(Enum):
    DINE_IN = "dine-in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"


# The only legal moves
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_FORWARD = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.COMPLETED,
}


def can_transition(current, target):
    """Whether ``current → target`` is a legal move. Accepts enum members or values."""
    try:
        current, target = OrderStatus(current), OrderStatus(target)
    except ValueError:
        return False
    return target in ALLOWED_TRANSITIONS[current]


def next_status(current):
    """The single forward status after ``current``, or None for ready-to-close and terminal states."""
    following = _FORWARD.get(OrderStatus(current))
    return following.value if following else None


def is_terminal(status):
    return not ALLOWED_TRANSITIONS[OrderStatus(status)]


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@dining.value_object(part_of="Order")
class OrderPricing:
    """Amounts locked at checkout. They never change, even when menu prices do."""

    subtotal = Float(default=0.0)
    tax_total = Float(default=0.0)
    grand_total = Float(default=0.0)
    tax_rate = Float(default=0.0)
    currency = String(max_length=3, default="USD")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@dining.entity(part_of="Order")
class OrderLine:
    """A menu item as it was when the order was placed."""

    menu_item_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@dining.aggregate(is_event_sourced=True)
class Order:
    customer_id = Identifier()
    customer_name = String(required=True, max_length=255)
    customer_email = String(max_length=255)
    lines = HasMany(OrderLine)
    pricing = ValueObject(OrderPricing)
    fulfillment_type = String(choices=FulfillmentType, default=FulfillmentType.DINE_IN.value)
    table_number = String(max_length=20)
    delivery_address = Text()
    payment_method = String(max_length=50)
    special_instructions = Text()
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_name,
        lines_data,
        pricing,
        fulfillment_type,
        payment_method,
        customer_id=None,
        customer_email=None,
        table_number=None,
        delivery_address=None,
        special_instructions=None,
        checkout_token=None,
    ):
        """Create an order from checkout data.

        Args:
            lines_data: List of dicts with menu_item_id, name, unit_price, quantity.
            pricing: Dict with subtotal, tax_total, grand_total, tax_rate, currency.
        """
        lines_data = [line for line in lines_data if line.get("quantity", 0) > 0]
        if not lines_data:
            raise EmptyCartError()

        errors = {}
        if not (customer_name or "").strip():
            errors["customer_name"] = ["Customer name is required"]
        try:
            fulfillment = FulfillmentType(fulfillment_type)
        except ValueError:
            errors["fulfillment_type"] = [f"Unknown fulfillment type: {fulfillment_type}"]
            fulfillment = None
        if fulfillment == FulfillmentType.DINE_IN and not table_number:
            errors["table_number"] = ["Table number is required for dine-in orders"]
        if fulfillment == FulfillmentType.DELIVERY and not (delivery_address or "").strip():
            errors["delivery_address"] = ["Delivery address is required for delivery orders"]
        if not payment_method:
            errors["payment_method"] = ["Payment method is required"]
        if errors:
            raise ValidationError(errors)

        # Pre-generate line IDs for deterministic replay
        lines_with_ids = [{**line, "id": str(uuid4())} for line in lines_data]

        order = cls._create_new()
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id) if customer_id else None,
                customer_name=customer_name.strip(),
                customer_email=customer_email,
                items=json.dumps(lines_with_ids),
                item_count=sum(line["quantity"] for line in lines_with_ids),
                fulfillment_type=fulfillment.value,
                table_number=str(table_number) if fulfillment == FulfillmentType.DINE_IN else None,
                delivery_address=delivery_address if fulfillment == FulfillmentType.DELIVERY else None,
                payment_method=payment_method,
                special_instructions=special_instructions,
                subtotal=pricing["subtotal"],
                tax_total=pricing["tax_total"],
                grand_total=pricing["grand_total"],
                tax_rate=pricing["tax_rate"],
                currency=pricing.get("currency", "USD"),
                checkout_token=checkout_token,
                placed_at=datetime.now(UTC),
            )
        )
        return order

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def transition_to(self, target, changed_by=None, reason=None):
        """Move to ``target`` if the table allows it, else raise ``InvalidTransition``."""
        if not can_transition(self.status, target):
            requested = target.value if isinstance(target, OrderStatus) else str(target)
            raise InvalidTransition(self.status, requested)

        target = OrderStatus(target)
        previous = self.status
        now = datetime.now(UTC)

        if target == OrderStatus.CANCELLED:
            self.raise_(
                OrderCancelled(
                    order_id=str(self.id),
                    previous_status=previous,
                    reason=reason,
                    changed_by=changed_by,
                    changed_at=now,
                )
            )
            return

        event_cls = {
            OrderStatus.CONFIRMED: OrderConfirmed,
            OrderStatus.PREPARING: OrderPreparationStarted,
            OrderStatus.READY: OrderReady,
            OrderStatus.COMPLETED: OrderCompleted,
        }[target]
        self.raise_(
            event_cls(
                order_id=str(self.id),
                previous_status=previous,
                changed_by=changed_by,
                changed_at=now,
            )
        )

    def confirm(self, changed_by=None):
        self.transition_to(OrderStatus.CONFIRMED, changed_by)

    def start_preparing(self, changed_by=None):
        self.transition_to(OrderStatus.PREPARING, changed_by)

    def mark_ready(self, changed_by=None):
        self.transition_to(OrderStatus.READY, changed_by)

    def complete(self, changed_by=None):
        self.transition_to(OrderStatus.COMPLETED, changed_by)

    def cancel(self, reason=None, cancelled_by=None):
        self.transition_to(OrderStatus.CANCELLED, cancelled_by, reason=reason)

    # -------------------------------------------------------------------
    # Payment status (independent of the lifecycle)
    # -------------------------------------------------------------------
    def record_payment_status(self, payment_status, changed_by=None):
        try:
            payment_status = PaymentStatus(payment_status).value
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status: {payment_status}"]})

        if payment_status == self.payment_status:
            return

        self.raise_(
            PaymentStatusUpdated(
                order_id=str(self.id),
                previous_payment_status=self.payment_status,
                payment_status=payment_status,
                changed_by=changed_by,
                changed_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def item_count(self):
        return sum(line.quantity for line in self.lines or [])

    def item_summary(self):
        """Human-readable line list, e.g. ``2x Grilled Salmon, 1x Caesar Salad``."""
        return ", ".join(f"{line.quantity}x {line.name}" for line in self.lines or [])

    # -------------------------------------------------------------------
    # @apply methods: rebuild state during event replay
    # -------------------------------------------------------------------
    @apply
    def _on_order_placed(self, event: OrderPlaced):
        self.id = event.order_id
        self.customer_id = event.customer_id
        self.customer_name = event.customer_name
        self.customer_email = event.customer_email
        self.fulfillment_type = event.fulfillment_type
        self.table_number = event.table_number
        self.delivery_address = event.delivery_address
        self.payment_method = event.payment_method
        self.special_instructions = event.special_instructions
        self.status = OrderStatus.PENDING.value
        self.payment_status = PaymentStatus.PENDING.value
        self.created_at = event.placed_at
        self.updated_at = event.placed_at

        lines_data = json.loads(event.items) if isinstance(event.items, str) else []
        self.lines = [OrderLine(**line_data) for line_data in lines_data]

        self.pricing = OrderPricing(
            subtotal=event.subtotal,
            tax_total=event.tax_total,
            grand_total=event.grand_total,
            tax_rate=event.tax_rate,
            currency=event.currency or "USD",
        )

    @apply
    def _on_order_confirmed(self, event: OrderConfirmed):
        self.status = OrderStatus.CONFIRMED.value
        self.updated_at = event.changed_at

    @apply
    def _on_order_preparation_started(self, event: OrderPreparationStarted):
        self.status = OrderStatus.PREPARING.value
        self.updated_at = event.changed_at

    @apply
    def _on_order_ready(self, event: OrderReady):
        self.status = OrderStatus.READY.value
        self.updated_at = event.changed_at

    @apply
    def _on_order_completed(self, event: OrderCompleted):
        self.status = OrderStatus.COMPLETED.value
        self.updated_at = event.changed_at

    @apply
    def _on_order_cancelled(self, event: OrderCancelled):
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = event.reason
        self.cancelled_by = event.changed_by
        self.updated_at = event.changed_at

    @apply
    def _on_payment_status_updated(self, event: PaymentStatusUpdated):
        self.payment_status = event.payment_status
        self.updated_at = event.changed_at
