"""Order placement: turns a priced cart into an order.

This is the irreversible hand-off from cart to order: lines and prices are
snapshotted from the catalog at this instant, and from then on the order no
longer depends on the menu.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from dining.domain import dining
from dining.errors import EmptyCartError, store_guard
from dining.identity.profile import Profile
from dining.menu.catalog import catalog_snapshot
from dining.order.order import FulfillmentType, Order
from dining.pricing import price_cart, to_decimal
from dining.projections.checkout_receipt import order_for_token
from dining.settings.settings import current_settings

logger = structlog.get_logger(__name__)


@dining.command(part_of="Order")
class PlaceOrder:
    items = Text(required=True)  # JSON: {menu_item_id: quantity}
    fulfillment_type = String(required=True, max_length=20)
    table_number = String(max_length=20)
    delivery_address = Text()
    payment_method = String(required=True, max_length=50)
    special_instructions = Text()
    customer_id = Identifier()  # absent for guest checkout
    customer_name = String(max_length=255)
    customer_email = String(max_length=254)
    checkout_token = String(max_length=255)


def snapshot_lines(quantities, catalog):
    """Line snapshots for the entries of a cart that resolve in ``catalog``."""
    lines = []
    for item_id, quantity in quantities.items():
        item = catalog.get(str(item_id))
        if item is None or quantity <= 0:
            continue
        lines.append(
            {
                "menu_item_id": str(item.id),
                "name": item.name,
                "unit_price": item.price,
                "quantity": int(quantity),
            }
        )
    return lines


@dining.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        existing = order_for_token(command.checkout_token)
        if existing:
            logger.info("Duplicate checkout ignored", order_id=existing, checkout_token=command.checkout_token)
            return existing

        quantities = json.loads(command.items) if isinstance(command.items, str) else dict(command.items or {})
        quantities = {str(item_id): int(quantity) for item_id, quantity in quantities.items() if int(quantity) > 0}
        if not quantities:
            raise EmptyCartError()

        settings = current_settings()
        customer_name, customer_email = command.customer_name, command.customer_email

        if command.customer_id:
            with store_guard("Loading profile"):
                try:
                    profile = current_domain.repository_for(Profile).get(command.customer_id)
                except ObjectNotFoundError:
                    profile = None
            if profile is not None:
                customer_name, customer_email = profile.display_name, profile.email
        elif not settings.allow_guest_orders:
            raise ValidationError({"customer_id": ["Guest orders are currently disabled. Please sign in."]})

        if command.fulfillment_type == FulfillmentType.DINE_IN.value and not settings.allow_table_orders:
            raise ValidationError({"fulfillment_type": ["Table orders are currently disabled"]})

        catalog = catalog_snapshot(available_only=True)
        lines = snapshot_lines(quantities, catalog)
        if not lines:
            raise EmptyCartError("None of the items in the cart are available")

        tax_rate = to_decimal(settings.tax_rate)
        breakdown = price_cart(quantities, catalog, tax_rate).rounded()

        order = Order.place(
            customer_id=command.customer_id,
            customer_name=customer_name,
            customer_email=customer_email,
            lines_data=lines,
            pricing={
                "subtotal": float(breakdown.subtotal),
                "tax_total": float(breakdown.tax),
                "grand_total": float(breakdown.total),
                "tax_rate": float(tax_rate),
                "currency": settings.currency,
            },
            fulfillment_type=command.fulfillment_type,
            table_number=command.table_number,
            delivery_address=command.delivery_address,
            payment_method=command.payment_method,
            special_instructions=command.special_instructions,
            checkout_token=command.checkout_token,
        )
        with store_guard("Placing order"):
            current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            fulfillment_type=order.fulfillment_type,
            grand_total=order.pricing.grand_total,
            dropped_items=len(quantities) - len(lines),
        )
        return str(order.id)
