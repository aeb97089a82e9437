"""Checkout receipts: which order a checkout token already produced."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from dining.domain import dining
from dining.order.events import OrderPlaced
from dining.order.order import Order


@dining.projection
class CheckoutReceipt:
    checkout_token = String(identifier=True, required=True, max_length=255)
    order_id = Identifier(required=True)
    placed_at = DateTime()


def order_for_token(checkout_token):
    """The order id created for ``checkout_token``, or None."""
    if not checkout_token:
        return None
    try:
        return str(current_domain.repository_for(CheckoutReceipt).get(checkout_token).order_id)
    except ObjectNotFoundError:
        return None


@dining.projector(projector_for=CheckoutReceipt, aggregates=[Order])
class CheckoutReceiptProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        if not event.checkout_token:
            return
        current_domain.repository_for(CheckoutReceipt).add(
            CheckoutReceipt(
                checkout_token=event.checkout_token,
                order_id=event.order_id,
                placed_at=event.placed_at,
            )
        )
