"""Order reporting: the admin order list, period statistics and customer history.

All queries read ``KitchenTicket`` rows; none of them replay the event store.
"""

from datetime import UTC, datetime, time, timedelta

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from dining.errors import store_guard
from dining.order.order import OrderStatus
from dining.pricing import CENT, to_decimal
from dining.projections.kitchen_ticket import KitchenTicket

PERIODS = ("today", "7days", "30days", "all")
_PERIOD_DAYS = {"today": 0, "7days": 7, "30days": 30}


def period_start(period, now=None):
    """Start of the reporting window: midnight today, or midnight N days ago. None for ``all``."""
    if period not in PERIODS:
        raise ValidationError({"period": [f"Unknown period: {period}. Use one of {', '.join(PERIODS)}"]})
    if period == "all":
        return None
    now = now or datetime.now(UTC)
    day = (now - timedelta(days=_PERIOD_DAYS[period])).date()
    return datetime.combine(day, time.min, tzinfo=now.tzinfo or UTC)


def _tickets(**filters):
    """Tickets matching ``filters``, newest first, with no cap on the number returned."""
    dao = current_domain.repository_for(KitchenTicket)._dao
    with store_guard("Loading orders"):
        query = dao.query.filter(**filters) if filters else dao.query
        return query.order_by("-created_at").limit(None).all().items


def _period_filters(period, now):
    start = period_start(period, now)
    return {"created_at__gte": start} if start is not None else {}


def list_orders(period="all", status="all", now=None):
    """Orders newest first, narrowed to a period and a status (``all`` for no filter)."""
    filters = _period_filters(period, now)
    if status != "all":
        try:
            OrderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown status: {status}"]})
        filters["status"] = status
    return _tickets(**filters)


def order_stats(now=None):
    """Order count and revenue for each reporting period."""
    now = now or datetime.now(UTC)
    stats = {}
    for period in PERIODS:
        in_period = _tickets(**_period_filters(period, now))
        total = sum((to_decimal(ticket.grand_total or 0) for ticket in in_period), to_decimal(0))
        stats[period] = {"count": len(in_period), "total": float(total.quantize(CENT))}
    return stats


def orders_for_customer(customer_id):
    """A signed-in customer's order history, newest first."""
    return _tickets(customer_id=str(customer_id))
