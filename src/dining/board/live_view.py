"""Live order view: the staff board, grouped by status.

The view holds no deltas. Each change notification only marks it stale;
the next read re-fetches the board from the store and regroups it. Two staff screens
reading after the same change therefore always show the same board.
"""

import structlog
from protean.utils.globals import current_domain

from dining.board.feed import order_feed
from dining.errors import store_guard
from dining.order.order import OrderStatus, is_terminal
from dining.projections.kitchen_ticket import KitchenTicket

logger = structlog.get_logger(__name__)

CLOSED_TICKET_LIMIT = 100


def group_orders_by_status(tickets):
    """Bucket tickets by status, oldest first in each bucket.

    Every status gets a bucket, empty or not.
    """
    board = {status.value: [] for status in OrderStatus}
    for ticket in tickets:
        board.setdefault(ticket.status, []).append(ticket)
    for bucket in board.values():
        bucket.sort(key=lambda ticket: str(ticket.created_at))
    return board


def load_board_rows():
    """Every open ticket, plus the most recently closed ones.

    Open orders are never capped. Completed and cancelled tickets pile up
    forever, so only the latest ``CLOSED_TICKET_LIMIT`` of them are shown.
    """
    dao = current_domain.repository_for(KitchenTicket)._dao
    open_statuses = [status.value for status in OrderStatus if not is_terminal(status.value)]
    closed_statuses = [status.value for status in OrderStatus if is_terminal(status.value)]
    with store_guard("Loading staff board"):
        open_tickets = dao.query.filter(status__in=open_statuses).order_by("created_at").limit(None).all().items
        closed_tickets = (
            dao.query.filter(status__in=closed_statuses).order_by("-updated_at").limit(CLOSED_TICKET_LIMIT).all().items
        )
    return list(open_tickets) + list(closed_tickets)


class LiveOrderView:
    def __init__(self, feed=order_feed, loader=load_board_rows, on_change=None):
        self._feed = feed
        self._loader = loader
        self._on_change = on_change
        self._subscription = None
        self._board = None
        self._stale = True
        self.version = 0

    def open(self):
        if self._subscription is None:
            self._subscription = self._feed.subscribe(self._notify)
        self._stale = True
        return self

    def close(self):
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc_info):
        self.close()

    @property
    def stale(self):
        return self._stale

    def _notify(self, change):
        self._stale = True
        self.version += 1
        if self._on_change is not None:
            self._on_change(change)

    def board(self):
        """The grouped board, re-fetched in full if anything changed since the last read."""
        if self._stale or self._board is None:
            # Cleared before loading so a change that lands mid-load triggers another read
            self._stale = False
            try:
                self._board = group_orders_by_status(self._loader())
            except Exception:
                self._stale = True
                raise
        return self._board

    def counts(self):
        return {status: len(tickets) for status, tickets in self.board().items()}
