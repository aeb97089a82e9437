"""In-process order feed: fan-out of order change notifications.

Projectors stage a change when they update the kitchen board. Staged
changes are only published once the command that caused them has been
processed and its writes committed, so a subscriber that re-reads the board
on notification always sees the new rows. A notification only says *that*
an order changed, never what the board should look like now: subscribers
re-read the board themselves.
"""

import threading
from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderChange:
    order_id: str
    event_type: str
    status: str | None = None


class Subscription:
    def __init__(self, feed, callback):
        self._feed = feed
        self.callback = callback

    def cancel(self):
        self._feed._remove(self)


class OrderFeed:
    def __init__(self):
        self._subscriptions = []
        self._lock = threading.Lock()
        self._staged = threading.local()

    def subscribe(self, callback):
        """Call ``callback(change)`` on every published change until cancelled."""
        subscription = Subscription(self, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _pending(self):
        if not hasattr(self._staged, "changes"):
            self._staged.changes = []
        return self._staged.changes

    def stage(self, change):
        """Hold ``change`` until the current thread calls ``flush``."""
        self._pending().append(change)

    def flush(self):
        """Publish every change staged by the current thread, in order."""
        changes = list(self._pending())
        self._pending().clear()
        for change in changes:
            self.publish(change)

    def discard(self):
        self._pending().clear()

    def publish(self, change):
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            try:
                subscription.callback(change)
            except Exception:
                # Subscriber failures are logged, never raised to the writer
                logger.exception("Order feed subscriber failed", order_id=change.order_id)

    def reset(self):
        with self._lock:
            self._subscriptions.clear()
        self.discard()

    def __len__(self):
        return len(self._subscriptions)


order_feed = OrderFeed()


def process_and_notify(command, feed=order_feed):
    """Process ``command`` synchronously, then publish the changes it staged.

    Nothing is published when the command fails.
    """
    try:
        result = current_domain.process(command, asynchronous=False)
    except Exception:
        feed.discard()
        raise
    feed.flush()
    return result
