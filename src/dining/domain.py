"""Dining bounded context: menu, carts, and the order lifecycle.

Customers browse the menu and check out a cart; the resulting Order is
event sourced and moves through the kitchen workflow under staff control.
Staff dashboards watch the KitchenTicket projection through the live order
feed.
"""

from protean.domain import Domain

from dining.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
dining = Domain(name="dining")
