"""Domain events for the MenuItem aggregate."""

from protean.fields import Boolean, Float, Identifier, String, Text

from dining.domain import dining


@dining.event(part_of="MenuItem")
class MenuItemAdded:
    """A new dish or drink was added to the menu."""

    __version__ = 1

    menu_item_id = Identifier(required=True)
    name = String(required=True)
    category = String(required=True)
    price = Float(required=True)
    is_available = Boolean(required=True)


@dining.event(part_of="MenuItem")
class MenuItemUpdated:
    """Details of a menu item were edited. Placed orders keep their snapshot."""

    __version__ = 1

    menu_item_id = Identifier(required=True)
    changes = Text(required=True)  # JSON: {field: new value}


@dining.event(part_of="MenuItem")
class MenuItemAvailabilityChanged:
    """A menu item was taken off, or put back on, the customer catalog."""

    __version__ = 1

    menu_item_id = Identifier(required=True)
    is_available = Boolean(required=True)
