"""Session cart: an ephemeral quantity mapping that turns into an Order at checkout.

A cart is never persisted. It lives in the customer's browsing session,
holds menu item identifiers with positive quantities, and is discarded once
the order is placed or the customer clears it. It does not look at the
catalog: pricing resolves identifiers later and ignores the ones that no
longer exist.
"""


class Cart:
    def __init__(self, quantities=None):
        self._quantities = {}
        for item_id, quantity in (quantities or {}).items():
            if quantity > 0:
                self._quantities[str(item_id)] = int(quantity)

    def add(self, item_id):
        """Add one unit of an item, creating the entry at 1 if needed."""
        item_id = str(item_id)
        self._quantities[item_id] = self._quantities.get(item_id, 0) + 1

    def remove(self, item_id):
        """Take one unit of an item away; the entry disappears when it reaches zero."""
        item_id = str(item_id)
        quantity = self._quantities.get(item_id, 0)
        if quantity <= 1:
            self._quantities.pop(item_id, None)
        else:
            self._quantities[item_id] = quantity - 1

    def clear(self):
        self._quantities.clear()

    def quantity_of(self, item_id):
        return self._quantities.get(str(item_id), 0)

    @property
    def quantities(self):
        """A copy of the item → quantity mapping."""
        return dict(self._quantities)

    @property
    def item_count(self):
        return sum(self._quantities.values())

    @property
    def is_empty(self):
        return not self._quantities

    def __len__(self):
        return len(self._quantities)

    def __contains__(self, item_id):
        return str(item_id) in self._quantities

    def __repr__(self):
        return f"Cart({self._quantities!r})"
