"""In-memory registry of session carts for the HTTP API.

One cart per browsing session id. Nothing here is written to the data
store; restarting the process drops every open cart.
"""

import threading

from dining.cart.cart import Cart


class CartRegistry:
    def __init__(self):
        self._carts = {}
        self._lock = threading.Lock()

    def cart_for(self, session_id):
        """The session's cart, created empty on first use."""
        with self._lock:
            cart = self._carts.get(session_id)
            if cart is None:
                cart = Cart()
                self._carts[session_id] = cart
            return cart

    def discard(self, session_id):
        """Drop the session's cart, typically after a successful checkout."""
        with self._lock:
            self._carts.pop(session_id, None)

    def reset(self):
        with self._lock:
            self._carts.clear()

    def __len__(self):
        return len(self._carts)


carts = CartRegistry()
