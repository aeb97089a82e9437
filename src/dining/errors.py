"""Typed failures raised by the dining domain.

``EmptyCartError`` and ``InvalidTransition`` are validation failures and
extend Protean's ``ValidationError``, so anything that already handles
validation errors keeps working. The other two describe the caller's
environment rather than its input.
"""

from contextlib import contextmanager

from protean.exceptions import ValidationError


class EmptyCartError(ValidationError):
    """Checkout was attempted with nothing to order."""

    def __init__(self, message="Cart has no items to order"):
        super().__init__({"cart": [message]})


class InvalidTransition(ValidationError):
    """A status change that is not a legal move from the order's current status."""

    def __init__(self, current_status, requested_status):
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__({"status": [f"Cannot transition from {current_status} to {requested_status}"]})


class StoreUnavailable(Exception):
    """The data store or identity provider could not be reached in time."""

    def __init__(self, operation, reason=None):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}" if reason else f"{operation} failed")


class AuthenticationRequired(Exception):
    """A mutating action was attempted without a resolved session."""

    def __init__(self, message="Sign in to continue"):
        self.message = message
        super().__init__(message)


@contextmanager
def store_guard(operation):
    """Surface connection failures and timeouts from the store as ``StoreUnavailable``."""
    try:
        yield
    except (ConnectionError, TimeoutError) as exc:
        raise StoreUnavailable(operation, str(exc) or type(exc).__name__) from exc
