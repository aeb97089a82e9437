"""Request authentication and role checks for the API routes."""

from fastapi import Request
from protean.exceptions import ObjectNotFoundError

from dining.access.gate import Allow, Defer, decide
from dining.access.resolution import resolve_role
from dining.api.errors import AccessDeferred, AccessRedirect
from dining.errors import AuthenticationRequired
from dining.identity.profile import Role
from dining.identity.provider import identity_provider

STAFF_ROLES = frozenset({Role.STAFF, Role.ADMIN})
ADMIN_ROLES = frozenset({Role.ADMIN})


def session_token(request: Request):
    """Bearer token from the ``Authorization`` header, if any."""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


async def current_resolution(request: Request):
    """The caller's role resolution. Anonymous callers are allowed through."""
    return resolve_role(identity_provider, session_token(request))


def enforce(resolution, roles):
    """Apply the access gate to an API call, raising the matching error for anything but ``Allow``."""
    decision = decide(resolution, roles)
    if isinstance(decision, Allow):
        return resolution
    if isinstance(decision, Defer):
        raise AccessDeferred()
    if not resolution.authenticated:
        raise AuthenticationRequired()
    raise AccessRedirect(decision.target)


def require_roles(roles):
    async def dependency(request: Request):
        return enforce(await current_resolution(request), roles)

    return dependency


require_staff = require_roles(STAFF_ROLES)
require_admin = require_roles(ADMIN_ROLES)
require_customer = require_roles({Role.CUSTOMER})


def ensure_order_visible(resolution, order):
    """Orders placed by a signed-in customer are visible to that customer and to staff.

    Other customers get a not-found, so they cannot learn which ids exist.
    Guest orders stay readable by id, which only the guest received at checkout.
    """
    if not order.customer_id or resolution.role in STAFF_ROLES:
        return
    if resolution.loading:
        raise AccessDeferred()
    if not resolution.authenticated:
        raise AuthenticationRequired()
    if resolution.user_id != str(order.customer_id):
        raise ObjectNotFoundError(f"Order {order.id} not found")
