"""Access gate: role-based decisions in front of staff and admin surfaces.

``decide`` is a pure function of the caller's role resolution and a route's
requirement. It never looks at a cached status or talks to the store.
"""

from dataclasses import dataclass

from dining.identity.profile import Role

SIGN_IN_PATH = "/auth"
STAFF_HOME = "/staff"
HOME = "/"

# Navigation routes and the role each one requires; absent routes are public.
ROUTE_REQUIREMENTS = {
    "/order-history": Role.CUSTOMER,
    "/staff": Role.STAFF,
    "/admin": Role.ADMIN,
    "/menu-management": Role.ADMIN,
    "/customer-management": Role.ADMIN,
    "/system-settings": Role.ADMIN,
    "/orders-management": Role.ADMIN,
}


@dataclass(frozen=True)
class RoleResolution:
    """What is known about the caller. ``loading`` means the answer is still on its way."""

    role: Role | None = None
    user_id: str | None = None
    loading: bool = False

    @property
    def authenticated(self):
        return self.role is not None


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Redirect:
    target: str


@dataclass(frozen=True)
class Defer:
    pass


def _as_roles(required):
    if required is None:
        return frozenset()
    if isinstance(required, (Role, str)):
        return frozenset({Role(required)})
    return frozenset(Role(role) for role in required)


def decide(resolution, required=None):
    """Decide ``Allow``, ``Redirect(target)`` or ``Defer`` for a caller and a requirement.

    ``required`` is None for public routes, a single role, or a collection of
    roles any one of which is enough.
    """
    if resolution.loading:
        return Defer()

    roles = _as_roles(required)
    if not roles:
        return Allow()

    if not resolution.authenticated:
        return Redirect(SIGN_IN_PATH)

    if resolution.role in roles:
        return Allow()

    if resolution.role == Role.STAFF and Role.ADMIN in roles:
        return Redirect(STAFF_HOME)
    return Redirect(HOME)


def decide_for_route(resolution, route):
    return decide(resolution, ROUTE_REQUIREMENTS.get(route))
