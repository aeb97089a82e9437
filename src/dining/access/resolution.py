"""Resolve a session token into a ``RoleResolution``."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from dining.access.gate import RoleResolution
from dining.errors import store_guard
from dining.identity.profile import Profile, Role


def resolve_role(provider, token):
    """Look up the caller's session and profile.

    While the provider is still loading, the resolution is marked as loading
    and carries no role. A session without a profile counts as signed out.
    """
    if provider.loading:
        return RoleResolution(loading=True)

    with store_guard("Resolving session"):
        session = provider.session_for(token)
        if session is None:
            return RoleResolution()
        try:
            profile = current_domain.repository_for(Profile).get(session.user_id)
        except ObjectNotFoundError:
            return RoleResolution()

    return RoleResolution(role=Role(profile.role), user_id=str(profile.id))
