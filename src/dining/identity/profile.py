"""Profile aggregate: who a signed-in person is and what they may do.

A profile shares its identifier with the user record of the identity
provider. New profiles start as customers; only an admin can promote them.
"""

from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from dining.domain import dining

logger = structlog.get_logger(__name__)


class Role(Enum):
    CUSTOMER = "customer"
    STAFF = "staff"
    ADMIN = "admin"


@dining.event(part_of="Profile")
class ProfileRegistered:
    """A profile was created for a newly signed-up user."""

    __version__ = 1

    profile_id: Identifier(required=True)
    display_name: String(required=True)
    email: String(required=True)
    role: String(required=True)
    registered_at: DateTime(required=True)


@dining.event(part_of="Profile")
class RoleChanged:
    """An admin changed a profile's role."""

    __version__ = 1

    profile_id: Identifier(required=True)
    previous_role: String(required=True)
    role: String(required=True)
    changed_at: DateTime(required=True)


@dining.aggregate
class Profile:
    display_name: String(required=True, max_length=255)
    email: String(required=True, max_length=254)
    role: String(choices=Role, default=Role.CUSTOMER.value)
    registered_at: DateTime()

    @classmethod
    def register(cls, user_id, display_name, email, role=Role.CUSTOMER.value):
        now = datetime.now(UTC)
        profile = cls(
            id=str(user_id),
            display_name=display_name,
            email=email.strip().lower(),
            role=role,
            registered_at=now,
        )
        profile.raise_(
            ProfileRegistered(
                profile_id=str(profile.id),
                display_name=profile.display_name,
                email=profile.email,
                role=profile.role,
                registered_at=now,
            )
        )
        return profile

    def change_role(self, role):
        try:
            role = Role(role).value
        except ValueError:
            raise ValidationError({"role": [f"Unknown role: {role}"]})

        if role == self.role:
            return

        previous = self.role
        self.role = role
        self.raise_(
            RoleChanged(
                profile_id=str(self.id),
                previous_role=previous,
                role=role,
                changed_at=datetime.now(UTC),
            )
        )


@dining.command(part_of="Profile")
class RegisterProfile:
    user_id: Identifier(required=True)
    display_name: String(required=True, max_length=255)
    email: String(required=True, max_length=254)


@dining.command(part_of="Profile")
class ChangeRole:
    profile_id: Identifier(required=True)
    role: String(required=True, max_length=20)


@dining.command_handler(part_of=Profile)
class ProfileHandler:
    @handle(RegisterProfile)
    def register_profile(self, command):
        profile = Profile.register(
            user_id=command.user_id,
            display_name=command.display_name,
            email=command.email,
        )
        current_domain.repository_for(Profile).add(profile)
        return str(profile.id)

    @handle(ChangeRole)
    def change_role(self, command):
        repo = current_domain.repository_for(Profile)
        profile = repo.get(command.profile_id)
        profile.change_role(command.role)
        repo.add(profile)
        logger.info("Role changed", profile_id=str(profile.id), role=profile.role)
