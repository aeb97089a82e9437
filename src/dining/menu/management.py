"""Menu management: admin commands and handler."""

import json

import structlog
from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from dining.domain import dining
from dining.menu.menu_item import MenuItem

logger = structlog.get_logger(__name__)


@dining.command(part_of="MenuItem")
class AddMenuItem:
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    category = String(required=True, max_length=50)
    dietary_tags = Text()  # JSON array
    image_url = String(max_length=500)
    is_popular = Boolean(default=False)
    is_available = Boolean(default=True)


@dining.command(part_of="MenuItem")
class UpdateMenuItem:
    """Edit menu item details. Omitted fields keep their current value."""

    menu_item_id = Identifier(required=True)
    name = String(max_length=255)
    description = Text()
    price = Float(min_value=0.0)
    category = String(max_length=50)
    dietary_tags = Text()  # JSON array
    image_url = String(max_length=500)
    is_popular = Boolean()


@dining.command(part_of="MenuItem")
class SetMenuItemAvailability:
    menu_item_id = Identifier(required=True)
    is_available = Boolean(required=True)


@dining.command(part_of="MenuItem")
class RemoveMenuItem:
    """Delete a menu item. Orders already placed keep their snapshot."""

    menu_item_id = Identifier(required=True)


def _tags(raw):
    if raw is None:
        return None
    return json.loads(raw) if isinstance(raw, str) else raw


@dining.command_handler(part_of=MenuItem)
class ManageMenuHandler:
    @handle(AddMenuItem)
    def add_menu_item(self, command):
        item = MenuItem.create(
            name=command.name,
            description=command.description,
            price=command.price,
            category=command.category,
            dietary_tags=_tags(command.dietary_tags),
            image_url=command.image_url,
            is_popular=bool(command.is_popular),
            is_available=command.is_available if command.is_available is not None else True,
        )
        current_domain.repository_for(MenuItem).add(item)
        logger.info("Menu item added", menu_item_id=str(item.id), name=item.name)
        return str(item.id)

    @handle(UpdateMenuItem)
    def update_menu_item(self, command):
        repo = current_domain.repository_for(MenuItem)
        item = repo.get(command.menu_item_id)
        item.update_details(
            name=command.name,
            description=command.description,
            price=command.price,
            category=command.category,
            dietary_tags=_tags(command.dietary_tags),
            image_url=command.image_url,
            is_popular=command.is_popular,
        )
        repo.add(item)

    @handle(SetMenuItemAvailability)
    def set_menu_item_availability(self, command):
        repo = current_domain.repository_for(MenuItem)
        item = repo.get(command.menu_item_id)
        item.set_availability(command.is_available)
        repo.add(item)

    @handle(RemoveMenuItem)
    def remove_menu_item(self, command):
        repo = current_domain.repository_for(MenuItem)
        item = repo.get(command.menu_item_id)
        repo._dao.delete(item)
        logger.info("Menu item removed", menu_item_id=str(command.menu_item_id))
