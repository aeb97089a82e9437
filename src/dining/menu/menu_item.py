"""MenuItem aggregate: the dishes and drinks a customer can order.

Admins create, edit and remove menu items. Customers only see items that
are available. Orders never point at a MenuItem after checkout: they carry
a snapshot of the name and price instead.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, String, Text

from dining.domain import dining
from dining.menu.events import MenuItemAdded, MenuItemAvailabilityChanged, MenuItemUpdated
from dining.pricing import CENT, to_decimal


class MenuCategory(Enum):
    MAINS = "Mains"
    SALADS = "Salads"
    DESSERTS = "Desserts"
    BEVERAGES = "Beverages"
    APPETIZERS = "Appetizers"


class DietaryTag(Enum):
    VEGETARIAN = "Vegetarian"
    VEGAN = "Vegan"
    GLUTEN_FREE = "Gluten-Free"
    KETO_FRIENDLY = "Keto-Friendly"
    HIGH_PROTEIN = "High-Protein"
    DAIRY_FREE = "Dairy-Free"


_EDITABLE_FIELDS = ("name", "description", "price", "category", "dietary_tags", "image_url", "is_popular")


@dining.aggregate
class MenuItem:
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    category = String(required=True, choices=MenuCategory)
    dietary_tags = Text()  # JSON array of DietaryTag values
    image_url = String(max_length=500)
    is_popular = Boolean(default=False)
    is_available = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def price_must_be_in_minor_units(self):
        if self.price is None:
            return
        price = to_decimal(self.price)
        if price != price.quantize(CENT):
            raise ValidationError({"price": ["Price cannot have more than two decimal places"]})

    @invariant.post
    def dietary_tags_must_be_known(self):
        known = {tag.value for tag in DietaryTag}
        unknown = [tag for tag in self.dietary if tag not in known]
        if unknown:
            raise ValidationError({"dietary_tags": [f"Unknown dietary tags: {', '.join(unknown)}"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        name,
        price,
        category,
        description=None,
        dietary_tags=None,
        image_url=None,
        is_popular=False,
        is_available=True,
    ):
        now = datetime.now(UTC)
        item = cls(
            name=name,
            description=description,
            price=price,
            category=category,
            dietary_tags=json.dumps(sorted(set(dietary_tags or []))),
            image_url=image_url,
            is_popular=is_popular,
            is_available=is_available,
            created_at=now,
            updated_at=now,
        )
        item.raise_(
            MenuItemAdded(
                menu_item_id=str(item.id),
                name=item.name,
                category=item.category,
                price=item.price,
                is_available=item.is_available,
            )
        )
        return item

    @property
    def dietary(self):
        """Dietary tags as a list."""
        return json.loads(self.dietary_tags) if self.dietary_tags else []

    # -------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------
    def update_details(self, **changes):
        """Edit any of the descriptive fields. ``None`` values are left untouched."""
        applied = {}
        for field_name in _EDITABLE_FIELDS:
            value = changes.get(field_name)
            if value is None:
                continue
            if field_name == "dietary_tags":
                value = json.dumps(sorted(set(value)))
            if getattr(self, field_name) != value:
                setattr(self, field_name, value)
                applied[field_name] = value

        if not applied:
            return

        self.updated_at = datetime.now(UTC)
        self.raise_(
            MenuItemUpdated(
                menu_item_id=str(self.id),
                changes=json.dumps(applied),
            )
        )

    def set_availability(self, is_available):
        if self.is_available == is_available:
            return

        self.is_available = is_available
        self.updated_at = datetime.now(UTC)
        self.raise_(
            MenuItemAvailabilityChanged(
                menu_item_id=str(self.id),
                is_available=is_available,
            )
        )
